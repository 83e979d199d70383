from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
import uuid

from launchpad.core.constants import U64_MAX
from launchpad.models.curve import Team
from launchpad.services.events import CompleteEvent, TradeEvent


class CurveCreate(BaseModel):
    name: str = Field(min_length=1, max_length=32)
    symbol: str = Field(min_length=1, max_length=10)
    uri: str = Field(default="", max_length=200)
    team: Team = Team.BLUE


class CurveState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    symbol: str
    uri: str
    team: Team
    creator: str
    virtual_sol_reserves: int
    virtual_token_reserves: int
    real_sol_reserves: int
    real_token_reserves: int
    token_total_supply: int
    complete: bool
    sol_balance: int
    token_balance: int
    # Lamports per whole token at the current reserves
    price: int
    created_at: datetime
    completed_at: Optional[datetime] = None


class BuyRequest(BaseModel):
    token_amount: int = Field(ge=0, le=U64_MAX)
    max_sol_cost: int = Field(ge=0, le=U64_MAX)
    fee_recipient: Optional[str] = None


class SellRequest(BaseModel):
    token_amount: int = Field(ge=0, le=U64_MAX)
    min_sol_output: int = Field(ge=0, le=U64_MAX)
    fee_recipient: Optional[str] = None


class TradeResult(BaseModel):
    sol_amount: int
    token_amount: int
    fee: int
    event: TradeEvent
    complete_event: Optional[CompleteEvent] = None
    curve: CurveState


class QuoteResponse(BaseModel):
    token_amount: int
    sol_amount: int
    fee: int
    # sol_amount + fee for buys, sol_amount - fee for sells
    total: int


class TradeRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user: str
    is_buy: bool
    sol_amount: int
    token_amount: int
    fee: int
    timestamp: int
    virtual_sol_reserves: int
    virtual_token_reserves: int
    real_sol_reserves: int
    real_token_reserves: int


class TradeHistory(BaseModel):
    curve_id: uuid.UUID
    trades: List[TradeRecord]


class WithdrawResult(BaseModel):
    sol_amount: int
    token_amount: int
    curve: CurveState
