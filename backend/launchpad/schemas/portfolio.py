from pydantic import BaseModel
from typing import List
import uuid


class HoldingState(BaseModel):
    curve_id: uuid.UUID
    symbol: str
    amount: int
    complete: bool


class Portfolio(BaseModel):
    address: str
    sol_balance: int
    holdings: List[HoldingState]
    total_trades: int
    buys: int
    sells: int
    curves_created: int
