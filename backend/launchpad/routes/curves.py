import logging
import uuid
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from launchpad.core.clock import Clock, get_clock
from launchpad.core.config import settings
from launchpad.core.constants import U64_MAX
from launchpad.core.database import get_db
from launchpad.core.limiter import limiter
from launchpad.core.security import get_current_account
from launchpad.models.account import Account
from launchpad.models.curve import BondingCurve, Trade
from launchpad.schemas.curve import (
    BuyRequest,
    CurveCreate,
    CurveState,
    QuoteResponse,
    SellRequest,
    TradeHistory,
    TradeRecord,
    TradeResult,
    WithdrawResult,
)
from launchpad.services import launchpad
from launchpad.services.curve_engine import AMM

router = APIRouter()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _curve_state(curve: BondingCurve) -> CurveState:
    price = AMM(
        curve.virtual_sol_reserves,
        curve.virtual_token_reserves,
        curve.real_sol_reserves,
        curve.real_token_reserves,
        curve.virtual_token_reserves,
    ).get_token_price()
    return CurveState(
        id=curve.id,
        name=curve.name,
        symbol=curve.symbol,
        uri=curve.uri,
        team=curve.team,
        creator=curve.creator.address,
        virtual_sol_reserves=curve.virtual_sol_reserves,
        virtual_token_reserves=curve.virtual_token_reserves,
        real_sol_reserves=curve.real_sol_reserves,
        real_token_reserves=curve.real_token_reserves,
        token_total_supply=curve.token_total_supply,
        complete=curve.complete,
        sol_balance=curve.sol_balance,
        token_balance=curve.token_balance,
        price=price,
        created_at=curve.created_at,
        completed_at=curve.completed_at,
    )


def _log_trade(account: Account, curve_id: uuid.UUID, is_buy: bool, receipt) -> None:
    log_record = logging.LogRecord(
        name="trade",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="Buy executed" if is_buy else "Sell executed",
        args=(),
        exc_info=None,
    )
    log_record.account_id = str(account.id)
    log_record.curve_id = str(curve_id)
    log_record.is_buy = is_buy
    log_record.sol_amount = receipt.sol_amount
    log_record.token_amount = receipt.token_amount
    logger.handle(log_record)


# ---------------------------------------------------------------------------
# Curves
# ---------------------------------------------------------------------------


@router.post("", response_model=CurveState, status_code=status.HTTP_201_CREATED)
def create_curve(
    curve_data: CurveCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Create a new asset and its bonding curve, seeded from the global params."""
    curve = launchpad.create_curve(
        db,
        current_account,
        name=curve_data.name,
        symbol=curve_data.symbol,
        uri=curve_data.uri,
        team=curve_data.team,
    )
    return _curve_state(curve)


@router.get("", response_model=List[CurveState])
def list_curves(
    complete: Optional[bool] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    query = db.query(BondingCurve)
    if complete is not None:
        query = query.filter(BondingCurve.complete == complete)
    curves = (
        query.order_by(BondingCurve.created_at.desc()).offset(offset).limit(limit).all()
    )
    return [_curve_state(curve) for curve in curves]


@router.get("/{curve_id}", response_model=CurveState)
def get_curve(curve_id: uuid.UUID, db: Session = Depends(get_db)):
    return _curve_state(launchpad.get_curve(db, curve_id))


@router.get("/{curve_id}/trades", response_model=TradeHistory)
def get_trades(
    curve_id: uuid.UUID,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    curve = launchpad.get_curve(db, curve_id)
    trades = (
        db.query(Trade)
        .filter(Trade.curve_id == curve.id)
        .order_by(Trade.timestamp, Trade.created_at)
        .limit(limit)
        .all()
    )
    return TradeHistory(
        curve_id=curve.id,
        trades=[
            TradeRecord(
                id=trade.id,
                user=trade.account.address,
                is_buy=trade.is_buy,
                sol_amount=trade.sol_amount,
                token_amount=trade.token_amount,
                fee=trade.fee,
                timestamp=trade.timestamp,
                virtual_sol_reserves=trade.virtual_sol_reserves,
                virtual_token_reserves=trade.virtual_token_reserves,
                real_sol_reserves=trade.real_sol_reserves,
                real_token_reserves=trade.real_token_reserves,
            )
            for trade in trades
        ],
    )


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


@router.get("/{curve_id}/quote/buy", response_model=QuoteResponse)
def quote_buy(
    curve_id: uuid.UUID,
    amount: int = Query(ge=0, le=U64_MAX),
    db: Session = Depends(get_db),
):
    quote = launchpad.quote_buy(db, curve_id, amount)
    return QuoteResponse(
        token_amount=quote.token_amount,
        sol_amount=quote.sol_amount,
        fee=quote.fee,
        total=quote.total_cost,
    )


@router.get("/{curve_id}/quote/sell", response_model=QuoteResponse)
def quote_sell(
    curve_id: uuid.UUID,
    amount: int = Query(ge=0, le=U64_MAX),
    db: Session = Depends(get_db),
):
    quote = launchpad.quote_sell(db, curve_id, amount)
    return QuoteResponse(
        token_amount=quote.token_amount,
        sol_amount=quote.sol_amount,
        fee=quote.fee,
        total=quote.net_proceeds,
    )


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------


@router.post("/{curve_id}/buy", response_model=TradeResult)
@limiter.limit(settings.TRADE_RATE_LIMIT)
def buy(
    request: Request,
    curve_id: uuid.UUID,
    order: BuyRequest,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Buy `token_amount` units. Fails without side effects if the cost plus
    fee exceeds `max_sol_cost`.
    """
    receipt = launchpad.buy(
        db,
        curve_id,
        current_account,
        token_amount=order.token_amount,
        max_sol_cost=order.max_sol_cost,
        now=clock(),
        fee_recipient=order.fee_recipient,
    )
    _log_trade(current_account, curve_id, True, receipt)

    return TradeResult(
        sol_amount=receipt.sol_amount,
        token_amount=receipt.token_amount,
        fee=receipt.fee,
        event=receipt.event,
        complete_event=receipt.complete_event,
        curve=_curve_state(launchpad.get_curve(db, curve_id)),
    )


@router.post("/{curve_id}/sell", response_model=TradeResult)
@limiter.limit(settings.TRADE_RATE_LIMIT)
def sell(
    request: Request,
    curve_id: uuid.UUID,
    order: SellRequest,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Sell `token_amount` units back to the curve. Fails without side effects
    if the proceeds after fee fall below `min_sol_output`.
    """
    receipt = launchpad.sell(
        db,
        curve_id,
        current_account,
        token_amount=order.token_amount,
        min_sol_output=order.min_sol_output,
        now=clock(),
        fee_recipient=order.fee_recipient,
    )
    _log_trade(current_account, curve_id, False, receipt)

    return TradeResult(
        sol_amount=receipt.sol_amount,
        token_amount=receipt.token_amount,
        fee=receipt.fee,
        event=receipt.event,
        complete_event=None,
        curve=_curve_state(launchpad.get_curve(db, curve_id)),
    )


@router.post("/{curve_id}/withdraw", response_model=WithdrawResult)
def withdraw(
    curve_id: uuid.UUID,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Authority-only: move a completed curve's custody to the authority."""
    receipt = launchpad.withdraw(db, curve_id, current_account)
    return WithdrawResult(
        sol_amount=receipt.sol_amount,
        token_amount=receipt.token_amount,
        curve=_curve_state(launchpad.get_curve(db, curve_id)),
    )
