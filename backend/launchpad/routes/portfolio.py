from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from launchpad.core.database import get_db
from launchpad.core.security import get_current_account
from launchpad.models.account import Account
from launchpad.models.curve import BondingCurve, TokenHolding, Trade
from launchpad.schemas.portfolio import HoldingState, Portfolio

router = APIRouter()


@router.get("", response_model=Portfolio)
def get_portfolio(
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Balances, non-empty holdings and trade counts of the signed-in account"""

    holdings = (
        db.query(TokenHolding, BondingCurve)
        .join(BondingCurve, TokenHolding.curve_id == BondingCurve.id)
        .filter(TokenHolding.account_id == current_account.id)
        .order_by(BondingCurve.created_at)
        .all()
    )

    trade_counts = dict(
        db.query(Trade.is_buy, func.count(Trade.id))
        .filter(Trade.account_id == current_account.id)
        .group_by(Trade.is_buy)
        .all()
    )
    buys = trade_counts.get(True, 0)
    sells = trade_counts.get(False, 0)

    curves_created = (
        db.query(func.count(BondingCurve.id))
        .filter(BondingCurve.creator_id == current_account.id)
        .scalar()
    )

    return Portfolio(
        address=current_account.address,
        sol_balance=current_account.sol_balance,
        holdings=[
            HoldingState(
                curve_id=curve.id,
                symbol=curve.symbol,
                amount=holding.amount,
                complete=curve.complete,
            )
            for holding, curve in holdings
            if holding.amount
        ],
        total_trades=buys + sells,
        buys=buys,
        sells=sells,
        curves_created=curves_created or 0,
    )
