"""
Launchpad operations: initialize, set_params, create, buy, sell, withdraw.

Every operation is one atomic transition. All preconditions are checked
before any value moves; the first failing check raises a LaunchpadError and
the surrounding transaction is rolled back, so no operation is ever
half-applied. Notifications are emitted only after the commit succeeds.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import logging
import uuid

from sqlalchemy.orm import Session

from launchpad.core.config import settings
from launchpad.core.constants import BASIS_POINTS_DENOMINATOR, U64_MAX
from launchpad.core.database import atomic
from launchpad.core.errors import (
    AccountNotFound,
    AlreadyInitialized,
    ArithmeticOverflow,
    CurveComplete,
    CurveNotComplete,
    CurveNotFound,
    InsufficientBalance,
    InsufficientTokens,
    InvalidAuthority,
    InvalidFeeRecipient,
    InvalidParams,
    InvalidWithdrawAuthority,
    MaxCostExceeded,
    MinBuy,
    MinProceedsNotMet,
    MinSell,
    NotInitialized,
)
from launchpad.models.account import Account
from launchpad.models.curve import BondingCurve, Team, Trade, UserTransferData
from launchpad.models.global_config import GLOBAL_CONFIG_ID, GlobalConfig
from launchpad.services import rate_limiter
from launchpad.services.curve_engine import AMM
from launchpad.services.events import CompleteEvent, CreateEvent, TradeEvent, emit
from launchpad.services.fees import calculate_fee
from launchpad.services.settlement import LedgerSettlement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeReceipt:
    sol_amount: int
    token_amount: int
    fee: int
    event: TradeEvent
    complete_event: Optional[CompleteEvent] = None


@dataclass(frozen=True)
class Quote:
    token_amount: int
    sol_amount: int
    fee: int

    @property
    def total_cost(self) -> int:
        return self.sol_amount + self.fee

    @property
    def net_proceeds(self) -> int:
        return self.sol_amount - self.fee


@dataclass(frozen=True)
class WithdrawReceipt:
    sol_amount: int
    token_amount: int


# ---------------------------------------------------------------------------
# Loading and shared checks
# ---------------------------------------------------------------------------


def get_global_config(db: Session) -> GlobalConfig:
    """Return the config row, or an unsaved uninitialized one if none exists."""
    config = db.get(GlobalConfig, GLOBAL_CONFIG_ID, populate_existing=True)
    if config is None:
        config = GlobalConfig(id=GLOBAL_CONFIG_ID, initialized=False)
    return config


def get_curve(db: Session, curve_id: uuid.UUID, for_update: bool = False) -> BondingCurve:
    query = db.query(BondingCurve).filter(BondingCurve.id == curve_id)
    if for_update:
        # Serializes concurrent trades against the same curve and drops any
        # stale copy already in the session
        query = query.with_for_update().populate_existing()
    curve = query.first()
    if curve is None:
        raise CurveNotFound(curve_id=str(curve_id))
    return curve


def get_account_by_address(db: Session, address: str) -> Account:
    account = db.query(Account).filter(Account.address == address).first()
    if account is None:
        raise AccountNotFound(address=address)
    return account


def _require_initialized(config: GlobalConfig) -> None:
    if not config.initialized:
        raise NotInitialized()


def _require_active(curve: BondingCurve) -> None:
    if curve.complete:
        raise CurveComplete(curve_id=str(curve.id))


def _check_fee_recipient(config: GlobalConfig, fee_recipient: Optional[str]) -> Account:
    """A caller-named fee recipient must be the configured one."""
    configured = config.fee_recipient
    if configured is None:
        raise InvalidFeeRecipient()
    if fee_recipient is not None and fee_recipient != configured.address:
        raise InvalidFeeRecipient(fee_recipient=fee_recipient)
    return configured


def _transfer_record(db: Session, actor: Account, curve: BondingCurve) -> UserTransferData:
    record = (
        db.query(UserTransferData)
        .filter(
            UserTransferData.account_id == actor.id,
            UserTransferData.curve_id == curve.id,
        )
        .first()
    )
    if record is None:
        record = UserTransferData(
            account_id=actor.id, curve_id=curve.id, last_transfer_timestamp=0
        )
        db.add(record)
    return record


def _commit_reserves(curve: BondingCurve, amm: AMM) -> None:
    curve.virtual_sol_reserves = amm.virtual_sol_reserves
    curve.virtual_token_reserves = amm.virtual_token_reserves
    curve.real_sol_reserves = amm.real_sol_reserves
    curve.real_token_reserves = amm.real_token_reserves


def _validate_params(
    initial_virtual_token_reserves: int,
    initial_virtual_sol_reserves: int,
    initial_real_token_reserves: int,
    initial_token_supply: int,
    fee_basis_points: int,
) -> None:
    values = (
        initial_virtual_token_reserves,
        initial_virtual_sol_reserves,
        initial_real_token_reserves,
        initial_token_supply,
        fee_basis_points,
    )
    if any(not 0 <= v <= U64_MAX for v in values):
        raise InvalidParams("Parameters must be unsigned 64-bit integers")
    if initial_virtual_sol_reserves == 0 or initial_virtual_token_reserves == 0:
        raise InvalidParams("Virtual reserves must be positive")
    # Strictly below, otherwise the completing buy would empty the virtual reserves
    if initial_real_token_reserves >= initial_virtual_token_reserves:
        raise InvalidParams("Real token reserves must be below virtual token reserves")
    if initial_real_token_reserves > initial_token_supply:
        raise InvalidParams("Real token reserves cannot exceed the token supply")
    if fee_basis_points > BASIS_POINTS_DENOMINATOR:
        raise InvalidParams("Fee basis points cannot exceed 10000")


def _trade_event(
    curve: BondingCurve,
    actor: Account,
    sol_amount: int,
    token_amount: int,
    fee: int,
    is_buy: bool,
    now: int,
) -> TradeEvent:
    return TradeEvent(
        mint=curve.id,
        sol_amount=sol_amount,
        token_amount=token_amount,
        fee=fee,
        is_buy=is_buy,
        user=actor.address,
        timestamp=now,
        virtual_sol_reserves=curve.virtual_sol_reserves,
        virtual_token_reserves=curve.virtual_token_reserves,
        real_sol_reserves=curve.real_sol_reserves,
        real_token_reserves=curve.real_token_reserves,
    )


def _record_trade(db: Session, curve: BondingCurve, actor: Account, event: TradeEvent) -> None:
    db.add(
        Trade(
            curve_id=curve.id,
            account_id=actor.id,
            is_buy=event.is_buy,
            sol_amount=event.sol_amount,
            token_amount=event.token_amount,
            fee=event.fee,
            timestamp=event.timestamp,
            virtual_sol_reserves=event.virtual_sol_reserves,
            virtual_token_reserves=event.virtual_token_reserves,
            real_sol_reserves=event.real_sol_reserves,
            real_token_reserves=event.real_token_reserves,
        )
    )


# ---------------------------------------------------------------------------
# Global configuration
# ---------------------------------------------------------------------------


def initialize(db: Session, actor: Account) -> GlobalConfig:
    """One-time setup: the caller becomes authority and fee recipient."""
    with atomic(db):
        config = get_global_config(db)
        if config.initialized:
            raise AlreadyInitialized()

        config.initialized = True
        config.authority_id = actor.id
        config.fee_recipient_id = actor.id
        config.fee_basis_points = settings.DEFAULT_FEE_BASIS_POINTS
        config.initial_virtual_sol_reserves = settings.DEFAULT_INITIAL_VIRTUAL_SOL_RESERVES
        config.initial_virtual_token_reserves = (
            settings.DEFAULT_INITIAL_VIRTUAL_TOKEN_RESERVES
        )
        config.initial_real_token_reserves = settings.DEFAULT_INITIAL_REAL_TOKEN_RESERVES
        config.initial_token_supply = settings.DEFAULT_INITIAL_TOKEN_SUPPLY
        db.add(config)

    db.refresh(config)
    logger.info(f"Launchpad initialized by {actor.address}")
    return config


def set_params(
    db: Session,
    actor: Account,
    initial_virtual_token_reserves: int,
    initial_virtual_sol_reserves: int,
    initial_real_token_reserves: int,
    initial_token_supply: int,
    fee_basis_points: int,
    fee_recipient: Optional[str] = None,
) -> GlobalConfig:
    """Authority-only. Reserve parameters apply to curves created afterwards."""
    with atomic(db):
        config = get_global_config(db)
        _require_initialized(config)
        if config.authority_id != actor.id:
            raise InvalidAuthority()

        _validate_params(
            initial_virtual_token_reserves,
            initial_virtual_sol_reserves,
            initial_real_token_reserves,
            initial_token_supply,
            fee_basis_points,
        )
        if fee_recipient is not None:
            config.fee_recipient_id = get_account_by_address(db, fee_recipient).id

        config.initial_virtual_token_reserves = initial_virtual_token_reserves
        config.initial_virtual_sol_reserves = initial_virtual_sol_reserves
        config.initial_real_token_reserves = initial_real_token_reserves
        config.initial_token_supply = initial_token_supply
        config.fee_basis_points = fee_basis_points

    db.refresh(config)
    logger.info(
        f"Params updated: virtual_sol={initial_virtual_sol_reserves}, "
        f"virtual_token={initial_virtual_token_reserves}, "
        f"real_token={initial_real_token_reserves}, supply={initial_token_supply}, "
        f"fee_bps={fee_basis_points}"
    )
    return config


# ---------------------------------------------------------------------------
# Curve creation
# ---------------------------------------------------------------------------


def create_curve(
    db: Session,
    creator: Account,
    name: str,
    symbol: str,
    uri: str = "",
    team: Team = Team.BLUE,
) -> BondingCurve:
    """Seed an Active curve from the current initial parameters."""
    with atomic(db):
        config = get_global_config(db)
        _require_initialized(config)

        curve = BondingCurve(
            creator_id=creator.id,
            name=name,
            symbol=symbol,
            uri=uri,
            team=team,
            virtual_sol_reserves=config.initial_virtual_sol_reserves,
            virtual_token_reserves=config.initial_virtual_token_reserves,
            real_sol_reserves=0,
            real_token_reserves=config.initial_real_token_reserves,
            token_total_supply=config.initial_token_supply,
            complete=False,
            sol_balance=0,
            # Whole supply is minted into curve custody
            token_balance=config.initial_token_supply,
        )
        db.add(curve)

    db.refresh(curve)
    emit(
        CreateEvent(
            name=name,
            symbol=symbol,
            uri=uri,
            mint=curve.id,
            creator=creator.address,
            team=team,
        )
    )
    return curve


# ---------------------------------------------------------------------------
# Quotes (read-only)
# ---------------------------------------------------------------------------


def quote_buy(db: Session, curve_id: uuid.UUID, token_amount: int) -> Quote:
    config = get_global_config(db)
    _require_initialized(config)
    curve = get_curve(db, curve_id)
    _require_active(curve)
    if token_amount <= 0:
        raise MinBuy()
    if token_amount > curve.real_token_reserves:
        raise InsufficientTokens(requested=token_amount, available=curve.real_token_reserves)

    amm = AMM.from_curve(curve, config.initial_virtual_token_reserves)
    # Same clamp as apply_buy, without moving the snapshot
    token_amount = min(token_amount, amm.token_balance)
    sol_amount = amm.get_buy_price(token_amount)
    fee = calculate_fee(sol_amount, config.fee_basis_points)
    return Quote(token_amount=token_amount, sol_amount=sol_amount, fee=fee)


def quote_sell(db: Session, curve_id: uuid.UUID, token_amount: int) -> Quote:
    config = get_global_config(db)
    _require_initialized(config)
    curve = get_curve(db, curve_id)
    _require_active(curve)
    if token_amount <= 0:
        raise MinSell()

    amm = AMM.from_curve(curve, config.initial_virtual_token_reserves)
    sol_amount = amm.get_sell_price(token_amount)
    fee = calculate_fee(sol_amount, config.fee_basis_points)
    if fee > sol_amount:
        raise ArithmeticOverflow("Fee exceeds sale proceeds", fee=fee, sol_amount=sol_amount)
    return Quote(token_amount=token_amount, sol_amount=sol_amount, fee=fee)


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------


def buy(
    db: Session,
    curve_id: uuid.UUID,
    actor: Account,
    token_amount: int,
    max_sol_cost: int,
    now: int,
    fee_recipient: Optional[str] = None,
    settlement: Optional[LedgerSettlement] = None,
) -> TradeReceipt:
    settlement = settlement or LedgerSettlement(db)
    complete_event = None

    with atomic(db):
        config = get_global_config(db)
        _require_initialized(config)
        curve = get_curve(db, curve_id, for_update=True)
        _require_active(curve)
        recipient = _check_fee_recipient(config, fee_recipient)
        settlement.lock_accounts(actor, recipient)

        if token_amount <= 0:
            raise MinBuy()
        if token_amount > curve.real_token_reserves:
            raise InsufficientTokens(
                requested=token_amount, available=curve.real_token_reserves
            )

        record = _transfer_record(db, actor, curve)
        rate_limiter.check_and_update(record, actor.id, curve, token_amount, now)

        amm = AMM.from_curve(curve, config.initial_virtual_token_reserves)
        result = amm.apply_buy(token_amount)
        if result.token_amount == 0:
            raise InsufficientTokens("Curve custody holds no tokens")

        fee = calculate_fee(result.sol_amount, config.fee_basis_points)
        total_cost = result.sol_amount + fee
        if total_cost > U64_MAX:
            raise ArithmeticOverflow("Buy cost overflowed", sol_amount=result.sol_amount)
        if total_cost > max_sol_cost:
            raise MaxCostExceeded(total_cost=total_cost, max_sol_cost=max_sol_cost)
        if actor.sol_balance < total_cost:
            raise InsufficientBalance(required=total_cost, available=actor.sol_balance)

        settlement.transfer_sol(actor, curve, result.sol_amount)
        settlement.transfer_sol(actor, recipient, fee)
        holding = settlement.holding_for(actor, curve)
        settlement.tokens_to_holder(curve, holding, result.token_amount)

        _commit_reserves(curve, amm)
        event = _trade_event(
            curve, actor, result.sol_amount, result.token_amount, fee, True, now
        )
        _record_trade(db, curve, actor, event)

        if curve.real_token_reserves == 0:
            curve.complete = True
            curve.completed_at = datetime.now(timezone.utc)
            complete_event = CompleteEvent(user=actor.address, mint=curve.id, timestamp=now)

    emit(event)
    if complete_event is not None:
        logger.info(f"Bonding curve {curve_id} complete")
        emit(complete_event)

    return TradeReceipt(
        sol_amount=result.sol_amount,
        token_amount=result.token_amount,
        fee=fee,
        event=event,
        complete_event=complete_event,
    )


def sell(
    db: Session,
    curve_id: uuid.UUID,
    actor: Account,
    token_amount: int,
    min_sol_output: int,
    now: int,
    fee_recipient: Optional[str] = None,
    settlement: Optional[LedgerSettlement] = None,
) -> TradeReceipt:
    settlement = settlement or LedgerSettlement(db)

    with atomic(db):
        config = get_global_config(db)
        _require_initialized(config)
        curve = get_curve(db, curve_id, for_update=True)
        _require_active(curve)
        recipient = _check_fee_recipient(config, fee_recipient)
        settlement.lock_accounts(actor, recipient)

        if token_amount <= 0:
            raise MinSell()
        holding = settlement.find_holding(actor, curve)
        held = holding.amount if holding is not None else 0
        if held < token_amount:
            raise InsufficientTokens(requested=token_amount, available=held)

        record = _transfer_record(db, actor, curve)
        rate_limiter.check_and_update(record, actor.id, curve, token_amount, now)

        amm = AMM.from_curve(curve, config.initial_virtual_token_reserves)
        result = amm.apply_sell(token_amount)

        fee = calculate_fee(result.sol_amount, config.fee_basis_points)
        if fee > result.sol_amount:
            raise ArithmeticOverflow(
                "Fee exceeds sale proceeds", fee=fee, sol_amount=result.sol_amount
            )
        proceeds = result.sol_amount - fee
        if proceeds < min_sol_output:
            raise MinProceedsNotMet(proceeds=proceeds, min_sol_output=min_sol_output)

        settlement.tokens_to_curve(holding, curve, result.token_amount)
        settlement.transfer_sol(curve, actor, proceeds)
        settlement.transfer_sol(curve, recipient, fee)

        _commit_reserves(curve, amm)
        event = _trade_event(
            curve, actor, result.sol_amount, result.token_amount, fee, False, now
        )
        _record_trade(db, curve, actor, event)

    emit(event)
    return TradeReceipt(
        sol_amount=result.sol_amount,
        token_amount=result.token_amount,
        fee=fee,
        event=event,
    )


# ---------------------------------------------------------------------------
# Withdraw
# ---------------------------------------------------------------------------


def withdraw(db: Session, curve_id: uuid.UUID, actor: Account) -> WithdrawReceipt:
    """Authority-only: drain a completed curve's custody. Reserves stay frozen."""
    settlement = LedgerSettlement(db)

    with atomic(db):
        config = get_global_config(db)
        _require_initialized(config)
        curve = get_curve(db, curve_id, for_update=True)
        if config.authority_id != actor.id:
            raise InvalidWithdrawAuthority()
        if not curve.complete:
            raise CurveNotComplete(curve_id=str(curve.id))
        settlement.lock_accounts(actor)

        sol_amount = curve.sol_balance
        token_amount = curve.token_balance
        settlement.transfer_sol(curve, actor, sol_amount)
        if token_amount:
            holding = settlement.holding_for(actor, curve)
            settlement.tokens_to_holder(curve, holding, token_amount)

    logger.info(
        f"Withdrew {sol_amount} lamports and {token_amount} tokens from curve {curve_id}"
    )
    return WithdrawReceipt(sol_amount=sol_amount, token_amount=token_amount)
