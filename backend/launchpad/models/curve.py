import enum
import uuid
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from launchpad.core.database import Base, U64


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Team(str, enum.Enum):
    BLUE = "blue"
    RED = "red"


class BondingCurve(Base):
    """One curve per created asset. The id doubles as the asset (mint) id."""

    __tablename__ = "bonding_curves"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    creator_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False)
    name = Column(String, nullable=False)
    symbol = Column(String, nullable=False)
    uri = Column(String, nullable=False, default="")
    team = Column(
        Enum(Team, values_callable=lambda t: [m.value for m in t]),
        default=Team.BLUE,
        nullable=False,
    )

    # Pricing-only reserves; never physically held
    virtual_sol_reserves = Column(U64, nullable=False)
    virtual_token_reserves = Column(U64, nullable=False)
    # Bookkeeping reserves backing redemptions; real_token_reserves is the sellable supply
    real_sol_reserves = Column(U64, default=0, nullable=False)
    real_token_reserves = Column(U64, nullable=False)
    token_total_supply = Column(U64, nullable=False)
    complete = Column(Boolean, default=False, nullable=False)

    # Custody: what the curve actually holds. token_balance may trail
    # real_token_reserves when transfers are charged a fee on the way in.
    sol_balance = Column(U64, default=0, nullable=False)
    token_balance = Column(U64, default=0, nullable=False)

    created_at = Column(DateTime, default=_utc_now, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    creator = relationship("Account", back_populates="curves")
    trades = relationship(
        "Trade",
        back_populates="curve",
        cascade="all, delete-orphan",
        order_by="Trade.created_at",
    )


class TokenHolding(Base):
    __tablename__ = "token_holdings"
    __table_args__ = (UniqueConstraint("account_id", "curve_id"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False)
    curve_id = Column(
        Uuid(as_uuid=True), ForeignKey("bonding_curves.id"), nullable=False
    )
    amount = Column(U64, default=0, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="holdings")
    curve = relationship("BondingCurve")


class UserTransferData(Base):
    """Anti-bot throttle record, one per (account, curve)."""

    __tablename__ = "user_transfer_data"
    __table_args__ = (UniqueConstraint("account_id", "curve_id"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False)
    curve_id = Column(
        Uuid(as_uuid=True), ForeignKey("bonding_curves.id"), nullable=False
    )
    # Unix seconds; 0 until the first trade, which caps the first creator trade at 0.5%
    last_transfer_timestamp = Column(BigInteger, default=0, nullable=False)


class Trade(Base):
    """Persisted trade notification."""

    __tablename__ = "trades"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    curve_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("bonding_curves.id"),
        nullable=False,
        index=True,
    )
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False)
    is_buy = Column(Boolean, nullable=False)
    sol_amount = Column(U64, nullable=False)
    token_amount = Column(U64, nullable=False)
    fee = Column(U64, nullable=False)
    timestamp = Column(BigInteger, nullable=False)
    # Post-trade reserves
    virtual_sol_reserves = Column(U64, nullable=False)
    virtual_token_reserves = Column(U64, nullable=False)
    real_sol_reserves = Column(U64, nullable=False)
    real_token_reserves = Column(U64, nullable=False)
    created_at = Column(DateTime, default=_utc_now, nullable=False)

    # Relationships
    curve = relationship("BondingCurve", back_populates="trades")
    account = relationship("Account")
