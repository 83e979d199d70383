import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy import Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from launchpad.core.database import Base, U64


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    address = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    # Reserve currency held by the account, in lamports
    sol_balance = Column(U64, default=0, nullable=False)
    created_at = Column(DateTime, default=_utc_now, nullable=False)

    # Relationships
    curves = relationship("BondingCurve", back_populates="creator")
    holdings = relationship("TokenHolding", back_populates="account")
