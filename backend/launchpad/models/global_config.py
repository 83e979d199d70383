from sqlalchemy import Boolean, Column, ForeignKey, Integer, Uuid
from sqlalchemy.orm import relationship

from launchpad.core.database import Base, U64

GLOBAL_CONFIG_ID = 1


class GlobalConfig(Base):
    """Process-wide launchpad parameters. A single row with id GLOBAL_CONFIG_ID."""

    __tablename__ = "global_config"

    id = Column(Integer, primary_key=True, default=GLOBAL_CONFIG_ID)
    initialized = Column(Boolean, default=False, nullable=False)
    authority_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=True)
    fee_recipient_id = Column(
        Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=True
    )
    fee_basis_points = Column(U64, default=0, nullable=False)

    # Copied into every newly created curve
    initial_virtual_sol_reserves = Column(U64, default=0, nullable=False)
    initial_virtual_token_reserves = Column(U64, default=0, nullable=False)
    initial_real_token_reserves = Column(U64, default=0, nullable=False)
    initial_token_supply = Column(U64, default=0, nullable=False)

    # Relationships
    authority = relationship("Account", foreign_keys=[authority_id])
    fee_recipient = relationship("Account", foreign_keys=[fee_recipient_id])
