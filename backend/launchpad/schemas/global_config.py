from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from launchpad.core.constants import U64_MAX


class GlobalConfigResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    initialized: bool
    authority: Optional[str] = None
    fee_recipient: Optional[str] = None
    fee_basis_points: int
    initial_virtual_sol_reserves: int
    initial_virtual_token_reserves: int
    initial_real_token_reserves: int
    initial_token_supply: int


class SetParams(BaseModel):
    initial_virtual_token_reserves: int = Field(ge=0, le=U64_MAX)
    initial_virtual_sol_reserves: int = Field(ge=0, le=U64_MAX)
    initial_real_token_reserves: int = Field(ge=0, le=U64_MAX)
    initial_token_supply: int = Field(ge=0, le=U64_MAX)
    fee_basis_points: int = Field(ge=0, le=U64_MAX)
    # Optional: hand the fee stream to another registered account
    fee_recipient: Optional[str] = None
