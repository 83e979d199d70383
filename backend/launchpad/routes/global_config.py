from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from launchpad.core.database import get_db
from launchpad.core.security import get_current_account
from launchpad.models.account import Account
from launchpad.models.global_config import GlobalConfig
from launchpad.schemas.global_config import GlobalConfigResponse, SetParams
from launchpad.services import launchpad

router = APIRouter()


def _config_response(config: GlobalConfig) -> GlobalConfigResponse:
    return GlobalConfigResponse(
        initialized=bool(config.initialized),
        authority=config.authority.address if config.authority else None,
        fee_recipient=config.fee_recipient.address if config.fee_recipient else None,
        fee_basis_points=config.fee_basis_points or 0,
        initial_virtual_sol_reserves=config.initial_virtual_sol_reserves or 0,
        initial_virtual_token_reserves=config.initial_virtual_token_reserves or 0,
        initial_real_token_reserves=config.initial_real_token_reserves or 0,
        initial_token_supply=config.initial_token_supply or 0,
    )


@router.get("", response_model=GlobalConfigResponse)
def get_global(db: Session = Depends(get_db)):
    return _config_response(launchpad.get_global_config(db))


@router.post("/initialize", response_model=GlobalConfigResponse)
def initialize(
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Claim the launchpad authority. Succeeds once."""
    return _config_response(launchpad.initialize(db, current_account))


@router.put("/params", response_model=GlobalConfigResponse)
def set_params(
    params: SetParams,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Authority-only. Only curves created after the change use the new reserves."""
    config = launchpad.set_params(
        db,
        current_account,
        initial_virtual_token_reserves=params.initial_virtual_token_reserves,
        initial_virtual_sol_reserves=params.initial_virtual_sol_reserves,
        initial_real_token_reserves=params.initial_real_token_reserves,
        initial_token_supply=params.initial_token_supply,
        fee_basis_points=params.fee_basis_points,
        fee_recipient=params.fee_recipient,
    )
    return _config_response(config)
