from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from launchpad.core.database import get_db
from launchpad.core.limiter import limiter
from launchpad.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    get_current_account,
)
from launchpad.core.config import settings
from launchpad.models.account import Account
from launchpad.schemas.auth import AccountRegister, AccountLogin, Token, AccountResponse

router = APIRouter()


@router.post(
    "/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register(
    request: Request, account_data: AccountRegister, db: Session = Depends(get_db)
):
    existing = db.query(Account).filter(Account.address == account_data.address).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Address already registered"
        )

    # New accounts start with a faucet balance of lamports
    account = Account(
        address=account_data.address,
        password_hash=get_password_hash(account_data.password),
        sol_balance=settings.INITIAL_SOL_BALANCE,
    )
    db.add(account)
    db.commit()
    db.refresh(account)

    return account


@router.post("/login", response_model=Token)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, account_data: AccountLogin, db: Session = Depends(get_db)):
    account = db.query(Account).filter(Account.address == account_data.address).first()
    if not account or not verify_password(account_data.password, account.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect address or password",
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": str(account.id)}, expires_delta=access_token_expires
    )

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=AccountResponse)
def get_current_account_info(current_account: Account = Depends(get_current_account)):
    return current_account
