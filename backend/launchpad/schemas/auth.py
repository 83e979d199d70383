from pydantic import BaseModel, ConfigDict, Field, field_validator
import uuid


class AccountRegister(BaseModel):
    # Wallet-style address: letters, digits, '_' and '-'
    address: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
    password: str

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not any(c.isupper() for c in v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        return v


class AccountLogin(BaseModel):
    address: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    address: str
    sol_balance: int
