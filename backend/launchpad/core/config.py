from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Search .env in CWD first, then parent dir.
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --- Database (required, no default) ---
    DATABASE_URL: str

    # --- Security (required, must be explicitly set in every environment) ---
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # --- Accounts ---
    # Lamports credited to every newly registered account
    INITIAL_SOL_BALANCE: int = 100_000_000_000

    # --- Curve defaults, copied into GlobalConfig on initialize ---
    DEFAULT_INITIAL_VIRTUAL_SOL_RESERVES: int = 30_000_000_000
    DEFAULT_INITIAL_VIRTUAL_TOKEN_RESERVES: int = 1_073_000_000_000_000
    DEFAULT_INITIAL_REAL_TOKEN_RESERVES: int = 793_100_000_000_000
    DEFAULT_INITIAL_TOKEN_SUPPLY: int = 1_000_000_000_000_000
    DEFAULT_FEE_BASIS_POINTS: int = 50

    # Fee withheld by the token program on every asset-unit transfer
    TOKEN_TRANSFER_FEE_BASIS_POINTS: int = 0

    # --- HTTP throttling (slowapi limit strings) ---
    AUTH_RATE_LIMIT: str = "10/minute"
    TRADE_RATE_LIMIT: str = "60/minute"

    # --- Observability ---
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # development | staging | production

    # --- CORS (comma-separated string parsed into a list) ---
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("SECRET_KEY")
    @classmethod
    def secret_key_must_be_strong(cls, v: str) -> str:
        """Reject weak or placeholder secret keys at startup."""
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        weak_values = {"your-secret-key-change-in-production", "secret", "changeme"}
        if v.lower() in weak_values:
            raise ValueError("SECRET_KEY is set to an insecure placeholder value")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def log_level_must_be_valid(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}")
        return v.upper()

    @field_validator("TOKEN_TRANSFER_FEE_BASIS_POINTS", "DEFAULT_FEE_BASIS_POINTS")
    @classmethod
    def basis_points_in_range(cls, v: int) -> int:
        if not 0 <= v <= 10_000:
            raise ValueError("basis points must be between 0 and 10000")
        return v

    @model_validator(mode="after")
    def default_reserves_consistent(self) -> "Settings":
        """The seeded curve shape must satisfy the curve invariants."""
        if self.DEFAULT_INITIAL_VIRTUAL_SOL_RESERVES <= 0:
            raise ValueError("DEFAULT_INITIAL_VIRTUAL_SOL_RESERVES must be positive")
        if (
            self.DEFAULT_INITIAL_REAL_TOKEN_RESERVES
            > self.DEFAULT_INITIAL_VIRTUAL_TOKEN_RESERVES
        ):
            raise ValueError("real token reserves cannot exceed virtual token reserves")
        if self.DEFAULT_INITIAL_REAL_TOKEN_RESERVES > self.DEFAULT_INITIAL_TOKEN_SUPPLY:
            raise ValueError("real token reserves cannot exceed the token supply")
        return self

    def get_cors_origins(self) -> List[str]:
        """Parse comma-separated CORS_ORIGINS into a list."""
        return [
            origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()
        ]


settings = Settings()
