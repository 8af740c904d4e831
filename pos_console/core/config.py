# pos_console/core/config.py

from decimal import Decimal
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str
    ALGORITHM: Literal["HS256"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # Database
    DATABASE_URL: str

    # Frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Checkout
    TAX_RATE: Decimal = Decimal("0.16")

    # Dashboard
    STORE_TIMEZONE: str = "UTC"
    REVENUE_WINDOW_DAYS: int = 30
    RECENT_SALES_LIMIT: int = 5

    # Credits
    RECENT_CREDIT_TRANSACTIONS_LIMIT: int = 50

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()
