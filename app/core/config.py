from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Bearer tokens are issued elsewhere; we only verify them
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Billing
    TAX_RATE: Decimal = Decimal("0.10")
    INVOICE_PREFIX: str = "INV"

    # Rental / review policy
    RENTAL_MODIFICATION_CUTOFF_HOURS: int = 24
    REVIEW_SUBMISSION_DEADLINE_DAYS: int = 30
    REFUND_STUCK_AFTER_HOURS: int = 24

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
