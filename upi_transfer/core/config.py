from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "UPI Transfer Service"
    database_url: str = "sqlite:///upi_transfer.db"
    log_level: str = "INFO"

    min_amount: Decimal = Decimal("1.00")
    max_amount: Decimal = Decimal("100000.00")
    fee_threshold: Decimal = Decimal("1000.00")
    flat_fee: Decimal = Decimal("5.00")
    max_remarks_length: int = 255
    record_failed_attempts: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TRANSFER_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
