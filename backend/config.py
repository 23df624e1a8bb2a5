from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"

    # Database
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "blood_bank"

    # Stock record defaults
    default_capacity: int = 100
    default_critical_level: int = 10  # percentage
    default_low_level: int = 20  # percentage

    # Ledger behaviour
    raise_alert_on_manual_removal: bool = False
    max_alerts_per_record: Optional[int] = Field(default=None, ge=1)
    update_retry_limit: int = 3

    # Dashboards
    expiring_soon_days: int = 7

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
