"""Application configuration from environment variables and .env file."""

import logging
from decimal import Decimal
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class BillingStatusPolicy(str, Enum):
    """How a bill's pending/overdue/suspended status is derived."""

    CALENDAR_POSITION = "calendar_position"
    """Status depends only on today's day-of-month (1-5, 6-14, 15+)."""

    ELAPSED_SINCE_DUE = "elapsed_since_due"
    """Status depends on whole days elapsed since the bill's own due date."""


class Settings(BaseSettings):
    """PowerLink settings loaded from environment variables.

    Pydantic loads values from:
    1. OS environment variables prefixed with POWERLINK_
    2. .env file in the working directory

    Instantiate through get_settings() so the .env file is read once.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="POWERLINK_",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./powerlink.db"

    # Account number pool (C001 to C160)
    account_pool_size: int = 160

    # Billing
    rate_per_kwh: Decimal = Decimal("12.50")
    due_day: int = 5
    suspension_day: int = 15
    billing_status_policy: BillingStatusPolicy = BillingStatusPolicy.CALENDAR_POSITION
    suspension_after_days: int = 10

    # Applicants and credentials
    min_password_length: int = 8
    verification_code_ttl_minutes: int = 15

    # Default administrator created by init_db
    admin_username: str = "admin"
    admin_password: str = ""
    admin_email: str = "admin@powerlink-bapa.com"

    # Formatting of amounts and billing periods
    locale: str = "en_PH"

    # Local calendar used for due dates and billing status
    timezone: str = "Asia/Manila"

    # API server
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/server.log"

    @field_validator("account_pool_size")
    @classmethod
    def _pool_fits_three_digits(cls, value: int) -> int:
        if not 1 <= value <= 999:
            raise ValueError("account_pool_size must be between 1 and 999")
        return value

    @field_validator("timezone")
    @classmethod
    def _timezone_is_known(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @field_validator("rate_per_kwh")
    @classmethod
    def _rate_is_positive(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("rate_per_kwh must be positive")
        return value

    def validate_schedule(self) -> None:
        """Validate that the billing day boundaries are ordered."""
        if not 1 <= self.due_day < self.suspension_day <= 28:
            raise ValueError("Billing days must satisfy 1 <= due_day < suspension_day <= 28")


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        _settings_instance.validate_schedule()
        logger.debug("Settings loaded: database_url=%s", _settings_instance.database_url)
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings_instance
    _settings_instance = None


__all__ = ["BillingStatusPolicy", "Settings", "get_settings", "reset_settings"]
