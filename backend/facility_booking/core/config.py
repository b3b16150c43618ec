# backend/facility_booking/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./facility_booking.db"


class Settings(BaseSettings):
    """Application settings for the facility booking engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: str = Field(default="development", description="Deployment environment")
    is_testing: bool = Field(default=False, description="Set by the test suite")

    database_url: str = Field(
        default=DEFAULT_DATABASE_URL, description="Primary database connection string"
    )
    test_database_url: Optional[str] = Field(
        default=None, description="Database used by the test suite"
    )
    sql_echo: bool = Field(default=False, description="Echo SQL statements to the log")

    # Slot generation
    slot_granularity_minutes: int = Field(default=60, ge=5, le=720)
    default_open_hour: int = Field(default=7, ge=0, le=23)
    default_close_hour: int = Field(default=21, ge=1, le=24)

    # Booking rules
    free_fee_sentinel: str = Field(default="Free for residents")
    facility_timezone: str = Field(default="UTC")
    enforce_advance_booking_limit: bool = Field(default=True)
    max_recurring_occurrences: int = Field(
        default=104, ge=1, description="Upper bound on occurrences generated for one series"
    )

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return (v or "development").strip().lower()

    @model_validator(mode="after")
    def validate_default_window(self) -> "Settings":
        if self.default_open_hour >= self.default_close_hour:
            raise ValueError("default_open_hour must be before default_close_hour")
        return self

    def get_database_url(self) -> str:
        """Return the database URL for the current mode (test database under pytest)."""
        if self.is_testing or is_running_tests():
            return self.test_database_url or "sqlite+pysqlite:///:memory:"
        return self.database_url


settings = Settings()
