# backend/mentorbook/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

load_dotenv(_BACKEND_ROOT / ".env", override=False)


class Settings(BaseSettings):
    """Runtime configuration for the booking service."""

    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = Field(
        default="sqlite:///./mentorbook.db",
        description="SQLAlchemy URL; PostgreSQL in production, SQLite for local runs",
    )
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)
    db_pool_timeout_seconds: float = Field(
        default=2.0, gt=0, description="Seconds to wait for a pooled connection"
    )
    db_statement_timeout_ms: int = Field(
        default=15000, gt=0, description="Server-side statement timeout for PostgreSQL"
    )
    db_connect_timeout_seconds: int = Field(default=5, gt=0)
    db_read_retry_attempts: int = Field(
        default=2, ge=1, description="Total attempts for idempotent reads"
    )

    # Booking lifecycle
    auto_confirm_free_bookings: bool = Field(
        default=False,
        description="Confirm zero-price bookings on creation as the system actor",
    )
    payment_order_prefix: str = "booking"

    # Ambient services
    notifications_enabled: bool = True
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @field_validator("payment_order_prefix")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        if not value or "_" in value:
            raise ValueError("payment_order_prefix must be non-empty and contain no underscores")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
