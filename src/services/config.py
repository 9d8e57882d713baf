"""Lease service configuration from environment variables and .env file."""

import logging
from typing import Literal, Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class LeaseSettings(BaseSettings):
    """Settings loaded from environment variables.

    Pydantic automatically loads values from:
    1. OS environment variables (at instantiation time)
    2. .env file in the working directory

    Policy switches decide the boundary cases the lease rules leave open; the
    defaults reproduce the established contract behaviour.
    """

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./lease.db",
        description="SQLAlchemy connection string",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/server.log", description="Server log file")

    # Lease policy
    allow_zero_utility_payment: bool = Field(
        default=False,
        description="Accept a zero-value utility payment while no utility amount is set",
    )
    reserve_unpaid_deposit: bool = Field(
        default=True,
        description="Withhold deposit_amount from withdrawals even if no deposit was received",
    )
    calendar_mode: Literal["approximate", "exact"] = Field(
        default="approximate",
        description="Default decoder for due/end dates",
    )

    # API
    api_title: str = Field(default="Lease Agreement API", description="API title")
    api_version: str = Field(default="0.1.0", description="API version")


_settings_instance: Optional[LeaseSettings] = None


def get_settings() -> LeaseSettings:
    """Get or create the settings instance.

    Lazy so that environment variables set by the process (or tests) before the
    first call are honoured.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = LeaseSettings()
        logger.debug(
            "Settings loaded: database_url=%s calendar_mode=%s",
            _settings_instance.database_url,
            _settings_instance.calendar_mode,
        )
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings_instance
    _settings_instance = None


__all__ = ["LeaseSettings", "get_settings", "reset_settings"]
