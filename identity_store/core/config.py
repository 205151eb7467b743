"""
Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration management with validation,
loading settings from environment variables and .env files.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


VALID_DATABASE_SCHEMES = ["sqlite", "sqlite+aiosqlite", "postgresql", "postgresql+asyncpg"]
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """
    Settings for the identity store loaded from environment variables.

    All settings can be overridden via environment variables
    (e.g. DATABASE_URL, LOG_LEVEL). Connection strings containing
    credentials belong in the .env file, never in code.
    """

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/identity_store.db",
        description="Database connection URL (SQLite by default, PostgreSQL via asyncpg)"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo every SQL statement through the sqlalchemy.engine logger"
    )
    database_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Driver-level statement timeout, passed to the driver as-is"
    )
    enable_db_create_all: bool = Field(
        default=False,
        description="Create the users/roles/user_roles tables on init_db() (dev and tests)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json_format: bool = Field(
        default=True,
        description="Emit logs as single-line JSON objects"
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """
        Validate database URL format.

        Ensures URL has a supported scheme. SQLite is used for local
        development and tests, PostgreSQL for shared deployments.
        """
        if not v or v.strip() == "":
            raise ValueError("DATABASE_URL is required and cannot be empty")

        if not any(
            v.startswith(scheme + "://") or v.startswith(scheme + ":///")
            for scheme in VALID_DATABASE_SCHEMES
        ):
            raise ValueError(
                f"DATABASE_URL must start with one of: {', '.join(VALID_DATABASE_SCHEMES)}. "
                f"Got: {v[:20]}..."
            )

        return v

    @field_validator("database_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Reject zero and negative timeouts; None means the driver default."""
        if v is not None and v <= 0:
            raise ValueError(
                f"DATABASE_TIMEOUT_SECONDS must be positive when set. Got: {v}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be a standard logging level name. Got: {v}"
            )
        return level


# Global settings instance
# Import this instance throughout the package
settings = Settings()
