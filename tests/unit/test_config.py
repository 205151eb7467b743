"""
Tests for configuration validation.

Ensures environment variables are validated when Settings load.
"""

import pytest
from pydantic import ValidationError

from identity_store.core.config import Settings


class TestDatabaseUrlValidation:
    """Test DATABASE_URL validation."""

    def test_sqlite_url_accepted(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./data/test.db")

        settings = Settings()

        assert settings.database_url == "sqlite+aiosqlite:///./data/test.db"

    def test_postgres_url_accepted(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://app:pw@localhost/identity")

        settings = Settings()

        assert settings.database_url.startswith("postgresql+asyncpg://")

    def test_unsupported_scheme_rejected(self, monkeypatch):
        """Test DATABASE_URL must use a supported scheme."""
        monkeypatch.setenv("DATABASE_URL", "mysql://root@localhost/identity")

        with pytest.raises(ValidationError) as exc_info:
            Settings()

        assert "DATABASE_URL must start with one of" in str(exc_info.value)

    def test_empty_url_rejected(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "")

        with pytest.raises(ValidationError) as exc_info:
            Settings()

        assert "cannot be empty" in str(exc_info.value)


class TestTimeoutValidation:
    """Test DATABASE_TIMEOUT_SECONDS validation."""

    def test_timeout_defaults_to_driver(self, monkeypatch):
        monkeypatch.delenv("DATABASE_TIMEOUT_SECONDS", raising=False)

        assert Settings().database_timeout_seconds is None

    def test_positive_timeout_accepted(self, monkeypatch):
        monkeypatch.setenv("DATABASE_TIMEOUT_SECONDS", "2.5")

        assert Settings().database_timeout_seconds == 2.5

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_non_positive_timeout_rejected(self, monkeypatch, value):
        monkeypatch.setenv("DATABASE_TIMEOUT_SECONDS", value)

        with pytest.raises(ValidationError) as exc_info:
            Settings()

        assert "must be positive" in str(exc_info.value)


class TestLogLevelValidation:
    """Test LOG_LEVEL validation."""

    def test_log_level_normalized_to_upper_case(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")

        assert Settings().log_level == "WARNING"

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError) as exc_info:
            Settings()

        assert "LOG_LEVEL must be a standard logging level name" in str(exc_info.value)
