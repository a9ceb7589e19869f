"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from src.config import AppSettings, AuthSettings, get_settings, validate_all_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:

    def test_defaults(self):
        """Test the out-of-the-box configuration."""
        settings = AppSettings()
        assert settings.storage_backend == "memory"
        assert settings.default_currency == "USD"
        assert settings.max_import_rows == 5000
        assert settings.bootstrap_admin_email is None

    def test_environment_overrides(self, monkeypatch):
        """Test that environment variables are picked up."""
        monkeypatch.setenv("DEFAULT_CURRENCY", "BTC")
        monkeypatch.setenv("MAX_IMPORT_ROWS", "10")
        settings = AppSettings()
        assert settings.default_currency == "BTC"
        assert settings.max_import_rows == 10

    @pytest.mark.parametrize("name,value", [
        ("STORAGE_BACKEND", "postgres"),
        ("DEFAULT_CURRENCY", "EUR"),
        ("LOG_LEVEL", "LOUD"),
        ("MAX_IMPORT_ROWS", "0"),
    ])
    def test_rejects_bad_values(self, monkeypatch, name, value):
        """Test field constraints."""
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            AppSettings()


class TestAuthSettings:

    def test_short_secret_rejected(self, monkeypatch):
        """Test the minimum secret length."""
        monkeypatch.setenv("AUTH_JWT_SECRET", "short")
        with pytest.raises(ValidationError):
            AuthSettings()


class TestValidateAllSettings:

    def test_memory_backend_skips_sheets(self, monkeypatch):
        """Test that Sheets credentials are not required for the memory backend."""
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        results = validate_all_settings()
        assert results == {"app": True, "auth": True}

    def test_sheets_backend_requires_credentials(self, monkeypatch):
        """Test that a missing spreadsheet ID is reported."""
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        results = validate_all_settings()
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results
