"""
Tests for configuration loading.
"""

from decimal import Decimal
from pathlib import Path

import pytest

from kesi_ledger.config import (
    AppSettings,
    GeminiSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestStorageSettings:
    """Tests for StorageSettings."""

    def test_defaults(self):
        """Test the record keys match the web app."""
        settings = StorageSettings()
        assert settings.transactions_key == "kesiLedgerTransactions"
        assert settings.fee_rate_key == "kesiLedgerServiceFeeRate"
        assert settings.file_path == Path(".kesi_ledger") / "ledger.json"

    def test_env_override(self, monkeypatch, tmp_path):
        """Test KESI_STORAGE_ variables are read."""
        monkeypatch.setenv("KESI_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("KESI_STORAGE_AUDIT_LOG_LIMIT", "10")
        settings = StorageSettings()
        assert settings.data_dir == tmp_path
        assert settings.audit_log_limit == 10


class TestAppSettings:
    """Tests for AppSettings."""

    def test_default_fee_rate(self):
        """Test the default rate is 1%."""
        assert AppSettings(_env_file=None).default_fee_rate == Decimal("1")

    def test_currency_label_upper_cased(self):
        """Test the currency label is normalised."""
        assert AppSettings(_env_file=None, currency_label=" mmk ").currency_label == "MMK"

    def test_negative_default_rate_rejected(self):
        """Test the default rate cannot be negative."""
        with pytest.raises(ValueError):
            AppSettings(_env_file=None, default_fee_rate=Decimal("-1"))


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_missing_gemini_key_reported(self, monkeypatch):
        """Test the ledger sections pass without a Gemini key."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        status = validate_all_settings()
        assert status["storage"] is True
        assert status["app"] is True
        assert status["gemini"] is False
        assert "gemini_error" in status

    def test_gemini_configured(self, monkeypatch):
        """Test a key in the environment is picked up."""
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        assert GeminiSettings().api_key == "test-key"
        assert validate_all_settings()["gemini"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
