"""
Configuration Management for Kesi Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The fee rate is NOT configuration - it is a persisted user setting
(see kesi_ledger.services.storage). Only its default lives here.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KESI_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path(".kesi_ledger"),
        description="Directory holding the local ledger file"
    )
    file_name: str = Field(
        default="ledger.json",
        min_length=1,
        description="Name of the key-value JSON file inside data_dir"
    )
    # Browsers give localStorage roughly 5 MiB per origin
    max_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Maximum size of the stored file in bytes"
    )

    # Record keys within the store
    transactions_key: str = Field(
        default="kesiLedgerTransactions",
        description="Key of the transactions record"
    )
    fee_rate_key: str = Field(
        default="kesiLedgerServiceFeeRate",
        description="Key of the service fee rate record"
    )
    audit_log_key: str = Field(
        default="kesiLedgerAuditLog",
        description="Key of the audit log record"
    )
    audit_log_limit: int = Field(
        default=500,
        ge=0,
        description="Maximum number of audit events kept in the store"
    )

    @property
    def file_path(self) -> Path:
        """Full path of the key-value JSON file."""
        return self.data_dir / self.file_name


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (category suggestion)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=256,
        ge=16,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Ledger defaults
    default_fee_rate: Decimal = Field(
        default=Decimal("1"),
        ge=0,
        description="Service fee rate (percent) used when none is stored"
    )
    currency_label: str = Field(
        default="MMK",
        description="Currency label shown next to amounts"
    )
    report_title: str = Field(
        default="Kesi Ledger - Transaction Report",
        min_length=1,
        description="Title printed on exported reports"
    )

    # Validation thresholds
    max_transaction_amount: Decimal = Field(
        default=Decimal("100000000"),
        gt=0,
        description="Amount above which a transaction is flagged as suspicious"
    )
    future_date_tolerance_days: int = Field(
        default=0,
        ge=0,
        description="How many days in the future a transaction date can be"
    )

    @field_validator('currency_label')
    @classmethod
    def normalize_currency_label(cls, v: str) -> str:
        """Currency labels are shown upper-case."""
        return v.strip().upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration
    # (the ledger works without a Gemini key)

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    "<setting_name>_error" entries for the ones that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = {
        "storage": lambda: settings.storage,
        "gemini": lambda: settings.gemini,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
