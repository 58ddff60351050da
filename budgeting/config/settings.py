"""
Configuration for Personal Budgeting

Every tunable value is read from the environment (or a local .env file)
through pydantic-settings, one settings class per concern:

- GoogleSheetsSettings  GOOGLE_SHEETS_*  spreadsheet storage
- ExtractorSettings     EXTRACTOR_*      offline text-to-transaction parsing
- AppSettings           (no prefix)      display, logging, validation limits

Storage settings are the only required ones. When they are missing the
app still starts and keeps data in memory.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Where accounts, categories, transactions and the audit log live."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file (JSON) with access to the spreadsheet"
    )
    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        description="Key of the spreadsheet, taken from its URL"
    )

    # One worksheet (tab) per entity; created with a header row when missing
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Tab holding one row per account"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Tab holding one JSON category list per (user, account)"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Tab holding one row per confirmed transaction"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Append-only tab of audit events"
    )

    @field_validator('credentials_path')
    @classmethod
    def warn_if_key_file_missing(cls, v: str) -> str:
        """The key file may be mounted after startup, so only warn."""
        if not Path(v).is_file():
            import warnings
            warnings.warn(
                f"No service account key file at {v}. "
                "Google Sheets storage will fail to connect until it exists."
            )
        return v


class ExtractorSettings(BaseSettings):
    """Offline text-to-transaction extractor tuning."""

    model_config = SettingsConfigDict(
        env_prefix="EXTRACTOR_",
        extra="ignore"
    )

    max_window_tokens: int = Field(
        default=4,
        ge=1,
        le=8,
        description="Widest run of input tokens compared against keywords"
    )
    use_builtin_synonyms: bool = Field(
        default=True,
        description="Widen category keywords with the built-in synonym table"
    )


class AppSettings(BaseSettings):
    """
    Display, logging and validation settings.

    Read from plain environment variables and the .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Deployment name shown in logs (development, production, ...)"
    )
    debug_mode: bool = Field(
        default=False,
        description="Show extra diagnostics in the UI"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )

    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Currency symbol shown next to amounts"
    )

    # Limits used by TransactionValidator; crossing them is a warning, not an error
    max_transaction_amount: float = Field(
        default=100000.0,
        gt=0,
        description="Amounts above this are flagged for a second look"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="Days ahead of today a transaction may be dated without a warning"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def normalise_log_level(cls, v) -> str:
        level = str(v or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Entry point to all settings groups.

    Groups are built on access, so a missing storage configuration does
    not stop the extractor or app settings from loading.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def extractor(self) -> ExtractorSettings:
        return ExtractorSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


SETTINGS_GROUPS = ("google_sheets", "extractor", "app")


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings; get_settings.cache_clear() forces a reload."""
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every settings group.

    Returns:
        {group: loaded_ok}, plus "<group>_error" with the message for
        each group that failed. Shown on the Settings page.
    """
    settings = get_settings()
    results = {}

    for group in SETTINGS_GROUPS:
        try:
            getattr(settings, group)
            results[group] = True
        except Exception as e:
            results[group] = False
            results[f"{group}_error"] = str(e)

    return results
