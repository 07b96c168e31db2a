"""
Configuration Management for Hours Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets record store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    work_logs_sheet_name: str = Field(
        default="WorkLogs",
        description="Name of the sheet for work log entries"
    )
    payments_sheet_name: str = Field(
        default="Payments",
        description="Name of the sheet for payment entries"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )
    meta_sheet_name: str = Field(
        default="Meta",
        description="Name of the sheet holding the schema version"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

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
        default=512,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class ClockifySettings(BaseSettings):
    """
    Clockify shared report configuration.

    The report's own rate field is stale, so every imported
    entry is billed at `fixed_rate` instead.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOCKIFY_",
        extra="ignore"
    )

    report_url: str = Field(
        default="",
        description="URL of the Clockify shared report (JSON)"
    )
    fixed_rate: Decimal = Field(
        default=Decimal("8.12"),
        gt=0,
        description="Hourly rate applied to every imported entry"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for the report fetch"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.report_url)


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

    # Session
    account_id: str = Field(
        default="local",
        min_length=1,
        description="Account whose records are loaded"
    )

    # Currencies
    earnings_currency: str = Field(
        default="USD",
        description="Currency hourly rates are denominated in"
    )
    local_currency: str = Field(
        default="IRT",
        description="Currency payments are received in"
    )

    # Form defaults
    default_work_log_rate: Decimal = Field(
        default=Decimal("8.12"),
        ge=0,
        description="Rate pre-filled in the manual work log form"
    )


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

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def clockify(self) -> ClockifySettings:
        return ClockifySettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    `<name>_error` entry for each one that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    checks = {
        "google_sheets": lambda: settings.google_sheets,
        "gemini": lambda: settings.gemini,
        "clockify": lambda: settings.clockify,
        "app": lambda: settings.app,
    }

    for name, load in checks.items():
        try:
            loaded = load()
            if name == "clockify" and not loaded.is_configured:
                results[name] = False
                results[f"{name}_error"] = "CLOCKIFY_REPORT_URL is not set"
                continue
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
