"""
Configuration Management for Money Tracker

Every setting comes from the environment (or .env) through pydantic-settings.

DESIGN DECISION: All configuration is read here, once, by the composition
root. Collaborators receive their settings object in their constructor
and never look anything up globally.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
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
    worksheet_rows: int = Field(
        default=1000,
        ge=10,
        description="Initial row count for newly created collection sheets"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing credentials file only warns; it may be mounted at deploy time."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class FirebaseSettings(BaseSettings):
    """Firebase Authentication (identity provider) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Firebase Web API key"
    )
    project_id: Optional[str] = Field(
        default=None,
        description="Firebase project identifier"
    )
    auth_base_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Base URL of the Identity Toolkit REST API"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for each identity request"
    )


class GeminiSettings(BaseSettings):
    """Gemini model configuration for quotes and advice."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    quote_model_name: str = Field(
        default="gemini-1.5-pro",
        description="Model used for stock quote lookups"
    )
    advice_model_name: str = Field(
        default="gemini-1.5-flash",
        description="Model used for the financial summary"
    )
    use_search_grounding: bool = Field(
        default=True,
        description="Ground quote lookups with Google Search"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Upper bound on a single model call"
    )


class AppSettings(BaseSettings):
    """
    Behaviour switches: storage backend, report timezone, currency.

    Unprefixed environment variables, optionally from .env.
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

    storage_backend: str = Field(
        default="sheets",
        pattern="^(sheets|memory)$",
        description="Document store to use"
    )
    timezone: Optional[str] = Field(
        default=None,
        description="IANA zone used for monthly report keys (default: system local)"
    )
    default_currency: str = Field(
        default="TWD",
        min_length=3,
        max_length=3,
        description="Currency code for new accounts"
    )
    top_expenses_in_advice: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many expenses are described to the advisor"
    )

    @field_validator('default_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Settings(BaseSettings):
    """
    One object handed to the composition root.

    Each section is built on access, so a missing Gemini key does not
    stop the ledger from loading.
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
    def firebase(self) -> FirebaseSettings:
        return FirebaseSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings; get_settings.cache_clear() forces a reload."""
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every settings section.

    Returns {section: loaded_ok}, plus a "<section>_error" message
    for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "firebase", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
