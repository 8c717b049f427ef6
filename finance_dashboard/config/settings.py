"""
Configuration Management for Finance Dashboard

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, the default locale accounts are forced into, input
limits and the categorization model are all read from the environment
(or a .env file) and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINDASH_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json", "memory"] = Field(
        default="json",
        description="Storage backend: 'json' file on disk or in-process 'memory'"
    )
    path: Path = Field(
        default=Path("finance_dashboard_data.json"),
        description="Path of the JSON file used by the 'json' backend"
    )
    key_prefix: str = Field(
        default="finance_dashboard",
        min_length=1,
        description="Prefix for every persisted key"
    )


class LocaleSettings(BaseSettings):
    """
    Default locale configuration.

    Every account is forced into this country and currency on create
    and update.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINDASH_LOCALE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    country_name: str = Field(default="Ghana", description="Country display name")
    country_code: str = Field(
        default="GH",
        min_length=2,
        max_length=2,
        description="ISO 3166-1 alpha-2 country code"
    )
    currency_code: str = Field(
        default="GHS",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code"
    )
    currency_symbol: str = Field(default="GH₵", description="Currency symbol")

    @field_validator("country_code", "currency_code")
    @classmethod
    def upper_case_codes(cls, v: str) -> str:
        return v.upper()


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration used for account categorization."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (categorization is disabled without it)"
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
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per categorization call before giving up"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINDASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Input limits
    min_username_length: int = Field(
        default=3,
        ge=1,
        description="Minimum length of a new username on rename"
    )
    min_password_length: int = Field(
        default=6,
        ge=1,
        description="Minimum length of a new password"
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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def locale(self) -> LocaleSettings:
        return LocaleSettings()

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

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings(settings: Optional[Settings] = None) -> dict[str, Any]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every section that failed to load.
    """
    results = {}
    settings = settings or get_settings()

    for name in ("storage", "locale", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    # Categorization is optional, but report whether it can run
    try:
        results["categorization_enabled"] = settings.gemini.api_key is not None
    except Exception:
        results["categorization_enabled"] = False

    return results
