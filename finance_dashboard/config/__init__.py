"""Configuration package."""

from finance_dashboard.config.settings import (
    AppSettings,
    GeminiSettings,
    LocaleSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "LocaleSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
