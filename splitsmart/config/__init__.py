"""Configuration package."""

from splitsmart.config.settings import (
    AppSettings,
    GeminiSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
