"""Configuration management using pydantic-settings."""

from .settings import (
    LoggingSettings,
    RetrycaseSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "LoggingSettings",
    "RetrySettings",
    "RetrycaseSettings",
    "clear_settings_cache",
    "get_settings",
]
