"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated defaults for retry policies and logging.
Supports .env files and nested configuration.

Example:
    >>> from retrycase.foundation.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.retry.max_attempts)
    5
    >>> print(settings.logging.level)
    'INFO'

    # Or with environment variables:
    # RETRYCASE_RETRY_MAX_ATTEMPTS=10
    # RETRYCASE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Default retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_RETRY_",
        extra="ignore",
    )

    max_attempts: int = Field(default=5, description="Attempts made by policies built from settings")
    base_delay: NonNegativeFloat = Field(default=1.0, description="First delay in seconds")
    max_delay: NonNegativeFloat = Field(default=60.0, description="Maximum delay in seconds")
    multiplier: PositiveFloat = Field(default=2.0, description="Exponential growth factor")
    jitter: bool = True

    @model_validator(mode="after")
    def _check_bounds(self) -> RetrySettings:
        if self.max_delay < self.base_delay:
            raise ValueError(f"max_delay ({self.max_delay}) must be >= base_delay ({self.base_delay})")
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"


class RetrycaseSettings(BaseSettings):
    """Root settings for retrycase.

    Loads configuration from environment variables with RETRYCASE_ prefix.

    Example environment variables:
        RETRYCASE_DEBUG=true
        RETRYCASE_RETRY_BASE_DELAY=0.5
        RETRYCASE_RETRY_JITTER=false
        RETRYCASE_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug logging of retry scheduling")

    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @computed_field
    @property
    def log_level(self) -> str:
        """Effective log level (debug mode forces DEBUG)."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> RetrycaseSettings:
    """Get the global settings instance (cached)."""
    return RetrycaseSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
