"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from expretry.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.base_delay_ms
    100
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # EXPRETRY_RETRY_MAX_RETRIES=5
    # EXPRETRY_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeInt, PositiveFloat, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Default retry policy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPRETRY_RETRY_",
        extra="ignore",
    )

    max_retries: NonNegativeInt = Field(default=3, description="Retries after the first attempt")
    base_delay_ms: NonNegativeInt = Field(default=100, description="Delay before the first retry in milliseconds")
    backoff_factor: PositiveFloat = Field(default=2.0, description="Multiplier applied per retry")
    skip_final_delay: bool = Field(default=False, description="Skip the pause after the last failed attempt")
    on_error: Literal["propagate", "retry"] = "propagate"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPRETRY_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    colors: bool | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ExpretrySettings(BaseSettings):
    """Root settings for expretry.

    Loads configuration from environment variables with EXPRETRY_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        EXPRETRY_DEBUG=true
        EXPRETRY_RETRY_BASE_DELAY_MS=250
        EXPRETRY_RETRY_ON_ERROR=retry
        EXPRETRY_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPRETRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    # Nested settings (loaded with EXPRETRY_RETRY_, EXPRETRY_LOG_)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @computed_field
    @property
    def log_level(self) -> str:
        """Effective log level, forced to DEBUG in debug mode."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> ExpretrySettings:
    """Get the global settings instance (cached)."""
    return ExpretrySettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
