"""Foundation layer: configuration and error types."""

from .config import ExpretrySettings, LoggingSettings, RetrySettings, clear_settings_cache, get_settings
from .errors import ErrorCode, RetryError, RetryException

__all__ = [
    "ExpretrySettings",
    "LoggingSettings",
    "RetrySettings",
    "clear_settings_cache",
    "get_settings",
    "ErrorCode",
    "RetryError",
    "RetryException",
]
