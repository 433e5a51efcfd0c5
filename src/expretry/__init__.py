"""expretry - Exponential backoff retries that run off the caller's path.

Poll an unreliable or eventually-consistent operation (a flaky network check,
a readiness probe) with bounded, increasingly spaced retries, without blocking
your own control flow.

Quick Start:
    >>> from expretry import RetryExecutor
    >>>
    >>> executor = RetryExecutor.create(max_retries=5, base_delay_ms=100, backoff_factor=1.5)
    >>> handle = executor(True, port_open, "db", 5432)   # returns immediately
    >>> ...                                              # do other work
    >>> handle.result()                                  # True, or the last result
    True

Custom Success Condition:
    >>> handle = executor.invoke_until(lambda r: r.status < 500, session.get, url)

Asyncio:
    >>> status = await executor.ainvoke(200, fetch_status, url)

Configuration (environment):
    EXPRETRY_RETRY_MAX_RETRIES=5
    EXPRETRY_RETRY_BASE_DELAY_MS=100
    EXPRETRY_RETRY_BACKOFF_FACTOR=1.5
    EXPRETRY_LOG_FORMAT=json

    >>> executor = RetryExecutor.from_settings()
"""

from .foundation import (
    ErrorCode,
    ExpretrySettings,
    LoggingSettings,
    RetryError,
    RetryException,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)
from .runtime import (
    NO_RETRY,
    Backoff,
    ExponentialBackoff,
    HandleState,
    ResultHandle,
    RetryExecutor,
    RetryPolicy,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    log_context,
    retry,
)

__version__ = "0.1.0"

__all__ = [
    # Retry
    "RetryExecutor",
    "RetryPolicy",
    "NO_RETRY",
    "Backoff",
    "ExponentialBackoff",
    "retry",
    # Handle
    "ResultHandle",
    "HandleState",
    # Errors
    "ErrorCode",
    "RetryError",
    "RetryException",
    # Settings
    "ExpretrySettings",
    "RetrySettings",
    "LoggingSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "log_context",
]
