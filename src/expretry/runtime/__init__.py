"""Runtime layer: retry execution, concurrency primitives and observability."""

from .concurrency import HandleState, ResultHandle, Settled, spawn_task, spawn_thread
from .observability import configure_logging, configure_logging_from_settings, get_logger, log_context
from .retry import NO_RETRY, Backoff, ExponentialBackoff, RetryExecutor, RetryPolicy, retry

__all__ = [
    # Retry
    "Backoff",
    "ExponentialBackoff",
    "RetryPolicy",
    "NO_RETRY",
    "RetryExecutor",
    "retry",
    # Concurrency
    "HandleState",
    "ResultHandle",
    "Settled",
    "spawn_thread",
    "spawn_task",
    # Observability
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "log_context",
]
