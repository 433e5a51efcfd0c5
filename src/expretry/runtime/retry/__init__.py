"""Exponential backoff retries with detached execution.

Example:
    >>> from expretry.runtime.retry import RetryExecutor, RetryPolicy
    >>>
    >>> executor = RetryExecutor(RetryPolicy(max_retries=5, base_delay_ms=100, backoff_factor=1.5))
    >>> handle = executor.invoke(True, is_ready, "http://svc/ready")
    >>> # ... caller keeps working ...
    >>> if handle.result() is not True:
    ...     raise SystemExit("service never became ready")
"""

from .backoff import Backoff, ExponentialBackoff
from .executor import RetryExecutor, retry
from .policy import NO_RETRY, RetryPolicy

__all__ = [
    # Backoff
    "Backoff",
    "ExponentialBackoff",
    # Policy
    "RetryPolicy",
    "NO_RETRY",
    # Execution
    "RetryExecutor",
    "retry",
]
