"""Error handling for expretry.

- ErrorCode: Standard error codes for retry failures
- RetryError/RetryException: Structured errors and exceptions
- Json type aliases used across logging and error payloads
"""

from .errors import ErrorCode, RetryError, RetryException
from .types import JsonDict, JsonValue

__all__ = [
    # Core errors
    "ErrorCode", "RetryError", "RetryException",
    # Type aliases
    "JsonDict", "JsonValue",
]
