"""Structured errors for retry execution.

Exhausting the retry budget is not an error: the handle simply resolves to the
last result. These types cover the remaining failure paths, namely misuse of a
result handle and operations that raise instead of returning a value.
Uses Pydantic for validation and serialization.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ErrorCode(StrEnum):
    """Standard error codes for retry failures."""
    ALREADY_RESOLVED = "ALREADY_RESOLVED"
    OPERATION_FAILED = "OPERATION_FAILED"
    NO_EVENT_LOOP = "NO_EVENT_LOOP"
    UNKNOWN = "UNKNOWN"


class RetryError(BaseModel):
    """Structured error for a failed retry invocation.

    Attributes:
        operation: Name of the operation being retried
        message: Human-readable error message
        code: Machine-readable error code
        attempts: Operation calls made before the failure
        details: Optional detailed information (e.g., stack trace)
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Retry Error",
            "description": "Structured error from a retry invocation",
            "examples": [{
                "operation": "probe_ready",
                "message": "connection refused",
                "code": "OPERATION_FAILED",
                "attempts": 3,
            }],
        },
    )

    operation: Annotated[str, Field(min_length=1, description="Operation that produced the error")]
    message: Annotated[str, Field(min_length=1, description="Human-readable error message")]
    code: ErrorCode = Field(default=ErrorCode.UNKNOWN, description="Machine-readable error classification")
    attempts: Annotated[int, Field(ge=0)] = 0
    details: str | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and fall back to the type name for empty messages."""
        if isinstance(v, Exception):
            return str(v) or type(v).__name__
        return v

    @classmethod
    def from_exception(
        cls,
        operation: str,
        exc: Exception,
        *,
        code: ErrorCode = ErrorCode.OPERATION_FAILED,
        attempts: int = 0,
        include_trace: bool = True,
    ) -> Self:
        """Create a RetryError from an exception raised by an operation."""
        return cls(
            operation=operation,
            message=exc,  # type: ignore[arg-type]
            code=code,
            attempts=attempts,
            details="".join(traceback.format_exception(exc)) if include_trace else None,
        )

    def render(self) -> str:
        """Format as a single diagnostic line."""
        suffix = f" after {self.attempts} attempt(s)" if self.attempts else ""
        return f"**{self.operation}** [{self.code}]{suffix}: {self.message}"

    def __str__(self) -> str:
        return self.render()


class RetryException(Exception):
    """Exception carrying a structured RetryError."""

    def __init__(self, error: RetryError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @classmethod
    def from_exception(
        cls,
        operation: str,
        exc: Exception,
        *,
        code: ErrorCode = ErrorCode.OPERATION_FAILED,
        attempts: int = 0,
    ) -> RetryException:
        """Wrap an operation exception; callers should raise it ``from exc``."""
        return cls(RetryError.from_exception(operation, exc, code=code, attempts=attempts))

    @classmethod
    def with_code(cls, code: ErrorCode, message: str, *, operation: str = "expretry") -> RetryException:
        return cls(RetryError(operation=operation, message=message, code=code))
