"""Retry policy configuration.

An immutable policy owns the backoff parameters and the loop's termination
rules. One policy is shared read-only by every invocation of an executor.

Optimizations:
- Frozen for immutability and hashability
- Backoff schedule built once per policy
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .backoff import ExponentialBackoff

if TYPE_CHECKING:
    from expretry.foundation.config import RetrySettings


OnError = Literal["propagate", "retry"]


class RetryPolicy(BaseModel):
    """Immutable retry policy.

    Attributes:
        max_retries: Retries after the first attempt (0 = a single attempt)
        base_delay_ms: Delay before the first retry, in milliseconds; also accepts a timedelta
        backoff_factor: Multiplier applied to the delay on each successive retry
        skip_final_delay: Skip the pause after the last failed attempt
        on_error: "propagate" stops on an operation exception; "retry" treats it as a mismatch

    Example:
        >>> policy = RetryPolicy(max_retries=5, base_delay_ms=100, backoff_factor=1.5)
        >>> [policy.delay_ms(i) for i in range(4)]
        [100, 150, 225, 337]
    """

    model_config = ConfigDict(
        frozen=True,
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={
            "title": "Retry Policy",
            "description": "Configuration for exponential backoff retries",
            "examples": [{"max_retries": 5, "base_delay_ms": 100, "backoff_factor": 1.5}],
        },
    )

    max_retries: Annotated[int, Field(ge=0)] = 3
    base_delay_ms: Annotated[int, Field(ge=0)] = 100
    backoff_factor: Annotated[float, Field(gt=0)] = 2.0
    skip_final_delay: bool = False
    on_error: OnError = "propagate"

    _backoff: ExponentialBackoff = PrivateAttr()

    @field_validator("base_delay_ms", mode="before")
    @classmethod
    def _from_timedelta(cls, v: int | timedelta) -> int:
        """Accept a timedelta, truncated to whole milliseconds."""
        return v // timedelta(milliseconds=1) if isinstance(v, timedelta) else v

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None) -> RetryPolicy:
        """Build a policy from RetrySettings (defaults to the global settings)."""
        if settings is None:
            from expretry.foundation.config import get_settings
            settings = get_settings().retry
        return cls.model_validate(settings.model_dump())

    def model_post_init(self, __context: Any) -> None:
        self._backoff = ExponentialBackoff(base_ms=self.base_delay_ms, factor=self.backoff_factor)

    @property
    def max_attempts(self) -> int:
        """Upper bound on operation calls per invocation."""
        return self.max_retries + 1

    @property
    def backoff(self) -> ExponentialBackoff:
        """Backoff schedule for this policy."""
        return self._backoff

    @property
    def base_delay(self) -> timedelta:
        return timedelta(milliseconds=self.base_delay_ms)

    def delay_ms(self, attempt: int) -> int:
        """Delay after the given 0-indexed failed attempt, in milliseconds."""
        return self.backoff.delay_ms(attempt)

    def get_delay(self, attempt: int) -> float:
        """Delay after the given 0-indexed failed attempt, in seconds."""
        return self.backoff.delay(attempt)

    def is_final(self, attempt: int) -> bool:
        """Whether the 0-indexed attempt is the last one the budget allows."""
        return attempt >= self.max_retries

    def should_pause(self, attempt: int) -> bool:
        """Whether to sleep after the given failed attempt."""
        return not (self.skip_final_delay and self.is_final(attempt))

    def __hash__(self) -> int:
        return hash((self.max_retries, self.base_delay_ms, self.backoff_factor, self.skip_final_delay, self.on_error))


# Single attempt, no pause: useful for probes that must not retry
NO_RETRY = RetryPolicy(max_retries=0, skip_final_delay=True)
