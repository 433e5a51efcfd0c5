"""Backoff schedules for retry loops.

ExponentialBackoff computes ``base * factor ** attempt`` in whole milliseconds,
truncating any sub-millisecond remainder. There is deliberately no cap and no
jitter: with factor > 1 the pause grows without bound, and for absurd attempt
counts the float power overflows and raises OverflowError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Implementations compute the delay before the next retry attempt.
    Attempt numbers are 0-indexed (first retry = attempt 0).
    """

    def delay(self, attempt: int) -> float:
        """Calculate delay in seconds for given attempt number.

        Args:
            attempt: 0-indexed retry attempt number

        Returns:
            Delay in seconds before next retry
        """
        ...


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff from a base delay.

    delay_ms = int(base_ms * (factor ^ attempt))

    Attributes:
        base_ms: Delay before the first retry in milliseconds (default: 100)
        factor: Exponential growth factor (default: 2.0)
    """

    base_ms: int = 100
    factor: float = 2.0

    def __post_init__(self) -> None:
        if self.base_ms < 0:
            raise ValueError("base_ms must be >= 0")
        if self.factor <= 0:
            raise ValueError("factor must be > 0")

    def delay_ms(self, attempt: int) -> int:
        if attempt < 0:
            raise ValueError("attempt must be >= 0")
        return int(self.base_ms * self.factor ** attempt)

    def delay(self, attempt: int) -> float:
        return self.delay_ms(attempt) / 1000

    def schedule(self, attempts: int) -> list[int]:
        """First ``attempts`` delays in milliseconds."""
        return [self.delay_ms(i) for i in range(attempts)]
