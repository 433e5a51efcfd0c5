"""Settled outcome of a single operation call.

A retry loop records every attempt as either a fulfilled value or a rejected
exception, so an exception can be compared, retried or surfaced the same way
a returned value is.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class SettledStatus(StrEnum):
    """Status of a settled operation."""
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Settled(Generic[T]):
    """Result of a settled operation (success or failure).

    Attributes:
        status: 'fulfilled' or 'rejected'
        value: Result value if fulfilled
        error: Exception if rejected
    """

    status: SettledStatus
    value: T | None = None
    error: Exception | None = None

    @property
    def is_fulfilled(self) -> bool:
        return self.status == SettledStatus.FULFILLED

    @property
    def is_rejected(self) -> bool:
        return self.status == SettledStatus.REJECTED

    def matches(self, predicate: Callable[[T], object]) -> bool:
        """Whether this is a fulfilled value accepted by predicate."""
        return self.is_fulfilled and bool(predicate(self.value))  # type: ignore[arg-type]


def fulfilled(value: T) -> Settled[T]:
    """Create a fulfilled Settled."""
    return Settled(SettledStatus.FULFILLED, value=value)


def rejected(error: Exception) -> Settled[T]:
    """Create a rejected Settled."""
    return Settled(SettledStatus.REJECTED, error=error)
