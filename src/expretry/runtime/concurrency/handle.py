"""Single-assignment result handle.

A ResultHandle is created pending by the executor, written exactly once by
the background retry loop, and read by the caller. Reads can block
(``result()``), poll (``done()`` / ``state``) or await (``await handle``).

Example:
    >>> handle = executor.invoke(True, probe, "db:5432")
    >>> handle.done()
    False
    >>> handle.result()  # blocks until the retry loop resolves it
    True
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Generator
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

from expretry.foundation.errors import ErrorCode, RetryException

T = TypeVar("T")


class HandleState(StrEnum):
    """Handle lifecycle states."""
    PENDING = "pending"    # Retry loop still running
    RESOLVED = "resolved"  # Holds a value (target match or last result)
    FAILED = "failed"      # Holds an exception


@dataclass(slots=True, eq=False)
class ResultHandle(Generic[T]):
    """Write-once, read-many container for the final outcome of a retry loop.

    Backed by a ``concurrent.futures.Future`` so it can be shared safely
    between the worker thread and any number of readers.

    Attributes:
        name: Optional name for debugging (usually the operation name)
    """

    name: str | None = None
    _future: Future[T] = field(default_factory=Future, repr=False)
    _attempts: int = field(default=0, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def state(self) -> HandleState:
        """Current handle state."""
        if not self._future.done():
            return HandleState.PENDING
        return HandleState.FAILED if self._future.exception() is not None else HandleState.RESOLVED

    @property
    def attempts(self) -> int:
        """Operation calls made; final once the handle is no longer pending."""
        return self._attempts

    def done(self) -> bool:
        """Whether the handle has been written."""
        return self._future.done()

    # ── Write side (retry loop only) ──────────────────────────────────────

    def resolve(self, value: T, *, attempts: int | None = None) -> None:
        """Store the final value.

        Raises:
            RetryException: ALREADY_RESOLVED if the handle was written before
        """
        self._write(lambda: self._future.set_result(value), attempts)

    def fail(self, exc: BaseException, *, attempts: int | None = None) -> None:
        """Store an exception to be raised by ``result()``.

        Raises:
            RetryException: ALREADY_RESOLVED if the handle was written before
        """
        self._write(lambda: self._future.set_exception(exc), attempts)

    def _write(self, setter: Callable[[], None], attempts: int | None) -> None:
        # attempts must be visible before readers wake up
        with self._lock:
            if self._future.done():
                raise self._already_resolved()
            if attempts is not None:
                self._attempts = attempts
            setter()

    def _already_resolved(self) -> RetryException:
        return RetryException.with_code(
            ErrorCode.ALREADY_RESOLVED,
            f"Result handle is already {self.state}",
            operation=self.name or "expretry",
        )

    # ── Read side ──────────────────────────────────────────────────────────

    def result(self, timeout: float | None = None) -> T:
        """Block until resolved and return the value.

        Args:
            timeout: Seconds to wait; None waits without limit

        Raises:
            TimeoutError: If timeout expires while still pending
            Exception: The stored exception if the handle failed
        """
        return self._future.result(timeout)

    def exception(self, timeout: float | None = None) -> BaseException | None:
        """Block until resolved and return the stored exception, or None."""
        return self._future.exception(timeout)

    def add_done_callback(self, fn: Callable[[ResultHandle[T]], object]) -> None:
        """Call fn(handle) once resolved; immediately if already done."""
        self._future.add_done_callback(lambda _: fn(self))

    def __await__(self) -> Generator[object, None, T]:
        # shield keeps a cancelled awaiter from cancelling the shared future
        return asyncio.shield(asyncio.wrap_future(self._future)).__await__()
