"""Exponential backoff retry executor.

Runs a fallible operation in a detached unit of work until it produces the
desired value or the retry budget is spent, and hands the outcome back through
a ResultHandle. The caller never blocks unless it chooses to read the handle.

Loop for one invocation (attempt starts at 0):
    1. Call the operation
    2. Match -> resolve the handle with the result, done
    3. Otherwise sleep policy.get_delay(attempt) (skipped after the last
       attempt only when skip_final_delay is set)
    4. attempt == max_retries -> resolve with the last result, done
    5. attempt += 1, back to 1

So at most ``max_retries + 1`` calls are made. Exhaustion is not an error:
callers compare the resolved value with the target themselves.

Example:
    >>> executor = RetryExecutor.create(max_retries=5, base_delay_ms=100, backoff_factor=1.5)
    >>> handle = executor(True, port_open, "db", 5432)
    >>> handle.result()
    True
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import itertools
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from expretry.foundation.errors import RetryException
from expretry.runtime.concurrency import ResultHandle, Settled, fulfilled, rejected, spawn_task, spawn_thread
from expretry.runtime.observability import BoundLogger, get_logger

from .backoff import Backoff
from .policy import RetryPolicy

if TYPE_CHECKING:
    from expretry.foundation.config import RetrySettings

T = TypeVar("T")

Predicate = Callable[[T], object]
OnRetry = Callable[[int, object, float], None]

_invocations = itertools.count(1)


def _operation_name(operation: Callable[..., object]) -> str:
    if isinstance(operation, functools.partial):
        return _operation_name(operation.func)
    return getattr(operation, "__qualname__", None) or repr(operation)


def _equals(target: object) -> Predicate[object]:
    return lambda result: result == target


class RetryExecutor:
    """Retries an operation with exponential backoff in the background.

    Holds an immutable RetryPolicy shared by every invocation; each invocation
    gets its own worker, attempt counter and ResultHandle, so concurrent
    invocations never interfere.

    Args:
        policy: Retry policy (default: RetryPolicy())
        backoff: Optional schedule replacing the policy's exponential one
        on_retry: Called as on_retry(attempt, outcome, delay_seconds) before
            each pause; outcome is the returned value or the raised exception

    Example:
        >>> executor = RetryExecutor(RetryPolicy(max_retries=3, base_delay_ms=50))
        >>> handle = executor.invoke_until(lambda r: r.status == 200, client.get, "/health")
        >>> response = handle.result(timeout=10)
    """

    __slots__ = ("_policy", "_backoff", "_on_retry")

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        backoff: Backoff | None = None,
        on_retry: OnRetry | None = None,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._backoff: Backoff = backoff or self._policy.backoff
        self._on_retry = on_retry

    @classmethod
    def create(cls, max_retries: int, base_delay_ms: int, backoff_factor: float, **kwargs: object) -> RetryExecutor:
        """Build from the three core policy parameters; extra kwargs go to RetryPolicy."""
        return cls(RetryPolicy(max_retries=max_retries, base_delay_ms=base_delay_ms,
                               backoff_factor=backoff_factor, **kwargs))

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None, *, on_retry: OnRetry | None = None) -> RetryExecutor:
        return cls(RetryPolicy.from_settings(settings), on_retry=on_retry)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    # ─────────────────────────────────────────────────────────────────────
    # Thread-backed invocation
    # ─────────────────────────────────────────────────────────────────────

    def invoke(self, target: T, operation: Callable[..., T], /, *args: object, **kwargs: object) -> ResultHandle[T]:
        """Retry operation(*args, **kwargs) until it returns a value equal to target.

        Returns immediately with a pending handle; the loop runs in a new
        daemon thread.
        """
        return self.invoke_until(_equals(target), operation, *args, **kwargs)

    __call__ = invoke

    def invoke_until(
        self, predicate: Predicate[T], operation: Callable[..., T], /, *args: object, **kwargs: object,
    ) -> ResultHandle[T]:
        """Retry operation(*args, **kwargs) until predicate(result) is truthy."""
        n = next(_invocations)
        name = _operation_name(operation)
        handle: ResultHandle[T] = ResultHandle(name=name)
        log = get_logger("expretry.retry", operation=name, invocation=n)
        spawn_thread(functools.partial(self._run, handle, predicate, operation, args, kwargs, log),
                     name=f"expretry-{n}")
        return handle

    def _run(
        self, handle: ResultHandle[T], predicate: Predicate[T], operation: Callable[..., T],
        args: tuple[object, ...], kwargs: dict[str, object], log: BoundLogger,
    ) -> None:
        calls = 0
        try:
            for attempt in itertools.count():
                log.debug("attempt", attempt=attempt)
                outcome = _call(operation, args, kwargs)
                calls += 1
                if self._stop_on_error(outcome):
                    return self._settle(handle, outcome, calls, log)
                if outcome.matches(predicate):
                    return self._succeed(handle, outcome, calls, log)
                if self._policy.should_pause(attempt):
                    time.sleep(self._pause(attempt, outcome, log))
                if self._policy.is_final(attempt):
                    return self._settle(handle, outcome, calls, log)
        except BaseException as exc:
            self._fail(handle, exc, calls, log)
            if not isinstance(exc, Exception):
                raise

    # ─────────────────────────────────────────────────────────────────────
    # Asyncio-backed invocation
    # ─────────────────────────────────────────────────────────────────────

    def ainvoke(self, target: T, operation: Callable[..., object], /, *args: object, **kwargs: object) -> ResultHandle[T]:
        """Asyncio form of invoke(): one task per invocation on the running loop.

        The operation may be sync or return an awaitable. The returned handle
        can be awaited directly (``await executor.ainvoke(...)``).

        Raises:
            RetryException: NO_EVENT_LOOP when called without a running loop
        """
        return self.ainvoke_until(_equals(target), operation, *args, **kwargs)

    def ainvoke_until(
        self, predicate: Predicate[T], operation: Callable[..., object], /, *args: object, **kwargs: object,
    ) -> ResultHandle[T]:
        """Asyncio form of invoke_until()."""
        n = next(_invocations)
        name = _operation_name(operation)
        handle: ResultHandle[T] = ResultHandle(name=name)
        log = get_logger("expretry.retry", operation=name, invocation=n)
        spawn_task(self._arun(handle, predicate, operation, args, kwargs, log), name=f"expretry-{n}")
        return handle

    async def _arun(
        self, handle: ResultHandle[T], predicate: Predicate[T], operation: Callable[..., object],
        args: tuple[object, ...], kwargs: dict[str, object], log: BoundLogger,
    ) -> None:
        calls = 0
        try:
            for attempt in itertools.count():
                log.debug("attempt", attempt=attempt)
                outcome: Settled[T] = await _acall(operation, args, kwargs)
                calls += 1
                if self._stop_on_error(outcome):
                    return self._settle(handle, outcome, calls, log)
                if outcome.matches(predicate):
                    return self._succeed(handle, outcome, calls, log)
                if self._policy.should_pause(attempt):
                    await asyncio.sleep(self._pause(attempt, outcome, log))
                if self._policy.is_final(attempt):
                    return self._settle(handle, outcome, calls, log)
        except BaseException as exc:
            self._fail(handle, exc, calls, log)
            if not isinstance(exc, Exception):
                raise

    # ─────────────────────────────────────────────────────────────────────
    # Shared steps
    # ─────────────────────────────────────────────────────────────────────

    def _stop_on_error(self, outcome: Settled[T]) -> bool:
        return outcome.is_rejected and self._policy.on_error == "propagate"

    def _pause(self, attempt: int, outcome: Settled[T], log: BoundLogger) -> float:
        delay = self._backoff.delay(attempt)
        log.info("backing off", attempt=attempt, max_retries=self._policy.max_retries,
                 delay_ms=round(delay * 1000), final=self._policy.is_final(attempt))
        if self._on_retry:
            self._on_retry(attempt, outcome.value if outcome.is_fulfilled else outcome.error, delay)
        return delay

    # Handle writes come before the log call so a failing renderer cannot leave
    # the handle pending.

    def _succeed(self, handle: ResultHandle[T], outcome: Settled[T], calls: int, log: BoundLogger) -> None:
        handle.resolve(outcome.value, attempts=calls)  # type: ignore[arg-type]
        log.info("succeeded", attempts=calls)

    def _settle(self, handle: ResultHandle[T], outcome: Settled[T], calls: int, log: BoundLogger) -> None:
        """Resolve with the last outcome once the loop ends without a match."""
        if outcome.error is not None:
            handle.fail(_wrap(handle, outcome.error, calls), attempts=calls)
            log.error("operation raised", attempts=calls, error=repr(outcome.error))
            return
        handle.resolve(outcome.value, attempts=calls)  # type: ignore[arg-type]
        log.warning("retries exhausted", attempts=calls)

    def _fail(self, handle: ResultHandle[T], exc: BaseException, calls: int, log: BoundLogger) -> None:
        """Fail the handle when the loop itself breaks (predicate, backoff, hook, renderer, cancellation)."""
        if not handle.done():
            handle.fail(_wrap(handle, exc, calls) if isinstance(exc, Exception) else exc, attempts=calls)
        log.error("retry loop failed", attempts=calls, error=repr(exc))

    def __repr__(self) -> str:
        p = self._policy
        return (f"RetryExecutor(max_retries={p.max_retries}, base_delay_ms={p.base_delay_ms}, "
                f"backoff_factor={p.backoff_factor})")


def _call(operation: Callable[..., T], args: tuple[object, ...], kwargs: dict[str, object]) -> Settled[T]:
    try:
        return fulfilled(operation(*args, **kwargs))
    except Exception as exc:
        return rejected(exc)


async def _acall(operation: Callable[..., object], args: tuple[object, ...], kwargs: dict[str, object]) -> Settled[T]:
    try:
        value = operation(*args, **kwargs)
        if inspect.isawaitable(value):
            value = await value
        return fulfilled(value)  # type: ignore[arg-type]
    except Exception as exc:
        return rejected(exc)


def _wrap(handle: ResultHandle[T], exc: Exception, calls: int) -> RetryException:
    """RetryException(OPERATION_FAILED) chained to the original exception."""
    wrapped = RetryException.from_exception(handle.name or "operation", exc, attempts=calls)
    wrapped.__cause__ = exc
    return wrapped


def retry(
    target: T,
    operation: Callable[..., T],
    /,
    *args: object,
    max_retries: int = 3,
    base_delay_ms: int = 100,
    backoff_factor: float = 2.0,
    **kwargs: object,
) -> ResultHandle[T]:
    """One-shot helper: build an executor and invoke it once.

    Example:
        >>> handle = retry(200, fetch_status, "https://svc/health", max_retries=5)
        >>> handle.result() == 200
    """
    return RetryExecutor.create(max_retries, base_delay_ms, backoff_factor).invoke(target, operation, *args, **kwargs)
