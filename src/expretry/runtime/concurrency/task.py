"""Detached units of work for retry invocations.

Each retry invocation runs in its own unit of work that outlives the call
that started it:
    - spawn_thread: A fresh daemon thread (no pooling)
    - spawn_task: A fresh asyncio task on the running loop

Both run in a copy of the caller's contextvars context, so bound logging
context follows the work into the background.
"""

from __future__ import annotations

import asyncio
import contextvars
import threading
from collections.abc import Callable, Coroutine
from typing import TypeVar

from expretry.foundation.errors import ErrorCode, RetryException

T = TypeVar("T")

# Strong references to running tasks; the event loop only keeps weak ones
_background: set[asyncio.Task[object]] = set()


def spawn_thread(target: Callable[[], object], *, name: str | None = None) -> threading.Thread:
    """Start target in a new daemon thread and return immediately.

    The thread is never joined by this module; the caller synchronizes through
    whatever target writes to (typically a ResultHandle).
    """
    ctx = contextvars.copy_context()
    thread = threading.Thread(target=ctx.run, args=(target,), name=name, daemon=True)
    thread.start()
    return thread


def spawn_task(coro: Coroutine[object, object, T], *, name: str | None = None) -> asyncio.Task[T]:
    """Schedule coro as a standalone task on the running loop.

    WARNING: This creates an unstructured task that may outlive its caller.

    Raises:
        RetryException: NO_EVENT_LOOP if called outside a running loop
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        raise RetryException.with_code(
            ErrorCode.NO_EVENT_LOOP, "spawn_task requires a running event loop"
        ) from None
    task = loop.create_task(coro, name=name)
    _background.add(task)  # type: ignore[arg-type]
    task.add_done_callback(_background.discard)
    return task


def pending_tasks() -> int:
    """Number of spawned tasks that have not finished yet."""
    return len(_background)
