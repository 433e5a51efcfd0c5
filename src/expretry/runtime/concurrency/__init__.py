"""Concurrency primitives for detached retry execution.

Key Components:
    - ResultHandle: Write-once handle read by blocking, polling or awaiting
    - spawn_thread / spawn_task: One detached unit of work per invocation
    - Settled: Fulfilled-or-rejected outcome of a single call

Example:
    >>> from expretry.runtime.concurrency import ResultHandle, spawn_thread
    >>> handle: ResultHandle[int] = ResultHandle(name="answer")
    >>> spawn_thread(lambda: handle.resolve(42))
    >>> handle.result()
    42
"""

from __future__ import annotations

from .handle import HandleState, ResultHandle
from .settled import Settled, SettledStatus, fulfilled, rejected
from .task import pending_tasks, spawn_task, spawn_thread

__all__ = [
    # Handle
    "HandleState",
    "ResultHandle",
    # Outcomes
    "Settled",
    "SettledStatus",
    "fulfilled",
    "rejected",
    # Spawning
    "spawn_thread",
    "spawn_task",
    "pending_tasks",
]
