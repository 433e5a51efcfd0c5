"""Tests for the single-assignment ResultHandle."""

from __future__ import annotations

import asyncio
import threading

import pytest

from expretry import ErrorCode, HandleState, ResultHandle, RetryException
from expretry.runtime.concurrency import spawn_thread


def test_starts_pending() -> None:
    handle: ResultHandle[int] = ResultHandle(name="healthcheck")
    assert handle.state == HandleState.PENDING
    assert not handle.done()
    assert handle.attempts == 0


def test_resolve_once() -> None:
    handle: ResultHandle[int] = ResultHandle()
    handle.resolve(42, attempts=3)
    assert handle.state == HandleState.RESOLVED
    assert handle.done()
    assert handle.result() == 42
    assert handle.attempts == 3
    assert handle.exception() is None


def test_second_write_rejected_and_first_value_kept() -> None:
    handle: ResultHandle[int] = ResultHandle(name="healthcheck")
    handle.resolve(1, attempts=1)

    with pytest.raises(RetryException) as info:
        handle.resolve(2, attempts=5)
    assert info.value.code == ErrorCode.ALREADY_RESOLVED
    assert info.value.error.operation == "healthcheck"

    with pytest.raises(RetryException):
        handle.fail(ValueError("late"))

    assert handle.result() == 1
    assert handle.attempts == 1


def test_fail_reraises_on_result() -> None:
    handle: ResultHandle[int] = ResultHandle()
    handle.fail(KeyError("gone"), attempts=2)
    assert handle.state == HandleState.FAILED
    with pytest.raises(KeyError):
        handle.result()
    assert isinstance(handle.exception(), KeyError)


def test_handles_hash_by_identity() -> None:
    first: ResultHandle[int] = ResultHandle(name="healthcheck")
    second: ResultHandle[int] = ResultHandle(name="healthcheck")
    assert first != second
    assert {first, second, first} == {first, second}


def test_result_timeout_while_pending() -> None:
    handle: ResultHandle[int] = ResultHandle()
    with pytest.raises(TimeoutError):
        handle.result(timeout=0.01)


def test_blocking_read_across_threads() -> None:
    handle: ResultHandle[str] = ResultHandle()
    release = threading.Event()

    def worker() -> None:
        release.wait()
        handle.resolve("ready")

    spawn_thread(worker, name="writer")
    assert not handle.done()
    release.set()
    assert handle.result(timeout=5) == "ready"


def test_concurrent_writers_only_one_wins() -> None:
    handle: ResultHandle[int] = ResultHandle()
    errors: list[RetryException] = []
    start = threading.Barrier(8)

    def writer(value: int) -> None:
        start.wait()
        try:
            handle.resolve(value)
        except RetryException as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(errors) == 7
    assert handle.result() in range(8)


def test_done_callback() -> None:
    handle: ResultHandle[int] = ResultHandle()
    seen: list[int] = []
    handle.add_done_callback(lambda h: seen.append(h.result()))
    handle.resolve(7)
    assert seen == [7]

    handle.add_done_callback(lambda h: seen.append(h.result() * 2))
    assert seen == [7, 14]


@pytest.mark.asyncio
async def test_awaitable() -> None:
    handle: ResultHandle[str] = ResultHandle()
    asyncio.get_running_loop().call_later(0.01, handle.resolve, "done")
    assert await handle == "done"


@pytest.mark.asyncio
async def test_cancelled_awaiter_does_not_cancel_handle() -> None:
    handle: ResultHandle[str] = ResultHandle()
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(handle, timeout=0.01)

    assert handle.state == HandleState.PENDING
    handle.resolve("later")
    assert await handle == "later"
