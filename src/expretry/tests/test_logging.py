"""Tests for structured logging of retry invocations."""

from __future__ import annotations

import io
import logging

import orjson
import pytest

from expretry import (
    LoggingSettings,
    RetryException,
    RetryExecutor,
    RetryPolicy,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    log_context,
)
from expretry.runtime.observability import ConsoleRenderer, JsonRenderer, NoOpRenderer


def json_lines(buf: io.StringIO) -> list[dict[str, object]]:
    return [orjson.loads(line) for line in buf.getvalue().splitlines() if line]


def test_bound_context_and_level_filter() -> None:
    buf = io.StringIO()
    configure_logging(format="json", level="INFO", output=buf)
    log = get_logger("healthcheck", service="db").bind(attempt=1)

    log.debug("hidden")
    log.info("visible", delay_ms=150)

    [entry] = json_lines(buf)
    assert entry["event"] == "visible"
    assert entry["level"] == "info"
    assert entry["logger"] == "healthcheck"
    assert (entry["service"], entry["attempt"], entry["delay_ms"]) == ("db", 1, 150)


def test_unbind() -> None:
    log = get_logger(a=1, b=2).unbind("a")
    assert log.context == {"b": 2}


def test_log_context_scope() -> None:
    buf = io.StringIO()
    configure_logging(format="json", output=buf)
    log = get_logger()
    with log_context(request_id="abc"):
        log.info("inside")
    log.info("outside")

    inside, outside = json_lines(buf)
    assert inside["request_id"] == "abc"
    assert "request_id" not in outside


def test_console_renderer_without_colors() -> None:
    buf = io.StringIO()
    configure_logging(format="console", output=buf, colors=False)
    get_logger().warning("retries exhausted", attempts=6, operation="healthcheck")

    line = buf.getvalue().strip()
    assert "\033[" not in line
    assert '[warning] retries exhausted attempts=6 operation="healthcheck"' in line


def test_unknown_format() -> None:
    with pytest.raises(ValueError):
        configure_logging(format="xml")


def test_configure_from_settings() -> None:
    assert isinstance(configure_logging_from_settings(LoggingSettings(format="none")), NoOpRenderer)
    assert isinstance(configure_logging_from_settings(LoggingSettings(format="json"), output=io.StringIO()), JsonRenderer)
    assert isinstance(configure_logging_from_settings(output=io.StringIO()), ConsoleRenderer)


def test_executor_events_reach_worker_thread(flaky) -> None:
    buf = io.StringIO()
    configure_logging(format="json", level="DEBUG", output=buf)
    with log_context(job="warmup"):
        handle = RetryExecutor.create(2, 0, 1.0).invoke("ok", flaky(failures=1))
    handle.result(10)

    entries = json_lines(buf)
    events = [e["event"] for e in entries]
    assert events == ["attempt", "backing off", "attempt", "succeeded"]
    assert all(e["job"] == "warmup" for e in entries)
    assert len({e["invocation"] for e in entries}) == 1
    assert entries[1]["delay_ms"] == 0
    assert entries[-1]["attempts"] == 2


def test_executor_logs_exhaustion(flaky) -> None:
    buf = io.StringIO()
    configure_logging(format="json", level="WARNING", output=buf)
    RetryExecutor.create(1, 0, 1.0).invoke("ok", flaky(failures=9)).result(10)
    [entry] = json_lines(buf)
    assert entry["event"] == "retries exhausted"
    assert entry["attempts"] == 2


def test_is_enabled_for_follows_configured_level() -> None:
    configure_logging(format="none", level="WARNING")
    log = get_logger()
    assert log.is_enabled_for(logging.ERROR)
    assert not log.is_enabled_for(logging.INFO)


def test_backing_off_reports_whole_milliseconds(flaky) -> None:
    buf = io.StringIO()
    configure_logging(format="json", output=buf)
    RetryExecutor.create(1, 289, 1.0, skip_final_delay=True).invoke("ok", flaky(failures=9)).result(10)
    [backing_off] = [e for e in json_lines(buf) if e["event"] == "backing off"]
    assert backing_off["delay_ms"] == 289


def closed_stream() -> io.StringIO:
    buf = io.StringIO()
    buf.close()
    return buf


@pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
def test_broken_renderer_still_resolves_handle() -> None:
    configure_logging(format="json", output=closed_stream())
    handle = RetryExecutor.create(0, 0, 1.0).invoke(True, lambda: True)
    assert handle.result(timeout=5) is True


@pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
def test_broken_renderer_still_settles_exhausted_handle() -> None:
    configure_logging(format="json", output=closed_stream())
    executor = RetryExecutor(RetryPolicy(max_retries=0, base_delay_ms=0, skip_final_delay=True))
    assert executor.invoke(False, lambda: True).result(timeout=5) is True


@pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
def test_broken_renderer_during_pause_fails_handle() -> None:
    configure_logging(format="json", output=closed_stream())
    handle = RetryExecutor.create(0, 0, 1.0).invoke(False, lambda: True)
    with pytest.raises(RetryException) as info:
        handle.result(timeout=5)
    assert isinstance(info.value.__cause__, ValueError)
