"""Tests for RetryPolicy."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from expretry import NO_RETRY, RetryPolicy, RetrySettings


def test_defaults() -> None:
    policy = RetryPolicy()
    assert (policy.max_retries, policy.base_delay_ms, policy.backoff_factor) == (3, 100, 2.0)
    assert policy.on_error == "propagate"
    assert not policy.skip_final_delay
    assert policy.max_attempts == 4


def test_delays_follow_backoff() -> None:
    policy = RetryPolicy(max_retries=5, base_delay_ms=100, backoff_factor=1.5)
    assert [policy.delay_ms(i) for i in range(4)] == [100, 150, 225, 337]
    assert policy.get_delay(1) == 0.15


def test_is_immutable() -> None:
    policy = RetryPolicy()
    with pytest.raises(ValidationError):
        policy.max_retries = 10  # type: ignore[misc]


@pytest.mark.parametrize("kwargs", [
    {"max_retries": -1},
    {"base_delay_ms": -5},
    {"backoff_factor": 0},
    {"backoff_factor": -1.5},
    {"jitter": True},
    {"on_error": "ignore"},
])
def test_rejects_invalid(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        RetryPolicy(**kwargs)


def test_accepts_timedelta_truncated_to_milliseconds() -> None:
    policy = RetryPolicy(base_delay_ms=timedelta(milliseconds=250, microseconds=900))
    assert policy.base_delay_ms == 250
    assert policy.base_delay == timedelta(milliseconds=250)


def test_final_attempt_and_pause() -> None:
    policy = RetryPolicy(max_retries=2)
    assert [policy.is_final(a) for a in range(3)] == [False, False, True]
    assert all(policy.should_pause(a) for a in range(3))

    skipping = RetryPolicy(max_retries=2, skip_final_delay=True)
    assert [skipping.should_pause(a) for a in range(3)] == [True, True, False]


def test_zero_retries_is_single_attempt() -> None:
    policy = RetryPolicy(max_retries=0)
    assert policy.max_attempts == 1
    assert policy.is_final(0)
    assert NO_RETRY.max_attempts == 1 and not NO_RETRY.should_pause(0)


def test_hashable_and_equal() -> None:
    a = RetryPolicy(max_retries=2, base_delay_ms=10)
    b = RetryPolicy(max_retries=2, base_delay_ms=10)
    assert a == b
    assert len({a, b}) == 1


def test_from_settings() -> None:
    settings = RetrySettings(max_retries=7, base_delay_ms=20, backoff_factor=3.0, on_error="retry")
    policy = RetryPolicy.from_settings(settings)
    assert (policy.max_retries, policy.base_delay_ms, policy.backoff_factor) == (7, 20, 3.0)
    assert policy.on_error == "retry"


def test_from_global_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXPRETRY_RETRY_MAX_RETRIES", "9")
    monkeypatch.setenv("EXPRETRY_RETRY_SKIP_FINAL_DELAY", "true")
    policy = RetryPolicy.from_settings()
    assert policy.max_retries == 9
    assert policy.skip_final_delay
