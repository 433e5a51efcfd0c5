"""Shared fixtures."""

import pytest

from expretry import clear_settings_cache, configure_logging


@pytest.fixture(autouse=True)
def quiet_logging() -> object:
    """Silence log output unless a test configures its own renderer."""
    configure_logging(format="none")
    yield


@pytest.fixture(autouse=True)
def clean_settings() -> object:
    """Reset cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


class Flaky:
    """Callable that fails a fixed number of times, then returns its target."""

    def __init__(self, failures: int, target: object = "ok", miss: object = "nope") -> None:
        self.failures = failures
        self.target = target
        self.miss = miss
        self.calls: list[tuple[tuple[object, ...], dict[str, object]]] = []

    def __call__(self, *args: object, **kwargs: object) -> object:
        self.calls.append((args, kwargs))
        return self.miss if len(self.calls) <= self.failures else self.target

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def flaky() -> type[Flaky]:
    return Flaky
