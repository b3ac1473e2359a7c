"""Root pytest configuration for autotag package tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from autotag.dsl.config_values import config_value_cache

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture(scope="session")
def tests_dir() -> Path:
    """Get tests directory path.

    Returns
    -------
    Path
        Path to tests directory
    """
    return Path(__file__).parent


@pytest.fixture
def now() -> datetime:
    """Provide the fixed wall-clock time used by time-dependent tests."""
    return NOW


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced monotonic clock."""
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_config_value_cache() -> Iterator[None]:
    """Keep the process-wide getConfig cache from leaking between tests."""
    ttl = config_value_cache.ttl
    config_value_cache.clear()
    yield
    config_value_cache.clear()
    config_value_cache.ttl = ttl
