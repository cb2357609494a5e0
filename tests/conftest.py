"""
Shared pytest fixtures and configuration for forge-resilience tests.

This module provides:
- A controllable clock for cache and rate-limiter expiry
- Recording sleeps so backoff delays are asserted, not waited for
- Logging context cleanup between tests

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_expiry(clock):
        cache = TTLCache(clock=clock)
        clock.advance(301)
"""

import sys
from pathlib import Path

import pytest

# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from forge_resilience.core.logging import clear_context


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Time Control
# =============================================================================


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep stand-in that records delays and advances a clock."""

    def __init__(self, clock: FakeClock | None = None):
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._clock is not None:
            self._clock.advance(seconds)


class RecordingBlockingSleep:
    """Blocking sleep stand-in that only records delays."""

    def __init__(self):
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def blocking_sleep() -> RecordingBlockingSleep:
    return RecordingBlockingSleep()


# =============================================================================
# Logging Cleanup
# =============================================================================


@pytest.fixture(autouse=True)
def clean_log_context():
    """Keep bound logging context from leaking between tests."""
    clear_context()
    yield
    clear_context()
