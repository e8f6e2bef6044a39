"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone

import pytest

from uptime_monitor.services.registry import ServiceRegistry
from uptime_monitor.services.store import ServiceStore


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current += timedelta(seconds=seconds)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "services.json"


@pytest.fixture
def store(store_path) -> ServiceStore:
    return ServiceStore(store_path)


@pytest.fixture
def registry(store, clock) -> ServiceRegistry:
    return ServiceRegistry(store, capacity=20, clock=clock)
