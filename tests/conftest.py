"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from anchor_registry import AnchorKeyCache
from anchor_registry.stores import InMemoryTableStore


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryTableStore()


@pytest.fixture
def cache(store):
    return AnchorKeyCache(store)
