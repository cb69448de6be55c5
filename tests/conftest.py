"""Shared fixtures: a fresh store, a controllable clock and engine parts per test."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from careguard.config import EngineSettings
from careguard.engine import CareEngine, build_engine
from careguard.storage import InMemoryKeyValueStore

BASE_TIME = datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture
def engine(store, settings, clock) -> CareEngine:
    return build_engine(store=store, settings=settings, clock=clock)
