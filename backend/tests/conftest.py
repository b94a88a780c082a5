"""Shared fixtures for the election tests.

Every timing decision is driven by `FakeClock` (the store clock) and
`FakeMonotonic` (cache expiry), so ticks can be single-stepped without sleeping.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from botlease.cache import NoCache, TtlCache
from botlease.clock import StoreClock
from botlease.errors import StoreUnavailable
from botlease.identity import new_identity
from botlease.lease_store import LeaseStore
from botlease.monitor import InstanceMonitor
from botlease.oracle import RoleOracle
from botlease.settings_store import InMemorySettingsBackend

START = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current


class FakeMonotonic:
    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FlakyBackend(InMemorySettingsBackend):
    """In-memory backend whose operations can be made to fail on demand."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        super().__init__(clock=clock)
        self.fail_get = False
        self.fail_set_keys: set[str] = set()
        self.fail_now = False
        self.writes: list[tuple[str, str | None]] = []

    async def get(self, key: str) -> str | None:
        if self.fail_get:
            raise StoreUnavailable("get", key, "connection refused")
        return await super().get(key)

    async def set(self, key: str, value: str | None) -> None:
        if key in self.fail_set_keys:
            raise StoreUnavailable("set", key, "connection refused")
        self.writes.append((key, value))
        await super().set(key, value)

    async def now(self) -> datetime:
        if self.fail_now:
            raise StoreUnavailable("now", reason="connection refused")
        return await super().now()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def backend(clock: FakeClock) -> FlakyBackend:
    return FlakyBackend(clock=clock)


@pytest.fixture
def make_store(backend: FlakyBackend, monotonic: FakeMonotonic):
    def _make(ttl_seconds: float = 60) -> LeaseStore:
        return LeaseStore(
            backend,
            owner_cache=TtlCache(ttl_seconds, monotonic=monotonic),
            checkin_cache=NoCache(),
        )

    return _make


@pytest.fixture
def make_monitor(backend: FlakyBackend, make_store):
    """Build an instance monitor sharing the common backend, one per identity."""

    def _make(identity: str | None = None, *, timeout_seconds: float = 180) -> InstanceMonitor:
        store = make_store()
        oracle = RoleOracle(store, identity or new_identity())
        return InstanceMonitor(
            store,
            StoreClock(backend),
            oracle,
            tick_seconds=60,
            timeout_seconds=timeout_seconds,
        )

    return _make
