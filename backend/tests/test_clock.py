from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from botlease.clock import StoreClock, format_instant, format_seconds, parse_instant
from botlease.errors import ClockUnavailable

from conftest import START


@pytest.mark.parametrize("raw", [None, "", "   ", "not a date", 1234, "2024-13-45T00:00:00"])
def test_parse_instant_treats_garbage_as_absent(raw):
    assert parse_instant(raw) is None


def test_parse_instant_normalises_to_utc():
    offset = timezone(timedelta(hours=2))
    assert parse_instant("2024-05-01T14:00:00+02:00") == START
    assert parse_instant(datetime(2024, 5, 1, 14, 0, tzinfo=offset)) == START
    assert parse_instant("2024-05-01T12:00:00") == START


def test_format_instant_round_trips():
    assert parse_instant(format_instant(START)) == START
    assert format_instant(datetime(2024, 5, 1, 12, 0)) == "2024-05-01T12:00:00+00:00"


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "0 seconds"),
        (1, "1 second"),
        (61, "1 minute 1 second"),
        (180, "3 minutes"),
        (3725, "1 hour 2 minutes 5 seconds"),
    ],
)
def test_format_seconds(seconds, expected):
    assert format_seconds(seconds) == expected


@pytest.mark.asyncio
async def test_store_clock_reads_backend(backend, clock):
    store_clock = StoreClock(backend)
    assert await store_clock.now() == START
    clock.advance(5)
    assert await store_clock.now() == START + timedelta(seconds=5)


@pytest.mark.asyncio
async def test_store_clock_does_not_fall_back_to_host_clock(backend):
    backend.fail_now = True
    with pytest.raises(ClockUnavailable):
        await StoreClock(backend).now()


@pytest.mark.asyncio
async def test_store_clock_rejects_invalid_timestamps():
    class BadBackend:
        async def now(self):
            return "soon"

    with pytest.raises(ClockUnavailable):
        await StoreClock(BadBackend()).now()
