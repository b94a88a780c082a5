"""Instant helpers and the shared-store clock."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from .errors import ClockUnavailable, StoreUnavailable


class ClockSource(Protocol):
    async def now(self) -> datetime:
        """Return the current instant as seen by the shared store."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_instant(value: datetime) -> str:
    """Serialize an instant to the stored ISO 8601 form (always UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_instant(value: object) -> datetime | None:
    """Parse a stored instant, treating missing or malformed values as absent."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_seconds(seconds: float) -> str:
    """Render a duration for log lines, e.g. ``3 minutes 12 seconds``."""
    total = int(abs(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if secs or not parts:
        parts.append(f"{secs} second{'s' if secs != 1 else ''}")
    return " ".join(parts)


class StoreClock:
    """Clock backed by the shared settings store.

    Instances in a horizontal cluster are not guaranteed to have synchronized
    clocks, but they all share the same store, so its clock is the reference.
    It never falls back to the host clock.
    """

    def __init__(self, backend) -> None:
        self._backend = backend

    async def now(self) -> datetime:
        try:
            current = await self._backend.now()
        except ClockUnavailable:
            raise
        except StoreUnavailable as exc:
            raise ClockUnavailable(exc.reason) from exc
        instant = parse_instant(current)
        if instant is None:
            raise ClockUnavailable(f"store returned an invalid timestamp: {current!r}")
        return instant
