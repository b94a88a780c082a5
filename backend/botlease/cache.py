"""Cache policies for individual settings.

A setting is either read straight from the shared store on every access
(`NoCache`) or remembered for a bounded time (`TtlCache`). The policy is
chosen per key by the lease store, never by the election logic.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol

_MISSING = object()


class CachePolicy(Protocol):
    def lookup(self, key: str) -> tuple[bool, str | None]:
        """Return (hit, value) for `key`."""

    def store(self, key: str, value: str | None) -> None:
        """Remember the latest value seen for `key`."""

    def invalidate(self, key: str | None = None) -> None:
        """Forget `key`, or every key when None."""


class NoCache:
    """Every read goes to the backend."""

    def lookup(self, key: str) -> tuple[bool, str | None]:  # noqa: ARG002
        return False, None

    def store(self, key: str, value: str | None) -> None:  # noqa: ARG002
        return None

    def invalidate(self, key: str | None = None) -> None:  # noqa: ARG002
        return None


@dataclass
class _Entry:
    value: str | None
    expires_at: float


class TtlCache:
    """Thread-safe cache whose entries expire `ttl_seconds` after being stored."""

    def __init__(
        self,
        ttl_seconds: float,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            msg = f"ttl_seconds must be non-negative, got {ttl_seconds}"
            raise ValueError(msg)
        self.ttl_seconds = float(ttl_seconds)
        self._monotonic = monotonic
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def lookup(self, key: str) -> tuple[bool, str | None]:
        now = self._monotonic()
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                return False, None
            if now >= entry.expires_at:
                del self._entries[key]
                return False, None
            return True, entry.value

    def store(self, key: str, value: str | None) -> None:
        expires_at = self._monotonic() + self.ttl_seconds
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def invalidate(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
