"""Shared key-value settings backends.

Every backend exposes the same small async interface so the lease store can be
wired to whichever shared store a deployment has. `memory` keeps values in the
process and suits single-process mode and tests; `file` shares one JSON
document between processes on a single host; the Redis backend lives in
`distributed.redis_settings`.
"""

from __future__ import annotations

import asyncio
import fcntl
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator, Protocol

from .clock import utc_now
from .errors import ClockUnavailable, StoreUnavailable

logger = logging.getLogger(__name__)


class SettingsBackend(Protocol):
    async def get(self, key: str) -> str | None:
        """Return the stored value for `key`, or None when unset."""

    async def set(self, key: str, value: str | None) -> None:
        """Store `value` under `key`; None clears the entry."""

    async def now(self) -> datetime:
        """Return the backend's current instant."""

    async def close(self) -> None:
        """Release resources held by the backend."""


class InMemorySettingsBackend:
    """Settings backend for single-process mode."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._values: dict[str, str] = {}
        self._clock = clock or utc_now
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._values.get(key)

    async def set(self, key: str, value: str | None) -> None:
        async with self._lock:
            if value is None:
                self._values.pop(key, None)
            else:
                self._values[key] = str(value)

    async def now(self) -> datetime:
        return self._clock()

    async def close(self) -> None:
        return None

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


class FileSettingsBackend:
    """Persist settings as one JSON document shared by processes on one host.

    Every operation holds an `fcntl.flock` on a sidecar `.lock` file: shared for
    reads, exclusive for the read-modify-write of `set`. The document is
    re-read on every `get` so writes from other processes are seen
    immediately, and each write goes through its own temp file before an
    atomic replace. File I/O runs in a worker thread.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        clock: Callable[[], datetime] | None = None,
        ensure_dirs: bool = True,
    ) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._clock = clock or utc_now
        if ensure_dirs:
            self.ensure_base_dir()

    def ensure_base_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _file_lock(self, *, exclusive: bool) -> Iterator[None]:
        try:
            fd = os.open(str(self.lock_path), os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as exc:
            raise StoreUnavailable("lock", reason=str(exc)) from exc
        try:
            fcntl.flock(fd, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError:
            logger.warning("ignoring malformed settings file path=%s", self.path)
            return {}
        except OSError as exc:
            raise StoreUnavailable("read", reason=str(exc)) from exc
        return payload if isinstance(payload, dict) else {}

    def _atomic_write(self, payload: dict[str, Any]) -> None:
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=self.path.name + ".",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(payload, handle, separators=(",", ":"), sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreUnavailable("write", reason=str(exc)) from exc

    def _get_sync(self, key: str) -> str | None:
        with self._file_lock(exclusive=False):
            value = self._load().get(key)
        return value if isinstance(value, str) else None

    def _set_sync(self, key: str, value: str | None) -> None:
        with self._file_lock(exclusive=True):
            payload = self._load()
            if value is None:
                payload.pop(key, None)
            else:
                payload[key] = str(value)
            self._atomic_write(payload)

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: str | None) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    async def now(self) -> datetime:
        try:
            return self._clock()
        except Exception as exc:
            raise ClockUnavailable(str(exc)) from exc

    async def close(self) -> None:
        return None
