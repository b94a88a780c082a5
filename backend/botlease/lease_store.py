"""Typed access to the two lease settings.

The lease is stored as two independent settings rather than one record:

- `metabot_instance_uuid`: identity of the instance currently handling bot
  duties. Read often by the role oracle, so it goes through a TTL cache.
- `metabot_instance_last_checkin`: when that instance last proved it is alive.
  Never cached; a stale local copy could make another instance's lease look
  abandoned.

The two writes are not atomic with respect to each other; readers may briefly
observe a new owner alongside the previous checkin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from .cache import CachePolicy, NoCache
from .clock import format_instant, parse_instant
from .errors import StoreUnavailable
from .identity import normalize_identity
from .settings_store import SettingsBackend

logger = logging.getLogger(__name__)

OWNER_KEY = "metabot_instance_uuid"
LAST_CHECKIN_KEY = "metabot_instance_last_checkin"


@dataclass(frozen=True)
class Lease:
    """Point-in-time view of the stored lease."""

    owner: str | None
    last_checkin: datetime | None


def _parse_owner(value: object) -> str | None:
    return normalize_identity(value)


class LeaseStore:
    """Reads and writes lease settings against a shared settings backend."""

    def __init__(
        self,
        backend: SettingsBackend,
        *,
        owner_cache: CachePolicy | None = None,
        checkin_cache: CachePolicy | None = None,
    ) -> None:
        self.backend = backend
        self.owner_cache = owner_cache if owner_cache is not None else NoCache()
        self.checkin_cache = checkin_cache if checkin_cache is not None else NoCache()

    async def _read(self, key: str, cache: CachePolicy, *, fresh: bool = False) -> str | None:
        if not fresh:
            hit, value = cache.lookup(key)
            if hit:
                return value
        value = await self.backend.get(key)
        cache.store(key, value)
        return value

    async def _write(self, key: str, value: str | None, cache: CachePolicy) -> None:
        try:
            await self.backend.set(key, value)
        except StoreUnavailable:
            cache.invalidate(key)
            raise
        cache.store(key, value)

    async def get_owner(self, *, fresh: bool = False) -> str | None:
        """Return the stored owner identity, or None if unset or malformed."""
        return _parse_owner(await self._read(OWNER_KEY, self.owner_cache, fresh=fresh))

    async def set_owner(self, identity: str | None) -> None:
        await self._write(OWNER_KEY, identity, self.owner_cache)

    async def get_last_checkin(self) -> datetime | None:
        """Return the stored checkin instant, or None if unset or malformed."""
        raw = await self._read(LAST_CHECKIN_KEY, self.checkin_cache)
        instant = parse_instant(raw)
        if raw is not None and instant is None:
            logger.warning("ignoring malformed %s value=%r", LAST_CHECKIN_KEY, raw)
        return instant

    async def set_last_checkin(self, instant: datetime | None) -> None:
        value = format_instant(instant) if instant is not None else None
        await self._write(LAST_CHECKIN_KEY, value, self.checkin_cache)

    async def read_lease(self, *, fresh: bool = True) -> Lease:
        owner = await self.get_owner(fresh=fresh)
        last_checkin = await self.get_last_checkin()
        return Lease(owner=owner, last_checkin=last_checkin)

    def cached_owner(self) -> tuple[bool, str | None]:
        """Return (hit, owner) from the owner cache without touching the store."""
        hit, value = self.owner_cache.lookup(OWNER_KEY)
        return hit, _parse_owner(value) if hit else None

    def forget_owner(self) -> None:
        """Drop the cached owner so the next read goes to the store."""
        self.owner_cache.invalidate(OWNER_KEY)

    def invalidate(self) -> None:
        self.owner_cache.invalidate()
        self.checkin_cache.invalidate()
