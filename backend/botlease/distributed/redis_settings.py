"""Redis-backed settings backend for distributed mode.

Each setting is a plain string key under a configurable prefix:
- get: GET prefix+key
- set: SET prefix+key value (DEL when clearing)
- now: TIME, so every instance shares the Redis server's clock
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone

from ..errors import ClockUnavailable, StoreUnavailable


@dataclass(frozen=True)
class RedisSettingsConfig:
    url: str
    key_prefix: str = "settings:"


class RedisSettingsBackend:
    def __init__(self, config: RedisSettingsConfig, *, client=None):
        self._config = config
        self._client = client

    def _full_key(self, key: str) -> str:
        return f"{self._config.key_prefix}{key}"

    async def _get_client(self):
        if self._client is not None:
            return self._client

        import redis.asyncio as redis

        self._client = redis.from_url(self._config.url, decode_responses=True)
        return self._client

    async def get(self, key: str) -> str | None:
        client = await self._get_client()
        try:
            value = await client.get(self._full_key(key))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise StoreUnavailable("get", key, str(exc)) from exc
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        return value if isinstance(value, str) and value else None

    async def set(self, key: str, value: str | None) -> None:
        client = await self._get_client()
        full_key = self._full_key(key)
        try:
            if value is None:
                await client.delete(full_key)
            else:
                await client.set(full_key, str(value))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise StoreUnavailable("set", key, str(exc)) from exc

    async def now(self) -> datetime:
        client = await self._get_client()
        try:
            seconds, microseconds = await client.time()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise ClockUnavailable(str(exc)) from exc
        return datetime.fromtimestamp(int(seconds), tz=timezone.utc).replace(
            microsecond=int(microseconds)
        )

    async def ping(self) -> bool:
        client = await self._get_client()
        try:
            return bool(await client.ping())
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise StoreUnavailable("ping", reason=str(exc)) from exc

    async def close(self) -> None:
        if self._client is None:
            return
        client = self._client
        self._client = None
        try:
            await client.aclose()
        except AttributeError:
            # Older redis clients only provide close().
            await client.close()
