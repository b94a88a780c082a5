"""Startup validation to keep deployments predictable."""

from __future__ import annotations

import asyncio
import logging
import sys
import tempfile
from pathlib import Path

from .config import LeaseSettings, get_settings

logger = logging.getLogger(__name__)


def _ensure_dir_writable(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path, prefix=".startup-", suffix=".tmp"):
            pass
    except OSError as exc:
        raise RuntimeError(f"Settings directory {path} is not writable: {exc}") from exc


async def _ping_redis(settings: LeaseSettings) -> None:
    from .distributed.redis_settings import RedisSettingsBackend, RedisSettingsConfig

    assert settings.redis_url is not None
    backend = RedisSettingsBackend(
        RedisSettingsConfig(url=settings.redis_url, key_prefix=settings.key_prefix)
    )
    try:
        await backend.ping()
        await backend.now()
    finally:
        await backend.close()


async def run_startup_checks(settings: LeaseSettings | None = None) -> None:
    """Fail fast when the configured settings backend is unusable."""
    settings = settings or get_settings()
    if settings.skip_startup_checks:
        logger.warning("Startup checks skipped via SKIP_STARTUP_CHECKS=1")
        return

    if settings.backend == "file":
        _ensure_dir_writable(settings.data_dir)
    elif settings.backend == "redis":
        if not settings.redis_url:
            raise RuntimeError("REDIS_URL is required when LEASE_BACKEND=redis")
        try:
            await _ping_redis(settings)
        except Exception as exc:
            raise RuntimeError(
                f"Unable to reach REDIS_URL={settings.redis_url!r}: {exc}"
            ) from exc

    logger.info("Startup checks passed. backend=%s", settings.backend)


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        settings = get_settings()
    except ValueError as exc:
        logger.error("Invalid election settings: %s", exc)
        return 1
    try:
        asyncio.run(run_startup_checks(settings))
    except Exception as exc:  # pragma: no cover - CLI guard
        logger.error("Startup check failed backend=%s: %s", settings.backend, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
