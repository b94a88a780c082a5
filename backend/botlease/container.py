"""Explicit dependency container for the instance election.

Building a container has no side effects; `startup` starts the monitor task
and `shutdown` stops it and releases the settings backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .clock import StoreClock
    from .config import LeaseSettings
    from .lease_store import LeaseStore
    from .monitor import InstanceMonitor
    from .oracle import RoleOracle
    from .settings_store import SettingsBackend


@dataclass
class LeaseContainer:
    """Holds the constructed election dependencies for one process."""

    settings: LeaseSettings
    instance_id: str
    backend: SettingsBackend
    clock: StoreClock
    lease_store: LeaseStore
    oracle: RoleOracle
    monitor: InstanceMonitor


def build_backend(
    settings: "LeaseSettings",
    *,
    clock: Callable[[], datetime] | None = None,
) -> "SettingsBackend":
    from .settings_store import FileSettingsBackend, InMemorySettingsBackend

    if settings.backend == "memory":
        return InMemorySettingsBackend(clock=clock)
    if settings.backend == "file":
        return FileSettingsBackend(settings.settings_file, clock=clock, ensure_dirs=False)
    if not settings.redis_url:
        msg = "LEASE_BACKEND=redis requires REDIS_URL"
        raise ValueError(msg)
    from .distributed.redis_settings import RedisSettingsBackend, RedisSettingsConfig

    return RedisSettingsBackend(
        RedisSettingsConfig(url=settings.redis_url, key_prefix=settings.key_prefix)
    )


def build_container(
    *,
    settings: "LeaseSettings" | None = None,
    backend: "SettingsBackend" | None = None,
    instance_id: str | None = None,
    clock: Callable[[], datetime] | None = None,
    tick_seconds: float | None = None,
    timeout_seconds: float | None = None,
) -> LeaseContainer:
    """Construct the election dependency graph without starting background work."""

    # Local imports keep this module side-effect-free on import.
    from .cache import NoCache, TtlCache
    from .clock import StoreClock
    from .config import get_settings
    from .election import RECENT_CHECKIN_TIMEOUT_SECONDS
    from .identity import local_identity
    from .lease_store import LeaseStore
    from .monitor import MONITOR_TICK_SECONDS, OWNER_CACHE_TTL_SECONDS, InstanceMonitor
    from .oracle import RoleOracle

    settings = settings or get_settings()
    instance_id = instance_id or local_identity()
    backend = backend or build_backend(settings, clock=clock)

    lease_store = LeaseStore(
        backend,
        owner_cache=TtlCache(OWNER_CACHE_TTL_SECONDS),
        checkin_cache=NoCache(),
    )
    store_clock = StoreClock(backend)
    oracle = RoleOracle(lease_store, instance_id)
    monitor = InstanceMonitor(
        lease_store,
        store_clock,
        oracle,
        tick_seconds=MONITOR_TICK_SECONDS if tick_seconds is None else tick_seconds,
        timeout_seconds=(
            RECENT_CHECKIN_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        ),
    )
    return LeaseContainer(
        settings=settings,
        instance_id=oracle.identity,
        backend=backend,
        clock=store_clock,
        lease_store=lease_store,
        oracle=oracle,
        monitor=monitor,
    )


def startup(container: LeaseContainer, *, immediate: bool = True) -> None:
    """Start the instance monitor; must be called from a running event loop."""

    ensure_base_dir = getattr(container.backend, "ensure_base_dir", None)
    if ensure_base_dir is not None:
        ensure_base_dir()
    container.monitor.start(immediate=immediate)


async def shutdown(container: LeaseContainer) -> None:
    """Stop the monitor task and release the settings backend."""

    await container.monitor.stop()
    await container.backend.close()
