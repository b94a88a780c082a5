"""Single-active-instance election over a shared key-value settings store."""

from __future__ import annotations

from .cache import NoCache, TtlCache
from .clock import StoreClock, format_instant, parse_instant
from .container import LeaseContainer, build_container, shutdown, startup
from .election import (
    RECENT_CHECKIN_TIMEOUT_SECONDS,
    ElectionDecision,
    ElectionOutcome,
    apply_outcome,
    decide,
)
from .errors import ClockUnavailable, LeaseError, StoreUnavailable
from .identity import local_identity
from .lease_store import LAST_CHECKIN_KEY, OWNER_KEY, Lease, LeaseStore
from .monitor import MONITOR_TICK_SECONDS, InstanceMonitor
from .oracle import RoleOracle
from .settings_store import FileSettingsBackend, InMemorySettingsBackend

__all__ = [
    "ClockUnavailable",
    "ElectionDecision",
    "ElectionOutcome",
    "FileSettingsBackend",
    "InMemorySettingsBackend",
    "InstanceMonitor",
    "LAST_CHECKIN_KEY",
    "Lease",
    "LeaseContainer",
    "LeaseError",
    "LeaseStore",
    "MONITOR_TICK_SECONDS",
    "NoCache",
    "OWNER_KEY",
    "RECENT_CHECKIN_TIMEOUT_SECONDS",
    "RoleOracle",
    "StoreClock",
    "StoreUnavailable",
    "TtlCache",
    "apply_outcome",
    "build_container",
    "decide",
    "format_instant",
    "local_identity",
    "parse_instant",
    "shutdown",
    "startup",
]
