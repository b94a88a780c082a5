"""Runtime settings for the instance election, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

BackendKind = Literal["memory", "file", "redis"]

_BACKENDS: tuple[BackendKind, ...] = ("memory", "file", "redis")
DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip()
    return normalized or default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_backend(raw: str | None) -> BackendKind:
    normalized = (raw or "memory").strip().lower()
    if normalized not in _BACKENDS:
        msg = f"LEASE_BACKEND must be one of {'|'.join(_BACKENDS)}, got {raw!r}"
        raise ValueError(msg)
    return normalized  # type: ignore[return-value]


@dataclass(frozen=True)
class LeaseSettings:
    """Where the shared lease settings live."""

    backend: BackendKind
    redis_url: str | None
    key_prefix: str
    data_dir: Path
    skip_startup_checks: bool = False

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"

    @classmethod
    def from_env(cls) -> "LeaseSettings":
        data_dir = _env_str("LEASE_DATA_DIR")
        return cls(
            backend=parse_backend(_env_str("LEASE_BACKEND", "memory")),
            redis_url=_env_str("REDIS_URL"),
            key_prefix=_env_str("LEASE_KEY_PREFIX", "settings:") or "settings:",
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            skip_startup_checks=_env_bool("SKIP_STARTUP_CHECKS", False),
        )


_SETTINGS: LeaseSettings | None = None


def get_settings() -> LeaseSettings:
    """Return a cached LeaseSettings instance built from the current environment."""

    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = LeaseSettings.from_env()
    return _SETTINGS


def reset_settings() -> None:
    """Drop the cached settings so the next `get_settings` re-reads the environment."""

    global _SETTINGS
    _SETTINGS = None
