from __future__ import annotations

from pathlib import Path

import pytest

from botlease.config import DEFAULT_DATA_DIR, LeaseSettings, get_settings, parse_backend, reset_settings
from botlease.container import build_backend
from botlease.distributed.redis_settings import RedisSettingsBackend
from botlease.settings_store import FileSettingsBackend, InMemorySettingsBackend


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("LEASE_BACKEND", "REDIS_URL", "LEASE_KEY_PREFIX", "LEASE_DATA_DIR", "SKIP_STARTUP_CHECKS"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def test_defaults():
    settings = LeaseSettings.from_env()
    assert settings.backend == "memory"
    assert settings.redis_url is None
    assert settings.key_prefix == "settings:"
    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.skip_startup_checks is False


def test_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("LEASE_BACKEND", " Redis ")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")
    monkeypatch.setenv("LEASE_KEY_PREFIX", "bot:")
    monkeypatch.setenv("LEASE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SKIP_STARTUP_CHECKS", "1")
    settings = LeaseSettings.from_env()
    assert settings.backend == "redis"
    assert settings.redis_url == "redis://cache:6379/2"
    assert settings.key_prefix == "bot:"
    assert settings.settings_file == Path(tmp_path) / "settings.json"
    assert settings.skip_startup_checks is True


def test_unknown_backend_rejected():
    with pytest.raises(ValueError):
        parse_backend("zookeeper")


def test_get_settings_is_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("LEASE_BACKEND", "file")
    assert get_settings() is first
    reset_settings()
    assert get_settings().backend == "file"


def test_build_backend_per_kind(tmp_path):
    base = dict(redis_url=None, key_prefix="settings:", data_dir=tmp_path)
    assert isinstance(build_backend(LeaseSettings(backend="memory", **base)), InMemorySettingsBackend)
    assert isinstance(build_backend(LeaseSettings(backend="file", **base)), FileSettingsBackend)
    with pytest.raises(ValueError):
        build_backend(LeaseSettings(backend="redis", **base))
    redis_backend = build_backend(
        LeaseSettings(backend="redis", redis_url="redis://localhost:6379/0", key_prefix="settings:", data_dir=tmp_path)
    )
    assert isinstance(redis_backend, RedisSettingsBackend)
