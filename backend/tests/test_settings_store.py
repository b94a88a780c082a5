from __future__ import annotations

import multiprocessing

import pytest

from botlease.errors import ClockUnavailable
from botlease.settings_store import FileSettingsBackend, InMemorySettingsBackend

from conftest import START


@pytest.mark.asyncio
async def test_memory_backend_set_get_clear(clock):
    backend = InMemorySettingsBackend(clock=clock)
    assert await backend.get("key") is None
    await backend.set("key", "value")
    assert await backend.get("key") == "value"
    await backend.set("key", None)
    assert await backend.get("key") is None
    assert await backend.now() == START


@pytest.mark.asyncio
async def test_file_backend_is_shared_between_instances(tmp_path, clock):
    path = tmp_path / "nested" / "settings.json"
    writer = FileSettingsBackend(path, clock=clock)
    reader = FileSettingsBackend(path, clock=clock)

    await writer.set("metabot_instance_uuid", "abc")
    assert await reader.get("metabot_instance_uuid") == "abc"

    await reader.set("metabot_instance_uuid", None)
    assert await writer.get("metabot_instance_uuid") is None
    assert not list(path.parent.glob("*.tmp"))
    assert path.with_name("settings.json.lock").exists()


@pytest.mark.asyncio
async def test_file_backend_ignores_malformed_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    backend = FileSettingsBackend(path)
    assert await backend.get("anything") is None

    await backend.set("key", "value")
    assert await backend.get("key") == "value"


@pytest.mark.asyncio
async def test_file_backend_ignores_non_string_values(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text('{"key": 12}', encoding="utf-8")
    assert await FileSettingsBackend(path).get("key") is None


@pytest.mark.asyncio
async def test_file_backend_clock_failure(tmp_path):
    def broken_clock():
        raise OSError("clock gone")

    backend = FileSettingsBackend(tmp_path / "settings.json", clock=broken_clock)
    with pytest.raises(ClockUnavailable):
        await backend.now()


def _write_own_key(path: str, index: int, rounds: int) -> None:
    backend = FileSettingsBackend(path)
    for value in range(rounds):
        backend._set_sync(f"k{index}", str(value))


def test_file_backend_keeps_every_process_write(tmp_path):
    path = tmp_path / "settings.json"
    rounds = 200
    ctx = multiprocessing.get_context("fork")
    workers = [
        ctx.Process(target=_write_own_key, args=(str(path), index, rounds))
        for index in range(4)
    ]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=60)

    assert [worker.exitcode for worker in workers] == [0, 0, 0, 0]
    backend = FileSettingsBackend(path)
    for index in range(4):
        assert backend._get_sync(f"k{index}") == str(rounds - 1)
    assert not list(tmp_path.glob("*.tmp"))
