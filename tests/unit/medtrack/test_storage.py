"""Tests for the key-value storage backends."""

from __future__ import annotations

from pathlib import Path

import pytest

from medtrack.config import StorageConfig
from medtrack.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
    build_storage,
)


@pytest.mark.asyncio
async def test_in_memory_round_trip() -> None:
    storage = InMemoryStorage()

    assert await storage.get_item("health_database") is None
    await storage.set_item("health_database", "{}")
    assert await storage.get_item("health_database") == "{}"

    await storage.remove_item("health_database")
    await storage.remove_item("health_database")
    assert await storage.get_item("health_database") is None


@pytest.mark.asyncio
async def test_file_storage_writes_one_file_per_key(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "nested")

    await storage.set_item("health_database", '{"a": 1}')
    await storage.set_item("medications", "[]")

    assert (tmp_path / "nested" / "health_database.json").read_text() == '{"a": 1}'
    assert await storage.get_item("medications") == "[]"
    assert not list((tmp_path / "nested").glob("*.tmp"))


@pytest.mark.asyncio
async def test_file_storage_missing_key_reads_none(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path)

    assert await storage.get_item("health_database") is None
    await storage.remove_item("health_database")


@pytest.mark.asyncio
async def test_file_storage_overwrites_and_removes(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path)

    await storage.set_item("medications", "[1]")
    await storage.set_item("medications", "[2]")
    assert await storage.get_item("medications") == "[2]"

    await storage.remove_item("medications")
    assert not (tmp_path / "medications.json").exists()


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["../escape", "", "a/b"])
async def test_file_storage_rejects_unsafe_keys(tmp_path: Path, key: str) -> None:
    storage = JsonFileStorage(tmp_path)

    with pytest.raises(StorageError, match="Invalid storage key"):
        await storage.set_item(key, "{}")


@pytest.mark.asyncio
async def test_file_storage_wraps_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    storage = JsonFileStorage(blocker)

    with pytest.raises(StorageError, match="Failed to write"):
        await storage.set_item("health_database", "{}")


def test_build_storage_selects_backend(tmp_path: Path) -> None:
    assert isinstance(build_storage(StorageConfig(backend="memory")), InMemoryStorage)

    file_storage = build_storage(StorageConfig(backend="file", data_dir=str(tmp_path)))
    assert isinstance(file_storage, JsonFileStorage)
    assert file_storage.data_dir == tmp_path
