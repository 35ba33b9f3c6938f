"""
Durable key-value storage for the health document.

The store only needs three async operations, so storage is modelled as a
Protocol and injected: tests use the in-memory backend, the app uses one
JSON file per key under a data directory.
"""

import asyncio
import os
import re
from pathlib import Path
from typing import Protocol

import structlog

from medtrack.config import StorageConfig

logger = structlog.get_logger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(Exception):
    """Raised when the underlying storage cannot be read or written."""


class KeyValueStorage(Protocol):
    """
    Protocol for string-valued durable storage keyed by fixed names.

    Missing keys read as None; removing a missing key is not an error.
    """

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Process-local storage. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """
    One file per key under ``data_dir``.

    Writes go to a temporary sibling first and are swapped into place, so a
    crash mid-write leaves the previous value intact. Blocking file I/O runs
    in a worker thread to keep the event loop responsive.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.logger = logger.bind(component="json_file_storage", data_dir=str(self.data_dir))

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    async def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        self.logger.debug("storage_item_written", key=key, size=len(value))

    async def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
        self.logger.debug("storage_item_removed", key=key)

    @staticmethod
    def _read(path: Path) -> str | None:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(value)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)


def build_storage(config: StorageConfig) -> KeyValueStorage:
    """Create the storage backend selected in configuration."""
    if config.backend == "memory":
        return InMemoryStorage()
    return JsonFileStorage(config.data_dir)
