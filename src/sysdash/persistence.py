"""Persistent snapshot slots for the metrics store."""

import asyncio
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from sysdash.config import SNAPSHOT_FILE
from sysdash.errors import PersistenceUnavailable
from sysdash.models import CacheEntry

logger = logging.getLogger(__name__)


class SnapshotPersistence(ABC):
    """
    A single slot holding the last persisted cache entry.

    Implementations raise PersistenceUnavailable when the slot cannot be
    read or written. An empty slot is not an error: `load_snapshot` returns
    None.
    """

    @abstractmethod
    async def save_snapshot(self, entry: CacheEntry) -> str:
        """Persist `entry` and return an identifier for where it was stored."""

    @abstractmethod
    async def load_snapshot(self) -> CacheEntry | None:
        """Return the persisted entry, or None if the slot is empty."""


class MemoryPersistence(SnapshotPersistence):
    """Slot kept in process memory."""

    LOCATION = "memory"

    def __init__(self) -> None:
        self._entry: CacheEntry | None = None

    async def save_snapshot(self, entry: CacheEntry) -> str:
        self._entry = entry
        return self.LOCATION

    async def load_snapshot(self) -> CacheEntry | None:
        return self._entry


class JsonFilePersistence(SnapshotPersistence):
    """
    Slot backed by a JSON document on disk.

    File I/O runs in a worker thread so the event loop is never blocked.
    Writes go to a temporary sibling first and are then moved into place,
    so a reader never sees a half-written document.
    """

    def __init__(self, path: Path = SNAPSHOT_FILE) -> None:
        """
        Initialize the JsonFilePersistence.

        Args:
            path: Location of the JSON document. Parent directories are
                created on first save.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Get the document location."""
        return self._path

    async def save_snapshot(self, entry: CacheEntry) -> str:
        document = entry.to_dict()
        try:
            await asyncio.to_thread(self._write, document)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceUnavailable(f"Cannot write {self._path}: {exc}") from exc
        logger.debug("Saved snapshot to %s", self._path)
        return str(self._path)

    async def load_snapshot(self) -> CacheEntry | None:
        try:
            document = await asyncio.to_thread(self._read)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            raise PersistenceUnavailable(f"Cannot read {self._path}: {exc}") from exc

        try:
            return CacheEntry.from_dict(document)
        except ValueError as exc:
            raise PersistenceUnavailable(f"Invalid snapshot document {self._path}: {exc}") from exc

    def _write(self, document: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        try:
            # One temporary sibling per write; concurrent saves must not share it
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f"{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                json.dump(document, f)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

    def _read(self) -> dict:
        with open(self._path, encoding="utf-8") as f:
            return json.load(f)
