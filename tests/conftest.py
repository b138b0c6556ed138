"""pytest configuration for sysdash tests.

Provides a simulated clock so cache freshness and scheduler ticks can be
tested without waiting on wall-clock time, plus persistence test doubles.
"""

import asyncio
import random

import pytest

from sysdash.errors import PersistenceUnavailable
from sysdash.generator import MockMetricsGenerator
from sysdash.models import CacheEntry
from sysdash.persistence import MemoryPersistence, SnapshotPersistence


class FakeClock:
    """Manually advanced clock with an awaitable `sleep`."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + seconds, future))
        await future

    async def advance(self, seconds: float) -> None:
        """Move time forward, waking sleepers in deadline order."""
        target = self.now + seconds
        await self._settle()
        while True:
            self._sleepers = [s for s in self._sleepers if not s[1].done()]
            due = [s for s in self._sleepers if s[0] <= target]
            if not due:
                break
            deadline, future = min(due, key=lambda s: s[0])
            self._sleepers.remove((deadline, future))
            self.now = deadline
            future.set_result(None)
            await self._settle()
        self.now = target

    @staticmethod
    async def _settle() -> None:
        for _ in range(20):
            await asyncio.sleep(0)


class FailingPersistence(SnapshotPersistence):
    """Slot whose reads and writes always fail."""

    def __init__(self) -> None:
        self.save_attempts = 0
        self.load_attempts = 0

    async def save_snapshot(self, entry: CacheEntry) -> str:
        self.save_attempts += 1
        raise PersistenceUnavailable("disk full")

    async def load_snapshot(self) -> CacheEntry | None:
        self.load_attempts += 1
        raise PersistenceUnavailable("permission denied")


class RecordingPersistence(MemoryPersistence):
    """In-memory slot that counts calls."""

    def __init__(self) -> None:
        super().__init__()
        self.saved: list[CacheEntry] = []
        self.load_attempts = 0

    async def save_snapshot(self, entry: CacheEntry) -> str:
        self.saved.append(entry)
        return await super().save_snapshot(entry)

    async def load_snapshot(self) -> CacheEntry | None:
        self.load_attempts += 1
        return await super().load_snapshot()


@pytest.fixture
def clock():
    """Simulated wall clock."""
    return FakeClock()


@pytest.fixture
def generator():
    """Seeded mock generator."""
    return MockMetricsGenerator(random.Random(42))


@pytest.fixture
def recording_persistence():
    return RecordingPersistence()


@pytest.fixture
def failing_persistence():
    return FailingPersistence()
