"""Read-through metrics cache for sysdash."""

import logging
import time
from collections.abc import Callable

from sysdash.config import FRESHNESS_SECONDS
from sysdash.errors import PersistenceUnavailable
from sysdash.generator import MetricsGenerator
from sysdash.models import CacheEntry, Snapshot
from sysdash.persistence import SnapshotPersistence

logger = logging.getLogger(__name__)


class MetricsStore:
    """
    Two-tier cache in front of a metrics generator.

    The first tier is a single in-memory cache entry, the second a persistent
    slot. Both are considered usable while younger than the freshness
    threshold. Persistence failures never reach the caller: a failed read is
    treated as a miss and a failed write is logged.

    There is no locking. Concurrent refreshes may overlap and whichever
    finishes last owns the cache entry.
    """

    def __init__(
        self,
        generator: MetricsGenerator,
        persistence: SnapshotPersistence,
        *,
        clock: Callable[[], float] = time.time,
        freshness: float = FRESHNESS_SECONDS,
    ) -> None:
        """
        Initialize the MetricsStore.

        Args:
            generator: Source of new snapshots.
            persistence: Persistent slot consulted on a memory miss.
            clock: Returns the current wall-clock time in seconds.
            freshness: Maximum age (seconds) of a reusable snapshot.
        """
        self._generator = generator
        self._persistence = persistence
        self._clock = clock
        self._freshness = freshness
        self._entry: CacheEntry | None = None

    @property
    def entry(self) -> CacheEntry | None:
        """Get the current cache entry, if any."""
        return self._entry

    @property
    def freshness(self) -> float:
        """Get the freshness threshold in seconds."""
        return self._freshness

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return entry.age(self._clock()) < self._freshness

    async def get(self, force_refresh: bool = False) -> Snapshot:
        """
        Return the latest snapshot.

        Args:
            force_refresh: Bypass both cache tiers and generate a new snapshot.
        """
        entry = self._entry
        if entry is not None and not force_refresh and self._is_fresh(entry):
            logger.debug("Serving cached snapshot (age %.1fs)", entry.age(self._clock()))
            return entry.snapshot

        if not force_refresh:
            stored = await self._load()
            if stored is not None and self._is_fresh(stored):
                logger.debug("Adopting persisted snapshot captured at %.3f", stored.captured_at)
                return self._update(stored.snapshot, stored.captured_at).snapshot

        snapshot = self._generator.generate()
        captured_at = self._next_capture_time(self._clock())
        await self._save(CacheEntry(snapshot=snapshot, captured_at=captured_at))
        logger.debug("Generated snapshot at %.3f (forced=%s)", captured_at, force_refresh)
        return self._update(snapshot, captured_at).snapshot

    def _next_capture_time(self, candidate: float) -> float:
        """Clamp a capture time so it never precedes the current entry's."""
        if self._entry is not None:
            return max(candidate, self._entry.captured_at)
        return candidate

    def _update(self, snapshot: Snapshot, captured_at: float) -> CacheEntry:
        self._entry = CacheEntry(
            snapshot=snapshot,
            captured_at=self._next_capture_time(captured_at),
        )
        return self._entry

    async def _load(self) -> CacheEntry | None:
        try:
            return await self._persistence.load_snapshot()
        except PersistenceUnavailable as exc:
            logger.warning("Persisted snapshot unavailable, treating as miss: %s", exc)
            return None

    async def _save(self, entry: CacheEntry) -> None:
        try:
            location = await self._persistence.save_snapshot(entry)
        except PersistenceUnavailable as exc:
            logger.warning("Failed to persist snapshot: %s", exc)
            return
        logger.debug("Persisted snapshot to %s", location)
