"""Verification Test: Memory Leak Check.

Drives the store, scheduler and history buffer through thousands of refresh
cycles on a simulated clock and checks that resident memory stays flat.
The cache keeps a single entry and the history buffer is bounded, so memory
must not grow with the number of refreshes.
"""

import gc
from datetime import datetime, timezone

import psutil
import pytest

from sysdash.history import HistoryBuffer
from sysdash.models import HistorySample
from sysdash.persistence import MemoryPersistence
from sysdash.scheduler import RefreshScheduler
from sysdash.store import MetricsStore


def get_current_memory_mb() -> float:
    """Get current process memory usage in MB."""
    process = psutil.Process()
    return process.memory_info().rss / (1024 * 1024)


class TestMemoryLeakCheck:
    """Memory leak verification suite tests."""

    @pytest.mark.asyncio
    async def test_refresh_cycles_memory_stability(self, generator, clock):
        """
        Test that repeated refresh cycles don't leak memory.

        A warm-up phase runs first so one-off allocations (imports, caches)
        are not counted against the steady state.
        """
        store = MetricsStore(generator, MemoryPersistence(), clock=clock.time)
        history = HistoryBuffer()

        async def refresh():
            snapshot = await store.get(force_refresh=True)
            timestamp = datetime.fromtimestamp(clock.now, timezone.utc)
            history.append(HistorySample.from_snapshot(snapshot, timestamp))

        scheduler = RefreshScheduler(refresh, 5.0, sleep=clock.sleep)
        scheduler.enable()

        # Warm-up
        await clock.advance(5.0 * 200)
        gc.collect()
        initial_memory = get_current_memory_mb()

        await clock.advance(5.0 * 3000)
        scheduler.disable()
        await clock.advance(0)

        gc.collect()
        final_memory = get_current_memory_mb()
        memory_delta = final_memory - initial_memory

        assert scheduler.tick_count == 3200
        assert len(history) == history.capacity
        assert not scheduler._in_flight

        # Allow small increase due to Python runtime variations
        max_delta_mb = 5.0
        assert memory_delta < max_delta_mb, (
            f"Memory increased by {memory_delta:.2f}MB over 3000 refreshes, "
            f"expected < {max_delta_mb}MB"
        )
