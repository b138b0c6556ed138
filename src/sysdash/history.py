"""Bounded usage history for the sysdash chart."""

from collections import deque
from datetime import datetime, timedelta
from enum import Enum

from sysdash.config import HISTORY_CAPACITY
from sysdash.models import HistorySample


class TimeRange(Enum):
    """Time windows selectable on the usage chart."""

    HOUR = "1h"
    SIX_HOURS = "6h"
    DAY = "24h"

    @property
    def delta(self) -> timedelta:
        """Length of the window."""
        return {
            TimeRange.HOUR: timedelta(hours=1),
            TimeRange.SIX_HOURS: timedelta(hours=6),
            TimeRange.DAY: timedelta(hours=24),
        }[self]

    def next(self) -> "TimeRange":
        """Return the following range, wrapping around."""
        ranges = list(TimeRange)
        return ranges[(ranges.index(self) + 1) % len(ranges)]


class HistoryBuffer:
    """
    Append-only sample buffer that evicts the oldest sample once full.

    Samples are kept in insertion order.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._samples: deque[HistorySample] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def capacity(self) -> int:
        """Get the maximum number of samples held."""
        return self._samples.maxlen or 0

    @property
    def samples(self) -> list[HistorySample]:
        """Get a copy of the samples, oldest first."""
        return list(self._samples)

    def append(self, sample: HistorySample) -> None:
        """Add a sample, evicting the oldest if the buffer is full."""
        self._samples.append(sample)

    def clear(self) -> None:
        """Empty the buffer."""
        self._samples.clear()

    def window(self, time_range: TimeRange, now: datetime) -> list[HistorySample]:
        """Return the samples taken within `time_range` of `now`, oldest first."""
        cutoff = now - time_range.delta
        return [sample for sample in self._samples if sample.timestamp >= cutoff]
