"""Metrics generators for sysdash."""

import math
import random
from abc import ABC, abstractmethod

from sysdash.models import (
    CpuMetrics,
    DiskMetrics,
    MemoryMetrics,
    ProcessSnapshot,
    Snapshot,
    SystemInfo,
)

CPU_CORES = 8
MEMORY_TOTAL_GB = 16
DISK_TOTAL_GB = 512

# (pid, name, min cpu%, cpu% spread, memory% ceiling)
MOCK_PROCESSES: tuple[tuple[int, str, int, int, float], ...] = (
    (1234, "chrome", 5, 15, 1.5),
    (5678, "node", 3, 10, 1.2),
    (9012, "vscode", 2, 8, 0.8),
    (3456, "spotify", 1, 5, 0.5),
    (7890, "discord", 1, 4, 0.4),
)


class MetricsGenerator(ABC):
    """Source of system snapshots."""

    @abstractmethod
    def generate(self) -> Snapshot:
        """Return a new snapshot of the system state."""


class MockMetricsGenerator(MetricsGenerator):
    """
    Generator that fabricates plausible system metrics.

    Values are drawn from fixed ranges (CPU 30-59%, memory 40-59%,
    disk 50-79%) and the process list always holds the same five entries
    with randomized load.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        """
        Initialize the MockMetricsGenerator.

        Args:
            rng: Random source. Pass a seeded instance for reproducible output.
        """
        self._rng = rng or random.Random()

    def _randint(self, low: int, spread: int) -> int:
        """Integer in [low, low + spread)."""
        return low + math.floor(self._rng.random() * spread)

    def generate(self) -> Snapshot:
        """Generate a synthetic snapshot."""
        cpu_usage = self._randint(30, 30)
        memory_usage = self._randint(40, 20)
        disk_usage = self._randint(50, 30)

        return Snapshot(
            cpu=CpuMetrics(
                usage_percent=cpu_usage,
                cores=CPU_CORES,
                temperature_c=self._randint(40, 10),
            ),
            memory=MemoryMetrics(
                used_gb=round(MEMORY_TOTAL_GB * memory_usage / 100, 1),
                total_gb=MEMORY_TOTAL_GB,
                usage_percent=memory_usage,
            ),
            disk=DiskMetrics(
                used_gb=math.floor(DISK_TOTAL_GB * disk_usage / 100),
                total_gb=DISK_TOTAL_GB,
                usage_percent=disk_usage,
            ),
            system=SystemInfo(
                uptime_seconds=self._randint(86400, 86400),  # 1-2 days
                process_count=self._randint(100, 50),
            ),
            processes=self._generate_processes(),
        )

    def _generate_processes(self) -> tuple[ProcessSnapshot, ...]:
        """Build the fixed process list with randomized per-process load."""
        return tuple(
            ProcessSnapshot(
                pid=pid,
                name=name,
                cpu_percent=self._randint(cpu_min, cpu_spread),
                memory_percent=round(self._rng.random() * memory_ceiling, 1),
            )
            for pid, name, cpu_min, cpu_spread, memory_ceiling in MOCK_PROCESSES
        )
