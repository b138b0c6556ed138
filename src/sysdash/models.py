"""Data models for sysdash."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass(slots=True, frozen=True)
class CpuMetrics:
    """CPU load, core count and package temperature."""

    usage_percent: float
    cores: int
    temperature_c: float


@dataclass(slots=True, frozen=True)
class MemoryMetrics:
    """Physical memory usage."""

    used_gb: float
    total_gb: float
    usage_percent: float


@dataclass(slots=True, frozen=True)
class DiskMetrics:
    """Disk usage of the primary volume."""

    used_gb: float
    total_gb: float
    usage_percent: float


@dataclass(slots=True, frozen=True)
class SystemInfo:
    """Host-wide counters."""

    uptime_seconds: int
    process_count: int


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of a process state."""

    pid: int
    name: str
    cpu_percent: float
    memory_percent: float


@dataclass(slots=True, frozen=True)
class Snapshot:
    """One complete, immutable capture of system metrics."""

    cpu: CpuMetrics
    memory: MemoryMetrics
    disk: DiskMetrics
    system: SystemInfo
    processes: tuple[ProcessSnapshot, ...]

    def to_dict(self) -> dict[str, Any]:
        """Return the snapshot as nested plain dicts and lists."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        """
        Build a snapshot from the form produced by `to_dict`.

        Raises:
            ValueError: If a section is missing or has unexpected fields.
        """
        try:
            return cls(
                cpu=CpuMetrics(**data["cpu"]),
                memory=MemoryMetrics(**data["memory"]),
                disk=DiskMetrics(**data["disk"]),
                system=SystemInfo(**data["system"]),
                processes=tuple(ProcessSnapshot(**proc) for proc in data["processes"]),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed snapshot data: {exc}") from exc


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """The most recent snapshot and the wall-clock time it was captured."""

    snapshot: Snapshot
    captured_at: float  # Seconds since the epoch

    def age(self, now: float) -> float:
        """Seconds elapsed between capture and `now`."""
        return now - self.captured_at

    def to_dict(self) -> dict[str, Any]:
        """Return the entry as a JSON-ready document."""
        return {"captured_at": self.captured_at, "snapshot": self.snapshot.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        """Build an entry from the document produced by `to_dict`."""
        try:
            captured_at = float(data["captured_at"])
            snapshot_data = data["snapshot"]
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed cache entry: {exc}") from exc
        return cls(snapshot=Snapshot.from_dict(snapshot_data), captured_at=captured_at)


@dataclass(slots=True, frozen=True)
class HistorySample:
    """CPU and memory usage at one point in time, used for charting."""

    timestamp: datetime
    cpu_percent: float
    memory_percent: float

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot, timestamp: datetime) -> "HistorySample":
        """Derive a chart sample from a snapshot."""
        return cls(
            timestamp=timestamp,
            cpu_percent=snapshot.cpu.usage_percent,
            memory_percent=snapshot.memory.usage_percent,
        )
