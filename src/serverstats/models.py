"""Data models for server-stats."""

from dataclasses import dataclass
from datetime import datetime


def _percent(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return part * 100.0 / whole


@dataclass(slots=True, frozen=True)
class CpuSnapshot:
    """Cumulative CPU time buckets at one point in time."""

    user: float = 0
    nice: float = 0
    system: float = 0
    idle: float = 0
    iowait: float = 0
    irq: float = 0
    softirq: float = 0
    steal: float = 0

    @property
    def total(self) -> float:
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )

    @property
    def idle_total(self) -> float:
        return self.idle + self.iowait

    @property
    def active(self) -> float:
        return self.total - self.idle_total


@dataclass(slots=True, frozen=True)
class MemoryStats:
    """Physical memory totals in KiB."""

    total_kib: int
    available_kib: int

    @property
    def used_kib(self) -> int:
        return self.total_kib - self.available_kib

    @property
    def used_percent(self) -> float:
        return _percent(self.used_kib, self.total_kib)


@dataclass(slots=True, frozen=True)
class MountUsage:
    """Usage of a single mounted filesystem in KiB."""

    mountpoint: str
    fstype: str
    size_kib: int
    used_kib: int
    available_kib: int


@dataclass(slots=True, frozen=True)
class DiskAggregate:
    """Disk usage summed over all real filesystems, in KiB."""

    total_kib: int = 0
    used_kib: int = 0
    available_kib: int = 0

    @property
    def used_percent(self) -> float:
        return _percent(self.used_kib, self.total_kib)


@dataclass(slots=True, frozen=True)
class ProcessRow:
    """Immutable snapshot of one row of the process table."""

    pid: int
    name: str
    cpu_percent: float  # 0.0 - 100.0 * core_count
    memory_percent: float


@dataclass(slots=True, frozen=True)
class Report:
    """
    Everything a single report run collected.

    Fields set to None are degraded sections whose source could not be
    read; the formatter renders them as N/A.
    """

    timestamp: datetime
    hostname: str | None
    os_identity: str | None
    uptime: str | None
    load_average: tuple[float, float, float] | None
    cpu_percent: float
    sample_interval: float
    memory: MemoryStats | None
    disk: DiskAggregate | None
    top_n: int
    top_cpu: list[ProcessRow] | None
    top_memory: list[ProcessRow] | None
    logged_in_users: int | None
    failed_logins: int | None
