"""Metric source interface and a fixed-data implementation."""

from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from serverstats.config import DEFAULT_EXCLUDED_FSTYPES
from serverstats.errors import SourceUnavailable
from serverstats.models import CpuSnapshot, MemoryStats, MountUsage, ProcessRow


class MetricSource(Protocol):
    """
    Read access to the raw counters a report is built from.

    Every read is synchronous, side-effect free and uncached. Reads other
    than read_failed_login_count may raise SourceUnavailable.
    """

    def read_hostname(self) -> str: ...

    def read_os_identity(self) -> str: ...

    def read_uptime_description(self) -> str: ...

    def read_load_averages(self) -> tuple[float, float, float]: ...

    def read_cpu_snapshot(self) -> CpuSnapshot: ...

    def read_memory_stats(self) -> MemoryStats: ...

    def read_disk_usage_by_mount(self) -> list[MountUsage]: ...

    def read_process_table(self) -> list[ProcessRow]: ...

    def read_logged_in_user_count(self) -> int: ...

    def read_failed_login_count(self) -> int | None: ...


T = TypeVar("T")


def _resolve(value: T | Exception) -> T:
    """Return a fixture value, raising it instead if it is an exception."""
    if isinstance(value, Exception):
        raise value
    return value


@dataclass(slots=True)
class FixtureSource:
    """
    MetricSource that serves fixed values.

    CPU snapshots are handed out in order, one per read. Any value may be
    an exception instance, which is raised by the matching read instead.
    """

    cpu_snapshots: list[CpuSnapshot | Exception]
    hostname: str | Exception = "localhost"
    os_identity: str | Exception = "Linux"
    uptime: str | Exception = "up 0 minutes"
    load_averages: tuple[float, float, float] | Exception = (0.0, 0.0, 0.0)
    memory: MemoryStats | Exception = MemoryStats(total_kib=0, available_kib=0)
    mounts: list[MountUsage] | Exception = field(default_factory=list)
    processes: list[ProcessRow] | Exception = field(default_factory=list)
    logged_in_users: int | Exception = 0
    failed_logins: int | None = None
    excluded_fstypes: frozenset[str] = DEFAULT_EXCLUDED_FSTYPES
    cpu_reads: int = 0

    def read_hostname(self) -> str:
        return _resolve(self.hostname)

    def read_os_identity(self) -> str:
        return _resolve(self.os_identity)

    def read_uptime_description(self) -> str:
        return _resolve(self.uptime)

    def read_load_averages(self) -> tuple[float, float, float]:
        return _resolve(self.load_averages)

    def read_cpu_snapshot(self) -> CpuSnapshot:
        if self.cpu_reads >= len(self.cpu_snapshots):
            raise SourceUnavailable("cpu", "no more fixture snapshots")
        snapshot = self.cpu_snapshots[self.cpu_reads]
        self.cpu_reads += 1
        return _resolve(snapshot)

    def read_memory_stats(self) -> MemoryStats:
        return _resolve(self.memory)

    def read_disk_usage_by_mount(self) -> list[MountUsage]:
        mounts = _resolve(self.mounts)
        return [m for m in mounts if m.fstype not in self.excluded_fstypes]

    def read_process_table(self) -> list[ProcessRow]:
        return list(_resolve(self.processes))

    def read_logged_in_user_count(self) -> int:
        return _resolve(self.logged_in_users)

    def read_failed_login_count(self) -> int | None:
        return self.failed_logins
