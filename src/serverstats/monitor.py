"""psutil-backed metric source for server-stats."""

import logging
import os
import platform
import shutil
import socket
import subprocess
import time
from collections.abc import Iterator
from contextlib import contextmanager

import psutil

from serverstats.config import DEFAULT_EXCLUDED_FSTYPES
from serverstats.errors import SourceUnavailable
from serverstats.models import CpuSnapshot, MemoryStats, MountUsage, ProcessRow

logger = logging.getLogger(__name__)

BTMP_PATH = "/var/log/btmp"
BTMP_SUMMARY_PREFIX = "btmp begins"

# Automount triggers; statting them would mount the target
_SKIPPED_FSTYPES = frozenset({"autofs"})

_CPU_FIELDS = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal")

_UPTIME_UNITS = (
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
)


def describe_uptime(seconds: float) -> str:
    """Describe an uptime the way `uptime -p` does, e.g. 'up 2 days, 5 minutes'."""
    remaining = max(int(seconds), 0)
    parts = []
    for name, size in _UPTIME_UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count} {name}" + ("s" if count != 1 else ""))
    if not parts:
        parts.append("0 minutes")
    return "up " + ", ".join(parts)


def count_failed_logins(output: str) -> int | None:
    """
    Count the entries in `lastb` output.

    The listing must end with its 'btmp begins' summary line; anything
    else is not trusted and gives None.
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines or not lines[-1].startswith(BTMP_SUMMARY_PREFIX):
        return None
    return len(lines) - 1


def _kib(value: int) -> int:
    """Convert a byte count to whole KiB."""
    return int(value) // 1024


def _device_id(path: str) -> int:
    """Get the id of the device holding the filesystem mounted at path."""
    return os.stat(path).st_dev


@contextmanager
def _reading(section: str) -> Iterator[None]:
    """Turn OS and psutil failures inside a read into SourceUnavailable."""
    try:
        yield
    except (OSError, psutil.Error) as exc:
        raise SourceUnavailable(section, str(exc) or type(exc).__name__) from exc


class PsutilSource:
    """
    MetricSource that reads the running host through psutil.

    Handles AccessDenied and ZombieProcess errors per process gracefully.
    """

    def __init__(
        self,
        excluded_fstypes: frozenset[str] = DEFAULT_EXCLUDED_FSTYPES,
        btmp_path: str = BTMP_PATH,
    ) -> None:
        """
        Initialize the PsutilSource.

        Args:
            excluded_fstypes: Filesystem types left out of disk usage.
            btmp_path: Failed-login log passed to `lastb`.
        """
        self._excluded_fstypes = excluded_fstypes
        self._btmp_path = btmp_path

    def read_hostname(self) -> str:
        """Get the network name of this host."""
        return socket.gethostname()

    def read_os_identity(self) -> str:
        """Get the distribution name and version, or the kernel name and release."""
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            return f"{platform.system()} {platform.release()}".strip()
        name = release.get("NAME", "Linux")
        version = release.get("VERSION", "")
        return f"{name} {version}".strip()

    def read_uptime_description(self) -> str:
        """Get the time since boot in `uptime -p` wording."""
        with _reading("uptime"):
            boot_time = psutil.boot_time()
        return describe_uptime(time.time() - boot_time)

    def read_load_averages(self) -> tuple[float, float, float]:
        """Get the 1, 5 and 15 minute load averages."""
        with _reading("load average"):
            one, five, fifteen = psutil.getloadavg()
        return (one, five, fifteen)

    def read_cpu_snapshot(self) -> CpuSnapshot:
        """Get the cumulative system-wide CPU time buckets."""
        with _reading("cpu"):
            times = psutil.cpu_times()
        # Fields missing on non-Linux platforms count as zero
        return CpuSnapshot(**{name: getattr(times, name, 0.0) for name in _CPU_FIELDS})

    def read_memory_stats(self) -> MemoryStats:
        """Get total and available physical memory in KiB."""
        with _reading("memory"):
            mem = psutil.virtual_memory()
        return MemoryStats(total_kib=_kib(mem.total), available_kib=_kib(mem.available))

    def read_disk_usage_by_mount(self) -> list[MountUsage]:
        """
        Collect usage for each real filesystem.

        A filesystem mounted more than once, e.g. through bind mounts, is
        counted at its first mount point only, as df does.
        """
        with _reading("disk"):
            partitions = psutil.disk_partitions(all=True)

        mounts: list[MountUsage] = []
        seen_devices: set[int] = set()
        for part in partitions:
            if part.fstype in self._excluded_fstypes or part.fstype in _SKIPPED_FSTYPES:
                continue
            try:
                device = _device_id(part.mountpoint)
                if device in seen_devices:
                    continue
                usage = psutil.disk_usage(part.mountpoint)
            except OSError as exc:
                # Stale or permission-restricted mount points are skipped, like df does
                logger.debug("skipping mount %s: %s", part.mountpoint, exc)
                continue
            if usage.total == 0:
                continue
            seen_devices.add(device)
            mounts.append(
                MountUsage(
                    mountpoint=part.mountpoint,
                    fstype=part.fstype,
                    size_kib=_kib(usage.total),
                    used_kib=_kib(usage.used),
                    available_kib=_kib(usage.free),
                )
            )
        return mounts

    def read_process_table(self) -> list[ProcessRow]:
        """
        Collect one row per running process.

        CPU% is lifetime CPU time over elapsed wall time, as `ps` reports it.
        Processes that exit or deny access mid-scan are skipped.
        """
        rows: list[ProcessRow] = []
        attrs = ["pid", "name", "cpu_times", "create_time", "memory_percent"]
        now = time.time()

        with _reading("processes"):
            for proc in psutil.process_iter(attrs=attrs):
                try:
                    info = proc.info
                    rows.append(
                        ProcessRow(
                            pid=info["pid"],
                            name=info.get("name") or "?",
                            cpu_percent=self._lifetime_cpu_percent(
                                info.get("cpu_times"), info.get("create_time"), now
                            ),
                            memory_percent=info.get("memory_percent") or 0.0,
                        )
                    )
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
        return rows

    @staticmethod
    def _lifetime_cpu_percent(cpu_times, create_time: float | None, now: float) -> float:
        """CPU time used since process start as a percentage of elapsed time."""
        if cpu_times is None or not create_time:
            return 0.0
        elapsed = now - create_time
        if elapsed <= 0:
            return 0.0
        return (cpu_times.user + cpu_times.system) * 100.0 / elapsed

    def read_logged_in_user_count(self) -> int:
        """Get the number of login sessions."""
        with _reading("users"):
            return len(psutil.users())

    def read_failed_login_count(self) -> int | None:
        """Count failed logins in the btmp log, or None when that is not possible."""
        lastb = shutil.which("lastb")
        if lastb is None or not os.access(self._btmp_path, os.R_OK):
            return None
        try:
            # The summary line is translated; the C locale keeps it parseable
            result = subprocess.run(
                [lastb, "-f", self._btmp_path],
                capture_output=True,
                text=True,
                errors="replace",
                env={**os.environ, "LC_ALL": "C"},
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("lastb failed: %s", exc)
            return None
        return count_failed_logins(result.stdout)
