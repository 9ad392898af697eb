"""Report assembly for server-stats."""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TypeVar

from serverstats.config import ReportConfig
from serverstats.models import DiskAggregate, MountUsage, Report
from serverstats.ranking import SortKey, top_by
from serverstats.sampler import CpuSampler
from serverstats.sources import MetricSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


def aggregate_disk(mounts: Iterable[MountUsage], excluded_fstypes: frozenset[str]) -> DiskAggregate:
    """Sum usage over every mount whose filesystem type is not excluded."""
    size = used = available = 0
    for mount in mounts:
        if mount.fstype in excluded_fstypes:
            continue
        size += mount.size_kib
        used += mount.used_kib
        available += mount.available_kib
    if size == 0:
        return DiskAggregate()
    return DiskAggregate(total_kib=size, used_kib=used, available_kib=available)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ReportAssembler:
    """
    Builds one Report from a MetricSource.

    Sections are collected in a fixed order. A failure in any section
    other than CPU degrades that section to None and the run carries on;
    a CPU failure propagates and no report is produced.
    """

    def __init__(
        self,
        source: MetricSource,
        config: ReportConfig,
        sampler: CpuSampler | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._source = source
        self._config = config
        self._sampler = sampler if sampler is not None else CpuSampler(source)
        self._clock = clock if clock is not None else _local_now

    def _section(self, name: str, read: Callable[[], T]) -> T | None:
        try:
            return read()
        except Exception as exc:
            logger.warning("%s section unavailable: %s", name, exc)
            logger.debug("%s section failure", name, exc_info=True)
            return None

    def _read_disk(self) -> DiskAggregate:
        mounts = self._source.read_disk_usage_by_mount()
        logger.debug("disk: %d mounts after exclusion", len(mounts))
        return aggregate_disk(mounts, self._config.excluded_fstypes)

    def assemble(self) -> Report:
        """
        Collect every section and return the finished Report.

        Raises:
            SourceUnavailable: If the CPU counters cannot be read.
        """
        source = self._source
        top_n = self._config.top_n

        timestamp = self._clock()
        hostname = self._section("hostname", source.read_hostname)
        os_identity = self._section("os identity", source.read_os_identity)
        uptime = self._section("uptime", source.read_uptime_description)
        load_average = self._section("load average", source.read_load_averages)

        cpu_percent = self._sampler.sample(self._config.interval)

        memory = self._section("memory", source.read_memory_stats)
        disk = self._section("disk", self._read_disk)

        # One snapshot feeds both lists so they describe the same moment
        processes = self._section("processes", source.read_process_table)
        top_cpu = top_memory = None
        if processes is not None:
            logger.debug("processes: %d rows", len(processes))
            top_cpu = top_by(processes, SortKey.CPU, top_n)
            top_memory = top_by(processes, SortKey.MEM, top_n)

        logged_in_users = self._section("logged-in users", source.read_logged_in_user_count)
        failed_logins = self._section("failed logins", source.read_failed_login_count)

        return Report(
            timestamp=timestamp,
            hostname=hostname,
            os_identity=os_identity,
            uptime=uptime,
            load_average=load_average,
            cpu_percent=cpu_percent,
            sample_interval=self._config.interval,
            memory=memory,
            disk=disk,
            top_n=top_n,
            top_cpu=top_cpu,
            top_memory=top_memory,
            logged_in_users=logged_in_users,
            failed_logins=failed_logins,
        )
