"""Shared fixtures for server-stats tests."""

import logging
from datetime import datetime, timezone

import pytest

from serverstats.models import CpuSnapshot, MemoryStats, MountUsage, ProcessRow
from serverstats.sources import FixtureSource

FIXED_TIME = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)

PROCESSES = [
    ProcessRow(pid=1, name="systemd", cpu_percent=0.1, memory_percent=0.2),
    ProcessRow(pid=812, name="postgres", cpu_percent=12.5, memory_percent=8.75),
    ProcessRow(pid=1024, name="nginx", cpu_percent=3.25, memory_percent=1.5),
    ProcessRow(pid=2048, name="python3", cpu_percent=25.0, memory_percent=4.0),
]


def make_source(**overrides) -> FixtureSource:
    """Deterministic host: 16.67% CPU, 5 of 8 GiB memory, 50 of 100 GiB disk."""
    values = dict(
        cpu_snapshots=[
            CpuSnapshot(user=100, system=50, idle=800, iowait=50),
            CpuSnapshot(user=200, system=100, idle=1500, iowait=100),
        ],
        hostname="web-01",
        os_identity="Debian GNU/Linux 12 (bookworm)",
        uptime="up 3 days, 4 hours, 5 minutes",
        load_averages=(1.5, 0.75, 0.25),
        memory=MemoryStats(total_kib=8 * 1024**2, available_kib=3 * 1024**2),
        mounts=[
            MountUsage("/", "ext4", 100 * 1024**2, 50 * 1024**2, 50 * 1024**2),
            MountUsage("/run", "tmpfs", 1000, 999, 1),
        ],
        processes=list(PROCESSES),
        logged_in_users=3,
        failed_logins=None,
    )
    values.update(overrides)
    return FixtureSource(**values)


@pytest.fixture
def source() -> FixtureSource:
    return make_source()


@pytest.fixture(autouse=True)
def reset_serverstats_logging():
    """Drop handlers bound to captured streams between tests."""
    yield
    logger = logging.getLogger("serverstats")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
