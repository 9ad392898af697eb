"""Tests for CPU utilization sampling."""

import pytest

from serverstats.errors import SourceUnavailable
from serverstats.models import CpuSnapshot
from serverstats.sampler import CpuSampler, cpu_utilization
from serverstats.sources import FixtureSource


class TestCpuUtilization:
    """Tests for the cpu_utilization formula."""

    def test_basic_percentage(self):
        """Test active over total delta, rounded to 2 places."""
        first = CpuSnapshot(user=100, system=50, idle=800, iowait=50)
        second = CpuSnapshot(user=200, system=100, idle=1500, iowait=100)
        assert cpu_utilization(first, second) == 16.67

    def test_zero_elapsed_ticks(self):
        """Test identical snapshots give exactly 0.00."""
        snapshot = CpuSnapshot(user=5, idle=5)
        assert cpu_utilization(snapshot, snapshot) == 0.0

    def test_counter_reset(self):
        """Test counters going backwards give 0 instead of a negative value."""
        first = CpuSnapshot(user=1000, idle=1000)
        second = CpuSnapshot(user=10, idle=10)
        assert cpu_utilization(first, second) == 0.0

    def test_fully_busy(self):
        """Test no idle time gives 100 percent."""
        first = CpuSnapshot(user=10, idle=10)
        second = CpuSnapshot(user=110, idle=10)
        assert cpu_utilization(first, second) == 100.0

    def test_active_rollback_clamped(self):
        """Test a negative active delta is clamped to zero."""
        first = CpuSnapshot(user=500, idle=100)
        second = CpuSnapshot(user=400, idle=300)
        assert cpu_utilization(first, second) == 0.0

    def test_idle_rollback_never_exceeds_100(self):
        """Test active delta larger than total delta is capped."""
        first = CpuSnapshot(user=100, idle=500)
        second = CpuSnapshot(user=300, idle=400)
        assert cpu_utilization(first, second) == 100.0

    @pytest.mark.parametrize(
        "first, second",
        [
            (CpuSnapshot(user=1, idle=1), CpuSnapshot(user=1, idle=2)),
            (CpuSnapshot(user=0, nice=3, steal=2), CpuSnapshot(user=7, nice=9, idle=40, steal=2)),
            (CpuSnapshot(irq=4, softirq=4, iowait=9), CpuSnapshot(irq=8, softirq=6, iowait=99)),
        ],
    )
    def test_result_in_range(self, first, second):
        """Test non-decreasing totals always give a value in [0, 100]."""
        assert 0.0 <= cpu_utilization(first, second) <= 100.0


class TestCpuSampler:
    """Tests for CpuSampler."""

    def test_sleeps_between_snapshots(self):
        """Test the sampler waits exactly the interval between two reads."""
        calls = []
        source = FixtureSource(
            cpu_snapshots=[CpuSnapshot(user=0, idle=0), CpuSnapshot(user=25, idle=75)]
        )

        def fake_sleep(seconds):
            calls.append((seconds, source.cpu_reads))

        sampler = CpuSampler(source, sleep=fake_sleep)

        assert sampler.sample(1.5) == 25.0
        assert calls == [(1.5, 1)]
        assert source.cpu_reads == 2

    def test_negative_interval(self):
        """Test a negative interval is rejected before any read."""
        source = FixtureSource(cpu_snapshots=[])
        sampler = CpuSampler(source, sleep=lambda s: None)

        with pytest.raises(ValueError):
            sampler.sample(-1)
        assert source.cpu_reads == 0

    def test_source_failure_propagates(self):
        """Test an unreadable CPU source raises SourceUnavailable."""
        source = FixtureSource(
            cpu_snapshots=[CpuSnapshot(), SourceUnavailable("cpu", "permission denied")]
        )
        sampler = CpuSampler(source, sleep=lambda s: None)

        with pytest.raises(SourceUnavailable, match="cpu unavailable"):
            sampler.sample(0)
