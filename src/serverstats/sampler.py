"""CPU utilization sampling for server-stats."""

import logging
import time
from collections.abc import Callable

from serverstats.models import CpuSnapshot
from serverstats.sources import MetricSource

logger = logging.getLogger(__name__)


def cpu_utilization(first: CpuSnapshot, second: CpuSnapshot) -> float:
    """
    Percentage of non-idle CPU time between two snapshots.

    Returns 0.0 when no ticks elapsed or the counters went backwards, and
    never leaves the 0-100 range.
    """
    total_delta = second.total - first.total
    if total_delta <= 0:
        return 0.0
    active_delta = max(second.active - first.active, 0)
    return min(round(active_delta * 100.0 / total_delta, 2), 100.0)


class CpuSampler:
    """Measures CPU utilization over a fixed window."""

    def __init__(
        self,
        source: MetricSource,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the CpuSampler.

        Args:
            source: Where CPU snapshots are read from.
            sleep: Blocking wait between the two snapshots.
        """
        self._source = source
        self._sleep = sleep

    def sample(self, interval: float) -> float:
        """
        Take two snapshots `interval` seconds apart and return usage in percent.

        Raises:
            ValueError: If interval is negative.
            SourceUnavailable: If either snapshot cannot be read.
        """
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval!r}")

        first = self._source.read_cpu_snapshot()
        self._sleep(interval)
        second = self._source.read_cpu_snapshot()

        usage = cpu_utilization(first, second)
        logger.debug(
            "cpu sample over %ss: total delta %s, active delta %s -> %.2f%%",
            interval,
            second.total - first.total,
            second.active - first.active,
            usage,
        )
        return usage
