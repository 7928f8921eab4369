"""Statistics derived from a target's latency history."""

import statistics
from collections.abc import Iterable
from dataclasses import dataclass

from tcpingmon.models import FAILURE_SENTINEL


@dataclass(frozen=True)
class LatencySummary:
    """min/avg/max/stddev over the successful attempts, in display units."""

    min: float
    avg: float
    max: float
    stddev: float


@dataclass(frozen=True)
class LatencyStats:
    """Derived view of one target's history."""

    total: int
    succeeded: int
    failed: int
    failure_percent: float | None  # None when there were no attempts
    latency: LatencySummary | None  # None when no attempt succeeded

    @property
    def is_available(self) -> bool:
        return self.latency is not None


def display_value(raw_ms: float, real_rtt: bool) -> float:
    """Convert a stored connect time to what is shown to users.

    With real_rtt the connect time (about 2x RTT) is halved. The failure
    sentinel stays at zero either way.
    """
    return raw_ms / 2 if real_rtt else raw_ms


def sample_stddev(values: list[float]) -> float:
    """Sample standard deviation (n-1 denominator), 0.0 for a single value."""
    if len(values) < 2:
        return 0.0
    return statistics.stdev(values)


def compute_stats(samples: Iterable[float], real_rtt: bool = False) -> LatencyStats:
    """Summarize raw history samples.

    Args:
        samples: Raw connect times in ms, FAILURE_SENTINEL for failures
        real_rtt: Halve latencies before aggregating

    Returns:
        LatencyStats; its latency summary is None when nothing succeeded
    """
    samples = list(samples)
    succeeded = [display_value(s, real_rtt) for s in samples if s != FAILURE_SENTINEL]
    total = len(samples)
    failed = total - len(succeeded)

    failure_percent = failed / total * 100 if total else None

    latency = None
    if succeeded:
        latency = LatencySummary(
            min=min(succeeded),
            avg=statistics.fmean(succeeded),
            max=max(succeeded),
            stddev=sample_stddev(succeeded),
        )

    return LatencyStats(
        total=total,
        succeeded=len(succeeded),
        failed=failed,
        failure_percent=failure_percent,
        latency=latency,
    )
