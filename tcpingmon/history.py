"""Per-target latency history with safe append and snapshot."""

import threading

from tcpingmon.models import FAILURE_SENTINEL


class LatencyHistory:
    """Append-only sequence of raw connect times for one target.

    Values are full connect times in milliseconds; FAILURE_SENTINEL marks a
    failed attempt. Only the owning worker appends, but snapshots may be taken
    from any thread, so both go through the same lock.
    """

    def __init__(self):
        self._samples: list[float] = []
        self._lock = threading.Lock()

    def append(self, value: float) -> int:
        """Append a sample and return the new length (the attempt's sequence)."""
        with self._lock:
            self._samples.append(float(value))
            return len(self._samples)

    def append_failure(self) -> int:
        return self.append(FAILURE_SENTINEL)

    def snapshot(self) -> tuple[float, ...]:
        with self._lock:
            return tuple(self._samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
