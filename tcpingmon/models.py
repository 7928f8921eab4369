"""Data models for tcpingmon attempts and engine state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tcpingmon.errors import ProbeError

# History value marking a failed attempt
FAILURE_SENTINEL = 0.0


class FailureKind(Enum):
    """Machine-distinguishable classification of a failed attempt."""

    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    CONNECT_ERROR = "connect_error"


class EngineState(Enum):
    """Lifecycle of a TcpingClient. Transitions only move forward."""

    IDLE = "idle"
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ProbeSettings:
    """Live-tunable probe parameters, swapped as a whole and read per attempt."""

    timeout_ms: int
    real_rtt: bool = False

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")


@dataclass
class AttemptResult:
    """Outcome of one completed connect attempt against one target."""

    address: str
    port: int
    sequence: int  # 1-based position in the target's latency history
    time_ms: float  # display-adjusted latency, or time spent before failure
    error: ProbeError | None = None

    def __post_init__(self):
        """Reject results that cannot come out of a worker loop."""
        if self.sequence < 1:
            raise ValueError("sequence must start at 1")
        if self.time_ms < 0:
            raise ValueError("time_ms cannot be negative")
        if self.error is not None and self.error.kind is FailureKind.CANCELLED:
            raise ValueError("a cancelled probe is not an attempt result")

    @property
    def is_successful(self) -> bool:
        return self.error is None

    @property
    def failure_kind(self) -> FailureKind | None:
        return None if self.error is None else self.error.kind

    @property
    def message(self) -> str | None:
        """Human-readable failure cause, None on success."""
        return None if self.error is None else self.error.message

    @property
    def code(self) -> int | None:
        return None if self.error is None else self.error.code
