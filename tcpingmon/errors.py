"""Error taxonomy for tcpingmon probes and engine lifecycle."""

from tcpingmon.models import FailureKind


class ProbeError(Exception):
    """A single connect attempt did not succeed.

    Every probe error carries the best-effort time spent before the failure
    was detected. That time is informational and never stored as a latency.
    """

    kind: FailureKind

    def __init__(self, message: str, elapsed_ms: float = 0.0, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.elapsed_ms = elapsed_ms
        self.code = code


class ProbeTimeout(ProbeError):
    """The connect timeout elapsed before the handshake completed."""

    kind = FailureKind.TIMEOUT

    def __init__(self, elapsed_ms: float = 0.0):
        super().__init__("Timed out waiting for response", elapsed_ms)


class ProbeCancelled(ProbeError):
    """The caller's cancellation signal fired during the attempt."""

    kind = FailureKind.CANCELLED

    def __init__(self, elapsed_ms: float = 0.0):
        super().__init__("Probe cancelled", elapsed_ms)


class ConnectError(ProbeError):
    """The OS reported a connection error (refused, unreachable, ...)."""

    kind = FailureKind.CONNECT_ERROR

    def __init__(self, errno: int, message: str, elapsed_ms: float = 0.0):
        super().__init__(message, elapsed_ms, code=errno)
        self.errno = errno


class LifecycleError(RuntimeError):
    """An engine lifecycle operation was called in the wrong state."""


class AlreadyActiveError(LifecycleError):
    pass


class NotActiveError(LifecycleError):
    pass


class AlreadyStoppingError(LifecycleError):
    pass


class AlreadyStoppedError(AlreadyStoppingError):
    """The engine has a one-shot lifecycle and cannot start again."""
