"""Prober abstraction for tcpingmon connect-time sources."""

import threading
from typing import Protocol

from tcpingmon.probe import tcping_interruptible


class Prober(Protocol):
    """Protocol defining the interface for connect-time probers."""

    def probe(self, address: str, port: int, timeout_ms: int, cancel: threading.Event) -> float:
        """Return the connect time in ms or raise a ProbeError subclass."""
        ...


class TcpProber:
    """Prober that opens real TCP connections."""

    def probe(self, address: str, port: int, timeout_ms: int, cancel: threading.Event) -> float:
        return tcping_interruptible(address, port, timeout_ms, cancel)
