"""Simulated prober for tcpingmon development and demos."""

import errno
import os
import random
import threading

from tcpingmon.errors import ConnectError, ProbeCancelled, ProbeTimeout


class FakeProber:
    """Generates plausible connect times and failures without touching the network."""

    def __init__(self, seed: int | None = None):
        """Initialize with optional random seed for deterministic behavior."""
        # Isolated random instance; workers call probe() from several threads
        self._random = random.Random(seed)
        self._lock = threading.Lock()

        # Simulation parameters
        self.base_latency = 25.0  # Base connect time in ms
        self.latency_variance = 5.0
        self.spike_probability = 0.05
        self.spike_multiplier = 3.0
        self.timeout_probability = 0.02
        self.refused_probability = 0.01

    def probe(self, address: str, port: int, timeout_ms: int, cancel: threading.Event) -> float:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if cancel.is_set():
            raise ProbeCancelled()

        with self._lock:
            roll = self._random.random()
            spike = self._random.random() < self.spike_probability
            jitter = self._random.gauss(0, self.latency_variance)

        if roll < self.timeout_probability:
            if cancel.wait(timeout_ms / 1000.0):
                raise ProbeCancelled()
            raise ProbeTimeout(float(timeout_ms))

        latency = self.base_latency * (self.spike_multiplier if spike else 1.0) + jitter
        latency = max(0.1, latency)

        if roll < self.timeout_probability + self.refused_probability:
            raise ConnectError(errno.ECONNREFUSED, os.strerror(errno.ECONNREFUSED), latency)

        if latency >= timeout_ms:
            if cancel.wait(timeout_ms / 1000.0):
                raise ProbeCancelled()
            raise ProbeTimeout(float(timeout_ms))

        # Spend the simulated time so the cadence looks like a real run
        if cancel.wait(latency / 1000.0):
            raise ProbeCancelled(latency)
        return round(latency, 3)
