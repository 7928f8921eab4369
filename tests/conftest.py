"""Shared fixtures and test doubles for tcpingmon tests."""

import threading
import time

import pytest
from PySide6.QtCore import QCoreApplication

from tcpingmon.errors import ProbeCancelled, ProbeError


@pytest.fixture(scope="session")
def qapp():
    """Create QCoreApplication instance for tests."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class ScriptedProber:
    """Prober that replays a fixed list of outcomes per address.

    Floats are returned as connect times, ProbeError instances are raised.
    Once an address's script is used up the probe blocks until cancelled,
    like a real connect waiting on an unresponsive host.
    """

    def __init__(self, scripts: dict[str, list]):
        self._scripts = {address: list(steps) for address, steps in scripts.items()}
        self._lock = threading.Lock()
        self.calls = []  # (address, port, timeout_ms)

    def probe(self, address, port, timeout_ms, cancel):
        with self._lock:
            self.calls.append((address, port, timeout_ms))
            steps = self._scripts.get(address, [])
            step = steps.pop(0) if steps else None

        if step is None:
            cancel.wait()
            raise ProbeCancelled()
        if isinstance(step, ProbeError):
            raise step
        return step


class Recorder:
    """Collects emitted values; safe to call from several threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items = []

    def append(self, item):
        with self._lock:
            self._items.append(item)

    @property
    def items(self):
        with self._lock:
            return list(self._items)


def wait_until(predicate, timeout=3.0, interval=0.005):
    """Poll predicate until it is true or timeout seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
