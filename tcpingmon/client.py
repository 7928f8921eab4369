"""Concurrent TCP ping engine: one worker per target, one shared stop signal."""

import logging
import threading
import time
from collections.abc import Iterable
from dataclasses import replace

from PySide6.QtCore import QObject, Qt, QThreadPool, Signal

from tcpingmon.errors import (
    AlreadyActiveError,
    AlreadyStoppedError,
    AlreadyStoppingError,
    NotActiveError,
)
from tcpingmon.history import LatencyHistory
from tcpingmon.models import EngineState, ProbeSettings
from tcpingmon.probe import DEFAULT_TIMEOUT_MS, address_family
from tcpingmon.prober import Prober, TcpProber
from tcpingmon.stats import LatencyStats, compute_stats, display_value
from tcpingmon.workers import PROBE_INTERVAL_MS, ProbeWorker

logger = logging.getLogger(__name__)

DEFAULT_PORT = 80
STOP_POLL_INTERVAL_S = 0.01


class TcpingClient(QObject):
    """Pings a set of addresses over TCP until stopped.

    Key features:
    - One ProbeWorker per address, all running in parallel on a private pool
    - A single set-once cancellation event shared by every worker
    - Per-address latency histories, written only by the owning worker
    - timeout_ms and real_rtt are read by workers on every attempt, so
      changing them mid-run takes effect at the next attempt

    The lifecycle is one-shot: Idle -> Running -> StopRequested -> Stopped.

    The responded signal is emitted from worker threads. Slots on a QObject
    living in another thread receive it queued; Qt.DirectConnection
    subscribers are called concurrently from several workers and must
    serialize themselves if they need to.
    """

    responded = Signal(object)  # AttemptResult

    def __init__(
        self,
        addresses: Iterable[str],
        port: int = DEFAULT_PORT,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        real_rtt: bool = False,
        prober: Prober | None = None,
        interval_ms: int = PROBE_INTERVAL_MS,
        strict_stop: bool = False,
        parent=None,
    ):
        """Initialize the engine.

        Args:
            addresses: Resolved IP addresses; duplicates are dropped, host
                names raise ValueError
            port: Target TCP port for every address
            timeout_ms: Connect timeout per attempt
            real_rtt: Report half of the connect time (about one RTT)
            prober: Prober used by workers (default: real TCP connects)
            interval_ms: Pause between attempts against one address
            strict_stop: Raise AlreadyStoppingError on a repeated stop()
                instead of ignoring it
            parent: Qt parent object
        """
        super().__init__(parent)

        addresses = tuple(dict.fromkeys(addresses))
        if not addresses:
            raise ValueError("at least one address is required")
        if not 1 <= port <= 65535:
            raise ValueError(f"port out of range: {port}")
        if interval_ms < 0:
            raise ValueError("interval_ms cannot be negative")
        for address in addresses:
            address_family(address)

        self._addresses = addresses
        self._port = port
        self._settings = ProbeSettings(timeout_ms=timeout_ms, real_rtt=real_rtt)
        self.prober = prober if prober is not None else TcpProber()
        self.interval_ms = interval_ms
        self.strict_stop = strict_stop

        self._histories = {address: LatencyHistory() for address in addresses}
        self._workers: dict[str, ProbeWorker] = {}

        # Lifecycle state
        self._cancel = threading.Event()
        self._alive: set[str] = set()
        self._started = False
        self._lock = threading.Lock()

        # Every address gets its own thread for the whole run
        self.thread_pool = QThreadPool(self)
        self.thread_pool.setMaxThreadCount(len(addresses))

    @property
    def addresses(self) -> tuple[str, ...]:
        return self._addresses

    @property
    def port(self) -> int:
        return self._port

    @property
    def timeout_ms(self) -> int:
        return self._settings.timeout_ms

    @timeout_ms.setter
    def timeout_ms(self, value: int):
        self._settings = replace(self._settings, timeout_ms=value)
        logger.debug("Timeout updated: %dms", value)

    @property
    def real_rtt(self) -> bool:
        """Whether reported and aggregated latencies are halved.

        Stored histories always keep the full connect time.
        """
        return self._settings.real_rtt

    @real_rtt.setter
    def real_rtt(self, value: bool):
        self._settings = replace(self._settings, real_rtt=bool(value))
        logger.debug("Display mode updated: real_rtt=%s", bool(value))

    @property
    def is_active(self) -> bool:
        """True while at least one worker is still running."""
        with self._lock:
            return bool(self._alive)

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancel.is_set()

    @property
    def state(self) -> EngineState:
        with self._lock:
            alive = bool(self._alive)
            started = self._started
        cancelled = self._cancel.is_set()

        if alive:
            return EngineState.STOP_REQUESTED if cancelled else EngineState.RUNNING
        if started or cancelled:
            return EngineState.STOPPED
        return EngineState.IDLE

    def start(self):
        """Start one worker per address. Does not block.

        Raises:
            AlreadyActiveError: Workers are still running
            AlreadyStoppedError: A stop was requested or the run already ended
        """
        with self._lock:
            if self._alive:
                raise AlreadyActiveError("TcpingClient has already started")
            if self._cancel.is_set() or self._started:
                raise AlreadyStoppedError("Cannot start again after stop requested")
            self._started = True
            # Mark alive before scheduling so is_active is true on return
            self._alive.update(self._addresses)

        for address in self._addresses:
            worker = ProbeWorker(
                self.prober,
                address,
                self._port,
                self._histories[address],
                self._cancel,
                self._current_settings,
                self.interval_ms,
            )
            worker.setAutoDelete(False)
            worker.signals.responded.connect(self._on_responded, Qt.ConnectionType.DirectConnection)
            worker.signals.finished.connect(
                self._on_worker_finished, Qt.ConnectionType.DirectConnection
            )
            self._workers[address] = worker
            self.thread_pool.start(worker)

        logger.info(
            "Probing started: %d addresses, port=%d, timeout=%dms, interval=%dms",
            len(self._addresses),
            self._port,
            self.timeout_ms,
            self.interval_ms,
        )

    def stop(self, force: bool = False):
        """Request every worker to stop. Does not block.

        A repeated stop is ignored unless strict_stop was requested.

        Args:
            force: Raise the cancellation signal even if nothing is running

        Raises:
            NotActiveError: Nothing is running and force is not set
            AlreadyStoppingError: Repeated stop with strict_stop enabled
        """
        if self._cancel.is_set():
            if self.strict_stop:
                raise AlreadyStoppingError("TcpingClient has been requested to stop")
            logger.debug("Stop ignored: already requested")
            return

        if not (self.is_active or force):
            raise NotActiveError("TcpingClient isn't active")

        self._cancel.set()
        logger.info("Stop requested (force=%s)", force)

    def stop_and_wait(
        self,
        timeout_ms: int | None = None,
        cancel: threading.Event | None = None,
        force: bool = False,
    ) -> bool:
        """Stop, then poll until every worker has exited.

        If a stop was already requested the wait goes ahead without calling
        stop() again, so strict_stop does not turn it into an error.

        Args:
            timeout_ms: Give up waiting after this long (None waits forever)
            cancel: Give up waiting once this event is set
            force: Passed to stop()

        Returns:
            True if no worker is running any more
        """
        if not self._cancel.is_set():
            self.stop(force=force)

        deadline = None if timeout_ms is None else time.monotonic() + timeout_ms / 1000.0
        while self.is_active:
            if cancel is not None and cancel.is_set():
                break
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(STOP_POLL_INTERVAL_S)

        stopped = not self.is_active
        if stopped:
            logger.info("All workers stopped")
        else:
            logger.warning("Workers still running after stop_and_wait gave up")
        return stopped

    @property
    def stats(self) -> dict[str, tuple[float, ...]]:
        """Per-address samples in display units; failures stay at zero."""
        real_rtt = self.real_rtt
        return {
            address: tuple(display_value(v, real_rtt) for v in history.snapshot())
            for address, history in self._histories.items()
        }

    def history(self, address: str) -> tuple[float, ...]:
        """Raw stored connect times for one address."""
        return self._histories[address].snapshot()

    def statistics(self) -> dict[str, LatencyStats]:
        """Derived statistics per address, safe to call while running."""
        real_rtt = self.real_rtt
        return {
            address: compute_stats(history.snapshot(), real_rtt)
            for address, history in self._histories.items()
        }

    def _current_settings(self) -> ProbeSettings:
        return self._settings

    def _on_responded(self, result):
        self.responded.emit(result)

    def _on_worker_finished(self, address: str):
        with self._lock:
            self._alive.discard(address)
            remaining = len(self._alive)
        logger.debug("Worker exited: address=%s (remaining: %d)", address, remaining)
