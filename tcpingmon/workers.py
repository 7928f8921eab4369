"""Per-target probing worker run on a Qt thread pool."""

import logging
import threading
from collections.abc import Callable

from PySide6.QtCore import QObject, QRunnable, Signal

from tcpingmon.errors import ProbeCancelled, ProbeError
from tcpingmon.history import LatencyHistory
from tcpingmon.models import AttemptResult, ProbeSettings
from tcpingmon.prober import Prober
from tcpingmon.stats import display_value

logger = logging.getLogger(__name__)

PROBE_INTERVAL_MS = 1000


class WorkerSignals(QObject):
    """Signals for communicating between a probe worker and its engine."""

    responded = Signal(object)  # Emits AttemptResult
    finished = Signal(str)  # Emits the worker's address when its loop ends


class ProbeWorker(QRunnable):
    """Worker that probes one address until the shared cancel event is set."""

    def __init__(
        self,
        prober: Prober,
        address: str,
        port: int,
        history: LatencyHistory,
        cancel: threading.Event,
        settings: Callable[[], ProbeSettings],
        interval_ms: int = PROBE_INTERVAL_MS,
    ):
        super().__init__()
        self.prober = prober
        self.address = address
        self.port = port
        self.history = history
        self.cancel = cancel
        self.settings = settings
        self.interval_ms = interval_ms
        self.signals = WorkerSignals()

    def run(self):
        """Execute the probing loop in a pool thread."""
        logger.debug("Worker starting: address=%s, port=%d", self.address, self.port)
        try:
            while not self.cancel.is_set():
                if not self.probe_once():
                    break
                if self.cancel.wait(self.interval_ms / 1000.0):
                    break
        except Exception as e:
            # Probe failures are data; anything else ends this worker only
            logger.exception("Worker exception: address=%s, error=%s", self.address, str(e))
        finally:
            logger.debug("Worker finished: address=%s, attempts=%d", self.address, len(self.history))
            self.signals.finished.emit(self.address)

    def probe_once(self) -> bool:
        """Run one attempt, record it and notify listeners.

        Returns:
            False if the attempt was cancelled and the loop should end
        """
        settings = self.settings()
        try:
            elapsed = self.prober.probe(self.address, self.port, settings.timeout_ms, self.cancel)
        except ProbeCancelled:
            logger.debug("Probe cancelled: address=%s", self.address)
            return False
        except ProbeError as e:
            sequence = self.history.append_failure()
            logger.debug(
                "Probe failed: address=%s, seq=%d, kind=%s, msg=%s",
                self.address,
                sequence,
                e.kind.value,
                e.message,
            )
            result = AttemptResult(self.address, self.port, sequence, max(0.0, e.elapsed_ms), e)
        else:
            sequence = self.history.append(elapsed)
            result = AttemptResult(
                self.address, self.port, sequence, display_value(elapsed, settings.real_rtt)
            )

        self.signals.responded.emit(result)
        return True
