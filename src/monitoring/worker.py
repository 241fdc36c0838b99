"""Background processing thread fed by a bounded sample queue.

The transport thread calls :meth:`StreamWorker.submit`; a full queue blocks
the caller instead of dropping samples, and a single consumer thread feeds
the session in arrival order.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from src.ecg_system.exceptions import ECGSystemError, WorkerError
from src.monitoring.session import MonitoringSession

logger = logging.getLogger(__name__)

_STOP = object()


class StreamWorker:
    """Consume (amplitude, timestamp) pairs from a bounded queue on one thread.

    Args:
        session: Session receiving the samples.
        queue_size: Maximum number of samples waiting for processing.
    """

    def __init__(self, session: MonitoringSession, queue_size: int = 1024) -> None:
        self.session = session
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[Exception] = None
        self.processed = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise WorkerError("Stream worker already started")
        self._thread = threading.Thread(target=self._run, name="pvc-stream", daemon=True)
        self._thread.start()

    def submit(self, amplitude: float, timestamp: float, timeout: Optional[float] = None) -> None:
        """Queue one sample, blocking while the queue is full."""
        self._raise_pending()
        if not self.running:
            raise WorkerError("Stream worker is not running")
        try:
            self._queue.put((amplitude, timestamp), timeout=timeout)
        except queue.Full as exc:
            raise WorkerError(f"Sample queue full after {timeout}s") from exc

    def join(self) -> None:
        """Block until every queued sample has been processed."""
        if self.running:
            self._queue.join()
        self._raise_pending()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Process what is queued, then stop the thread."""
        if self._thread is None:
            raise WorkerError("Stream worker was never started")
        if self._thread.is_alive():
            self._queue.put(_STOP)
            self._thread.join(timeout)
        self._raise_pending()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                amplitude, timestamp = item
                self.session.push_sample(amplitude, timestamp)
                self.processed += 1
            except ECGSystemError as exc:
                logger.error("Stream worker stopped on sample error: %s", exc)
                self._error = exc
                self._drain()
                return
            except Exception as exc:
                logger.exception("Stream worker crashed on sample %r", item)
                self._error = exc
                self._drain()
                return
            finally:
                self._queue.task_done()

    def _drain(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return
            self._queue.task_done()

    def _raise_pending(self) -> None:
        if self._error is not None:
            raise WorkerError(f"Stream worker failed: {self._error}") from self._error
