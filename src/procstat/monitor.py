"""Background sampling thread for the interactive screen."""

import logging
import threading
from queue import Queue

from procstat.errors import ProcFilesystemError
from procstat.models import ScanResult
from procstat.scanner import Scanner

logger = logging.getLogger(__name__)

MIN_POLL_RATE = 0.1


class ProcessMonitor:
    """
    Runs a Scanner in a daemon thread and pushes results to a Queue.

    Stopping is cooperative: the stop event is checked before every pass
    and wakes the thread from its sleep. A fatal /proc error ends the loop
    and is kept in ``error`` for the consumer to report.
    """

    def __init__(
        self,
        update_queue: Queue[ScanResult],
        scanner: Scanner,
        poll_rate: float | None = None,
    ) -> None:
        """
        Initialize the ProcessMonitor.

        Args:
            update_queue: Thread-safe queue to push results to.
            scanner: Scanner owning the history for this run.
            poll_rate: Seconds between passes. Defaults to the watch interval.
        """
        self._queue = update_queue
        self._scanner = scanner
        if poll_rate is None:
            poll_rate = scanner.config.watch_interval
        self._poll_rate = max(MIN_POLL_RATE, poll_rate)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: ProcFilesystemError | None = None

    @property
    def poll_rate(self) -> float:
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        self._poll_rate = max(MIN_POLL_RATE, value)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def error(self) -> ProcFilesystemError | None:
        """Fatal error that stopped the loop, if any."""
        return self._error

    def start(self) -> None:
        """Start the sampling thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._error = None
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="ProcessMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the sampling thread.

        Args:
            timeout: How long to wait for the thread to finish (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self._queue.put(self._scanner.scan())
            except ProcFilesystemError as exc:
                logger.error("%s", exc)
                self._error = exc
                break

            self._stop_event.wait(timeout=self._poll_rate)
