"""
Sweep Scheduler

Runs the garbage collector on a fixed interval in a background thread of
the web process. The sweep takes the same index lock as request handlers,
so it is just another serialized mutator.
"""

import logging
import threading
from typing import Optional

from domain.file_sharing.services import GarbageCollector, SweepReport

logger = logging.getLogger(__name__)


class SweepScheduler:
    """
    Recurring, stoppable driver for GarbageCollector.sweep().

    A failing sweep is logged and the loop carries on with the next
    interval; one bad sweep never stops expiry enforcement.
    """

    def __init__(self, collector: GarbageCollector, interval_seconds: float):
        """
        Initialize SweepScheduler.

        Args:
            collector: Garbage collector to drive
            interval_seconds: Delay between the end of one sweep and the
                start of the next
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.collector = collector
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.last_report: Optional[SweepReport] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background loop. Starting a running scheduler is a no-op."""
        with self._lock:
            if self.is_running:
                return

            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="droplink-sweep", daemon=True
            )
            self._thread.start()

        logger.info(f"Sweep scheduler started (every {self.interval_seconds}s)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """
        Stop the loop and wait for an in-progress sweep to finish.

        Args:
            timeout: Maximum seconds to wait for the thread to exit
        """
        with self._lock:
            thread = self._thread
            self._stop_event.set()

        if thread is None:
            return

        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Sweep thread did not stop within timeout")
        else:
            logger.info("Sweep scheduler stopped")

        with self._lock:
            if self._thread is thread and not thread.is_alive():
                self._thread = None

    def run_once(self) -> Optional[SweepReport]:
        """
        Run a single sweep in the calling thread.

        Returns:
            SweepReport, or None if the sweep failed (the error is logged)
        """
        try:
            report = self.collector.sweep()
        except Exception as e:
            logger.error(f"Sweep failed: {e}", exc_info=True)
            return None

        self.last_report = report
        return report

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
