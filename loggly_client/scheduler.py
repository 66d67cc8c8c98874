"""Periodic flush scheduler running as a cancellable background timer thread."""

import threading
import logging

logger = logging.getLogger(__name__)


class FlushScheduler:
    """Calls *on_tick* every *interval* seconds until stopped.

    The thread waits on a stop event rather than sleeping, so ``stop()``
    interrupts a pending interval immediately.
    """

    def __init__(self, interval: float, on_tick, name: str = "loggly-flush"):
        self._interval = interval
        self._on_tick = on_tick
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @interval.setter
    def interval(self, value: float):
        if value <= 0:
            raise ValueError("flush interval must be positive")
        self._interval = value

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the timer thread (no-op if it is already running)."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        """Signal the timer thread to exit and wait for it."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _run(self):
        while not self._stop.wait(timeout=self._interval):
            logger.debug("interval %.1fs reached", self._interval)
            try:
                self._on_tick()
            except Exception:
                logger.exception("Scheduled flush failed")
