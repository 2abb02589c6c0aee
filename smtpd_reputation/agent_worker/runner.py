"""
Maintenance sweep runner: periodic background pass over the history store.

run_sweep_loop calls store.sweep() every interval_sec until stop_event is
set. A crash inside one pass is caught and logged; the loop continues.
SweepRunner owns the daemon thread and gives callers (the store, tests) an
explicit start/stop path.
"""

from __future__ import annotations

import threading
import time
from typing import Any

from smtpd_reputation.config.settings import MIN_SWEEP_INTERVAL_SEC
from smtpd_reputation.smtpd_logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_JOIN_TIMEOUT_SEC = 5.0


def run_sweep_loop(
    store: Any,
    stop_event: threading.Event,
    interval_sec: float,
) -> None:
    """
    Run store.sweep() every interval_sec until stop_event is set.

    The first pass happens one interval after start. Intended to run in a
    background thread for the lifetime of the process.
    """
    interval = max(MIN_SWEEP_INTERVAL_SEC, interval_sec)
    logger.info("sweep_runner_started", interval_sec=interval)
    passes = 0
    while not stop_event.wait(timeout=interval):
        passes += 1
        tick_start = time.monotonic()
        try:
            result = store.sweep()
            logger.debug(
                "sweep_done",
                sweep=passes,
                trimmed=result.trimmed,
                expired=result.expired,
                remaining=result.remaining,
                duration_sec=round(time.monotonic() - tick_start, 4),
            )
        except Exception as e:
            logger.exception("sweep_failed", sweep=passes, error=str(e))
    logger.info("sweep_runner_stopped", passes=passes)


class SweepRunner:
    """Owns the sweep thread for one store."""

    def __init__(self, store: Any, interval_sec: float, name: str = "history-sweep") -> None:
        self._store = store
        self._interval = interval_sec
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweep thread; no-op if it is already running."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=run_sweep_loop,
            args=(self._store, self._stop_event, self._interval),
            name=self._name,
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = SHUTDOWN_JOIN_TIMEOUT_SEC) -> None:
        """Signal the loop to exit and wait for the thread."""
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is None:
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("sweep_runner_shutdown_timeout", timeout_sec=timeout)
