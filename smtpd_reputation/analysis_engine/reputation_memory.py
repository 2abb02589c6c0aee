"""
Reputation memory layer: per-address history of past sessions.

Each network address maps to an insertion-ordered list of SessionSummary
records. From that history the store derives a prior trust for new sessions:
- Fewer than min_samples summaries -> neutral prior (0.5); one odd session
  must not swing a long-lived address.
- Otherwise the arithmetic mean of all stored scores.

Bounds are enforced only by the maintenance sweep, never by append:
- More than max_entries summaries -> keep the newest max_entries.
- Otherwise, newest summary older than the retention window -> drop the key.
Size trim takes precedence: an oversized stale key is trimmed, not expired.

All map access happens under a single lock; history lives in process memory only.
"""

from __future__ import annotations

import statistics
import threading
import time
from dataclasses import dataclass

from smtpd_reputation.agent_worker.runner import SweepRunner
from smtpd_reputation.analysis_engine.scorer import aggregate_summaries
from smtpd_reputation.config.settings import Settings
from smtpd_reputation.session.models import SessionSummary
from smtpd_reputation.smtpd_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one sweep pass."""

    trimmed: int
    expired: int
    remaining: int


class HistoricalReputationStore:
    """
    Thread-safe address -> session history map with a background sweep.

    With autostart=True the sweep thread starts here and runs until close().
    """

    def __init__(self, settings: Settings | None = None, *, autostart: bool = True) -> None:
        self._settings = settings or Settings()
        self._history: dict[str, list[SessionSummary]] = {}
        self._lock = threading.Lock()
        self._runner = SweepRunner(self, self._settings.sweep_interval_sec)
        if autostart:
            self._runner.start()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def sweeping(self) -> bool:
        return self._runner.running

    def record_session(self, key: str, summary: SessionSummary) -> None:
        """Append summary to key's history. Never trims."""
        with self._lock:
            self._history.setdefault(key, []).append(summary)

    def prior_trust(self, key: str) -> float:
        """Mean stored score for key, or the neutral prior with insufficient history."""
        with self._lock:
            scores = [s.score for s in self._history.get(key, ())]
        if len(scores) < self._settings.history_min_samples:
            return self._settings.neutral_trust
        return statistics.fmean(scores)

    def aggregate(self, key: str) -> SessionSummary | None:
        """Aggregated summary for key; None below the sample floor."""
        with self._lock:
            summaries = list(self._history.get(key, ()))
        if len(summaries) < self._settings.history_min_samples:
            return None
        return aggregate_summaries(summaries)

    def history(self, key: str) -> tuple[SessionSummary, ...]:
        """Snapshot of key's history, oldest first."""
        with self._lock:
            return tuple(self._history.get(key, ()))

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._history)

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._history

    def sweep(self, now: float | None = None) -> SweepResult:
        """
        One maintenance pass: cap history length, expire quiet addresses.

        now: Current time (Unix sec); defaults to time.time().
        """
        now = now if now is not None else time.time()
        max_entries = self._settings.history_max_entries
        retention = self._settings.history_retention_sec
        trimmed = 0
        expired: list[str] = []
        with self._lock:
            for key, summaries in list(self._history.items()):
                if len(summaries) > max_entries:
                    self._history[key] = summaries[-max_entries:]
                    trimmed += 1
                elif not summaries or summaries[-1].timestamp + retention < now:
                    del self._history[key]
                    expired.append(key)
            remaining = len(self._history)
        for key in expired:
            logger.info("history_expired", address=key, retention_days=self._settings.history_retention_days)
        return SweepResult(trimmed=trimmed, expired=len(expired), remaining=remaining)

    def start(self) -> None:
        self._runner.start()

    def close(self) -> None:
        """Stop the background sweep. History stays readable."""
        self._runner.stop()

    def __enter__(self) -> HistoricalReputationStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
