"""
Application settings.

Responsibilities:
- Load configuration from environment variables and .env files.
- Provide defaults matching the reference behavior (30 s sweep, 100 entries,
  5 days retention, 5-sample prior floor, neutral trust 0.5).
- Expose typed settings for the store, the sweep runner and engine selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from smtpd_reputation.config.env import (
    get_env_float,
    get_env_int,
    get_env_str,
    load_reputation_env,
)

STRATEGY_HISTORY = "history"
STRATEGY_INCREMENTAL = "incremental"
STRATEGIES = frozenset({STRATEGY_HISTORY, STRATEGY_INCREMENTAL})

DEFAULT_SWEEP_INTERVAL_SEC = 30.0
MIN_SWEEP_INTERVAL_SEC = 0.1
DEFAULT_HISTORY_MAX_ENTRIES = 100
DEFAULT_HISTORY_RETENTION_DAYS = 5.0
DEFAULT_HISTORY_MIN_SAMPLES = 5
DEFAULT_NEUTRAL_TRUST = 0.5


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    strategy: history (retrospective averaging) | incremental (live reward/penalty).
    sweep_interval_sec: Seconds between maintenance sweep passes.
    history_max_entries: Per-address history cap enforced by the sweep.
    history_retention_days: Addresses whose newest summary is older are expired.
    history_min_samples: Below this many summaries the prior is neutral_trust.
    neutral_trust: Prior for unknown keys and insufficient history.
    """

    strategy: str = STRATEGY_HISTORY
    sweep_interval_sec: float = DEFAULT_SWEEP_INTERVAL_SEC
    history_max_entries: int = DEFAULT_HISTORY_MAX_ENTRIES
    history_retention_days: float = DEFAULT_HISTORY_RETENTION_DAYS
    history_min_samples: int = DEFAULT_HISTORY_MIN_SAMPLES
    neutral_trust: float = DEFAULT_NEUTRAL_TRUST

    @property
    def history_retention_sec(self) -> float:
        return self.history_retention_days * 86400.0


def load_settings() -> Settings:
    """Build Settings from the environment (after loading .env)."""
    load_reputation_env()
    return Settings(
        strategy=get_env_str("REPUTATION_STRATEGY", STRATEGY_HISTORY).lower(),
        sweep_interval_sec=get_env_float(
            "SWEEP_INTERVAL_SEC", DEFAULT_SWEEP_INTERVAL_SEC, minimum=MIN_SWEEP_INTERVAL_SEC
        ),
        history_max_entries=get_env_int("HISTORY_MAX_ENTRIES", DEFAULT_HISTORY_MAX_ENTRIES, minimum=1),
        history_retention_days=get_env_float(
            "HISTORY_RETENTION_DAYS", DEFAULT_HISTORY_RETENTION_DAYS, minimum=0.0
        ),
        history_min_samples=get_env_int("HISTORY_MIN_SAMPLES", DEFAULT_HISTORY_MIN_SAMPLES, minimum=1),
        neutral_trust=min(1.0, get_env_float("NEUTRAL_TRUST", DEFAULT_NEUTRAL_TRUST, minimum=0.0)),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings (loaded once)."""
    return load_settings()


def reset_settings_cache() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment. For tests."""
    get_settings.cache_clear()
