"""
Environment variable loading for smtpd-reputation.

- REPUTATION_STRATEGY: history | incremental (default: history)
- SWEEP_INTERVAL_SEC, HISTORY_MAX_ENTRIES, HISTORY_RETENTION_DAYS,
  HISTORY_MIN_SAMPLES, NEUTRAL_TRUST: store bounds and priors
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from smtpd_reputation.smtpd_logging import get_logger

logger = get_logger(__name__)

# Project root: config is smtpd_reputation/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"


def load_reputation_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def get_env_str(name: str, default: str) -> str:
    """Return stripped env value, or default when unset/blank."""
    raw = (os.getenv(name) or "").strip()
    return raw or default


def get_env_float(name: str, default: float, minimum: float | None = None) -> float:
    """
    Return env value as float. Unparseable values fall back to default (logged);
    values below minimum are raised to minimum.
    """
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("config_invalid_float", name=name, value=raw, default=default)
        return default
    if minimum is not None and value < minimum:
        return minimum
    return value


def get_env_int(name: str, default: int, minimum: int | None = None) -> int:
    """Return env value as int; same fallback rules as get_env_float."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("config_invalid_int", name=name, value=raw, default=default)
        return default
    if minimum is not None and value < minimum:
        return minimum
    return value
