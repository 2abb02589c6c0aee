"""
Pytest fixtures for smtpd-reputation tests. Stores are built without the
background sweep thread so sweep passes run only when a test calls them.
"""

from __future__ import annotations

import pytest

from smtpd_reputation.analysis_engine.reputation_memory import HistoricalReputationStore
from smtpd_reputation.analysis_engine.resource_trust import ResourceTrustTable
from smtpd_reputation.config.settings import Settings, reset_settings_cache
from smtpd_reputation.session.models import Session, SessionSummary

NOW = 1_700_000_000.0
DAY = 86400.0


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store(settings):
    """History store with the sweep thread disabled."""
    s = HistoricalReputationStore(settings, autostart=False)
    yield s
    s.close()


@pytest.fixture
def trust_table():
    return ResourceTrustTable()


@pytest.fixture
def clean_env(monkeypatch):
    """Unset reputation env vars and drop the settings cache around the test."""
    for name in (
        "REPUTATION_STRATEGY",
        "SWEEP_INTERVAL_SEC",
        "HISTORY_MAX_ENTRIES",
        "HISTORY_RETENTION_DAYS",
        "HISTORY_MIN_SAMPLES",
        "NEUTRAL_TRUST",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("smtpd_reputation.config.settings.load_reputation_env", lambda: None)
    reset_settings_cache()
    yield monkeypatch
    reset_settings_cache()


def make_summary(score: float, timestamp: float = NOW) -> SessionSummary:
    return SessionSummary(timestamp=timestamp, score=score)


def make_session(
    *,
    address: str = "192.0.2.10",
    rdns: str = "mail.example.org",
    fcrdns: str = "pass",
    session_id: str = "s1",
) -> Session:
    session = Session(session_id=session_id)
    session.bind_connection(NOW, address, rdns, fcrdns)
    return session
