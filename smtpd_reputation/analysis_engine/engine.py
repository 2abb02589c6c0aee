"""
Reputation engine strategies.

Two alternative models share one capability set:
- history: score each session at disconnect, append the summary to the
  per-address history, derive the prior for new connections from it.
- incremental: adjust per-resource trust on every event and fold the result
  back into the shared trust table at disconnect.

They are never combined; build_engine() picks one from Settings.strategy.
"""

from __future__ import annotations

from smtpd_reputation.analysis_engine.reputation_memory import HistoricalReputationStore
from smtpd_reputation.analysis_engine.resource_trust import (
    IncrementalReputationAdjuster,
    ResourceTrustTable,
)
from smtpd_reputation.analysis_engine.scorer import (
    score_session,
    score_transaction,
    summarize_session,
)
from smtpd_reputation.config.settings import (
    STRATEGIES,
    STRATEGY_HISTORY,
    STRATEGY_INCREMENTAL,
    Settings,
)
from smtpd_reputation.core.exceptions import ConfigurationError
from smtpd_reputation.session.models import Session, Transaction
from smtpd_reputation.smtpd_logging import get_logger

logger = get_logger(__name__)


class ReputationEngine:
    """Hooks called by the event handlers. Defaults do nothing."""

    name = "base"

    def on_connect(self, session: Session) -> None:
        pass

    def on_identify(self, session: Session) -> None:
        pass

    def on_mail(self, session: Session, ok: bool) -> None:
        pass

    def on_rcpt(self, session: Session, ok: bool) -> None:
        pass

    def on_transaction_end(self, session: Session, tx: Transaction) -> None:
        pass

    def on_disconnect(self, session: Session) -> None:
        pass

    def trust(self, session: Session) -> float:
        """Current trust estimate for the session, in [0, 1]."""
        return score_session(session)

    def close(self) -> None:
        pass


class HistoricalReputationEngine(ReputationEngine):
    """Retrospective averaging over the per-address session history."""

    name = STRATEGY_HISTORY

    def __init__(self, store: HistoricalReputationStore) -> None:
        self.store = store

    def on_connect(self, session: Session) -> None:
        prior = self.store.prior_trust(session.address or "")
        logger.info(
            "session_connect",
            session_id=session.session_id,
            address=session.address,
            score=round(prior, 4),
        )

    def on_transaction_end(self, session: Session, tx: Transaction) -> None:
        logger.info(
            "tx_commit" if tx.committed else "tx_rollback",
            session_id=session.session_id,
            score=round(score_transaction(tx), 4),
        )

    def on_disconnect(self, session: Session) -> None:
        timestamp = session.disconnect_time if session.disconnect_time is not None else session.connect_time
        summary = summarize_session(session, timestamp or 0.0)
        self.store.record_session(session.address or "", summary)
        logger.debug("history_recorded", session_id=session.session_id, address=session.address, summary=summary.to_dict())
        logger.info(
            "session_disconnect",
            session_id=session.session_id,
            address=session.address,
            score=round(summary.score, 4),
        )

    def close(self) -> None:
        self.store.close()


class IncrementalReputationEngine(ReputationEngine):
    """Live reward/penalty adjustment over the shared resource trust table."""

    name = STRATEGY_INCREMENTAL

    def __init__(self, adjuster: IncrementalReputationAdjuster) -> None:
        self.adjuster = adjuster

    def on_connect(self, session: Session) -> None:
        overall = self.adjuster.on_connect(session)
        logger.info(
            "session_connect",
            session_id=session.session_id,
            address=session.address,
            score=round(overall, 4),
        )

    def on_identify(self, session: Session) -> None:
        self.adjuster.on_identify(session)

    def on_mail(self, session: Session, ok: bool) -> None:
        self.adjuster.on_mail(session, ok)

    def on_rcpt(self, session: Session, ok: bool) -> None:
        self.adjuster.on_rcpt(session, ok)

    def on_disconnect(self, session: Session) -> None:
        self.adjuster.feedback(session)
        logger.info(
            "session_disconnect",
            session_id=session.session_id,
            address=session.address,
            score=round(self.adjuster.trust(session), 4),
        )

    def trust(self, session: Session) -> float:
        return self.adjuster.trust(session)


def build_engine(
    settings: Settings,
    *,
    store: HistoricalReputationStore | None = None,
    table: ResourceTrustTable | None = None,
) -> ReputationEngine:
    """
    Return the engine selected by settings.strategy.

    store / table: Optional pre-built shared state (tests pass a store with
    autostart=False). Raises ConfigurationError for an unknown strategy.
    """
    if settings.strategy not in STRATEGIES:
        raise ConfigurationError(
            f"unknown reputation strategy {settings.strategy!r}; expected one of {sorted(STRATEGIES)}"
        )
    if settings.strategy == STRATEGY_INCREMENTAL:
        if table is None:
            table = ResourceTrustTable(settings.neutral_trust)
        engine: ReputationEngine = IncrementalReputationEngine(IncrementalReputationAdjuster(table))
    else:
        if store is None:
            store = HistoricalReputationStore(settings)
        engine = HistoricalReputationEngine(store)
    logger.info("reputation_engine_ready", strategy=engine.name)
    return engine
