"""
Analysis engine package: session scoring and address reputation.

Scores SMTP sessions from observed protocol behavior and maintains either a
bounded per-address history or live per-resource trust tables.
"""

from smtpd_reputation.analysis_engine.engine import (
    HistoricalReputationEngine,
    IncrementalReputationEngine,
    ReputationEngine,
    build_engine,
)
from smtpd_reputation.analysis_engine.reputation_memory import (
    HistoricalReputationStore,
    SweepResult,
)
from smtpd_reputation.analysis_engine.resource_trust import (
    DEGRADATION_FACTORS,
    IncrementalReputationAdjuster,
    ResourceClass,
    ResourceTrustTable,
    penalize,
    reward,
)
from smtpd_reputation.analysis_engine.scorer import (
    aggregate_summaries,
    score_session,
    score_transaction,
    summarize_session,
)

__all__ = [
    "HistoricalReputationEngine",
    "IncrementalReputationEngine",
    "ReputationEngine",
    "build_engine",
    "HistoricalReputationStore",
    "SweepResult",
    "DEGRADATION_FACTORS",
    "IncrementalReputationAdjuster",
    "ResourceClass",
    "ResourceTrustTable",
    "penalize",
    "reward",
    "aggregate_summaries",
    "score_session",
    "score_transaction",
    "summarize_session",
]
