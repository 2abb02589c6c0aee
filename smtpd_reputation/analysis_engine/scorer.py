"""
Session and transaction scoring: rules and aggregation.

Responsibilities:
- Score a single envelope transaction from sender/recipient/data/commit outcomes.
- Score a whole session from its transactions plus auth, TLS, DNS and resets.
- Summarize a finished session for history, and aggregate stored summaries.

All scores are clamped to [0, 1]. No ML; deterministic and explainable.
"""

from __future__ import annotations

import statistics
from collections.abc import Sequence

from smtpd_reputation.session.models import Session, SessionSummary, Transaction

# Transaction weights
VALID_SENDER_WEIGHT = 0.4
DATA_WEIGHT = 0.3
COMMIT_WEIGHT = 0.3
SUCCESSFUL_RECIPIENT_WEIGHT = 0.1
FAILED_RECIPIENT_PENALTY = 0.2

# Session weights
AUTH_SUCCESS_WEIGHT = 0.1
AUTH_FAILURE_PENALTY = 0.1
TLS_WEIGHT = 0.2
RDNS_WEIGHT = 0.1
FCRDNS_WEIGHT = 0.1
RESET_PENALTY = 0.05


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def score_transaction(tx: Transaction) -> float:
    """
    Score one transaction in [0, 1].

    A valid envelope, data phase and commit dominate; recipients add linearly
    so that hammering invalid recipients is penalized by volume.
    """
    score = 0.0
    if tx.mail_from_ok:
        score += VALID_SENDER_WEIGHT
    if tx.saw_data:
        score += DATA_WEIGHT
    if tx.committed:
        score += COMMIT_WEIGHT
    score += tx.rcpt_ok * SUCCESSFUL_RECIPIENT_WEIGHT
    score -= tx.rcpt_failed * FAILED_RECIPIENT_PENALTY
    return clamp(score)


def score_session(session: Session) -> float:
    """
    Score a session in [0, 1].

    Base is the mean transaction score (0 without transactions); binary
    signals (TLS, rDNS, FCrDNS) are fixed bonuses, auth outcomes and resets
    scale with their counts.
    """
    score = 0.0
    if session.transactions:
        score = statistics.fmean(score_transaction(tx) for tx in session.transactions)
    score += session.auth_ok * AUTH_SUCCESS_WEIGHT
    score -= session.auth_fail * AUTH_FAILURE_PENALTY
    if session.cmd_tls:
        score += TLS_WEIGHT
    if session.rdns:
        score += RDNS_WEIGHT
    if session.fcrdns:
        score += FCRDNS_WEIGHT
    score -= session.resets * RESET_PENALTY
    return clamp(score)


def summarize_session(session: Session, timestamp: float) -> SessionSummary:
    """Build the history record for a finished session."""
    rcpt_count = 0
    data_count = 0
    commit_count = 0
    rollback_count = 0
    for tx in session.transactions:
        rcpt_count += tx.rcpt_total
        if tx.saw_data:
            data_count += 1
        if tx.committed:
            commit_count += 1
        else:
            rollback_count += 1
    return SessionSummary(
        timestamp=timestamp,
        score=score_session(session),
        auth_failures=session.auth_fail,
        auth_successes=session.auth_ok,
        resets=session.resets,
        rcpt_count=rcpt_count,
        data_count=data_count,
        commit_count=commit_count,
        rollback_count=rollback_count,
    )


def aggregate_summaries(summaries: Sequence[SessionSummary]) -> SessionSummary | None:
    """
    Sum counters and average the score over summaries.

    timestamp is that of the newest (last) summary. None for empty input.
    """
    if not summaries:
        return None
    return SessionSummary(
        timestamp=summaries[-1].timestamp,
        score=statistics.fmean(s.score for s in summaries),
        auth_failures=sum(s.auth_failures for s in summaries),
        auth_successes=sum(s.auth_successes for s in summaries),
        resets=sum(s.resets for s in summaries),
        rcpt_count=sum(s.rcpt_count for s in summaries),
        data_count=sum(s.data_count for s in summaries),
        commit_count=sum(s.commit_count for s in summaries),
        rollback_count=sum(s.rollback_count for s in summaries),
    )
