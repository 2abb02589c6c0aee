"""
Tests for transaction/session scoring and summary aggregation (analysis_engine.scorer).
"""

from __future__ import annotations

import pytest

from smtpd_reputation.analysis_engine.scorer import (
    aggregate_summaries,
    score_session,
    score_transaction,
    summarize_session,
)
from smtpd_reputation.session.models import Session, SessionSummary, Transaction

from conftest import NOW, make_session


def test_transaction_full_success_caps_at_one():
    """Sender ok, data, commit, 2 accepted rcpts -> min(1, 0.4+0.3+0.3+0.2) = 1.0."""
    tx = Transaction(begin_time=NOW, mail_from_ok=True, saw_data=True, committed=True, rcpt_ok=2)
    assert score_transaction(tx) == 1.0


def test_transaction_sender_ok_one_tempfail():
    """Sender ok, nothing else, 1 tempfail -> 0.4 - 0.2 = 0.2."""
    tx = Transaction(begin_time=NOW, mail_from_ok=True, rcpt_tempfail=1)
    assert score_transaction(tx) == pytest.approx(0.2)


def test_transaction_failed_recipients_count_together():
    tx = Transaction(begin_time=NOW, mail_from_ok=True, saw_data=True, rcpt_ok=3, rcpt_tempfail=1, rcpt_permfail=1)
    # 0.4 + 0.3 + 0.3 - 0.4
    assert score_transaction(tx) == pytest.approx(0.6)


def test_transaction_clamped_at_zero():
    tx = Transaction(begin_time=NOW, rcpt_permfail=50)
    assert score_transaction(tx) == 0.0


def test_transaction_empty_is_zero():
    assert score_transaction(Transaction(begin_time=NOW)) == 0.0


@pytest.mark.parametrize("ok,temp,perm", [(0, 0, 0), (30, 0, 0), (0, 30, 30), (5, 2, 1)])
def test_transaction_score_in_unit_interval(ok, temp, perm):
    for flags in [(False, False, False), (True, True, True), (True, False, True)]:
        tx = Transaction(
            begin_time=NOW,
            mail_from_ok=flags[0],
            saw_data=flags[1],
            committed=flags[2],
            rcpt_ok=ok,
            rcpt_tempfail=temp,
            rcpt_permfail=perm,
        )
        assert 0.0 <= score_transaction(tx) <= 1.0


def test_session_no_transactions_no_signals_is_zero():
    assert score_session(Session(session_id="s")) == 0.0


def test_session_dns_and_tls_bonuses():
    """rdns + fcrdns + tls, no transactions -> 0.1 + 0.1 + 0.2."""
    session = make_session(rdns="mail.example.org", fcrdns="pass")
    session.record_tls("version=TLSv1.3")
    assert score_session(session) == pytest.approx(0.4)


def test_session_averages_transactions():
    session = Session(session_id="s")
    good = session.begin_transaction(NOW)
    good.record_mail("ok")
    good.record_data()
    good.commit(NOW + 1)
    bad = session.begin_transaction(NOW + 2)
    bad.rollback(NOW + 3)
    # (1.0 + 0.0) / 2
    assert score_session(session) == pytest.approx(0.5)


def test_session_auth_and_reset_adjustments():
    session = make_session(rdns="<unknown>", fcrdns="fail")
    session.record_auth("ok")
    session.record_auth("ok")
    session.record_auth("fail")
    session.record_reset()
    # 0.2 - 0.1 - 0.05
    assert score_session(session) == pytest.approx(0.05)


def test_session_clamped():
    session = make_session()
    for _ in range(20):
        session.record_auth("ok")
    assert score_session(session) == 1.0
    for _ in range(50):
        session.record_auth("fail")
    assert score_session(session) == 0.0


def test_summarize_session_counts():
    session = make_session()
    tx1 = session.begin_transaction(NOW)
    tx1.record_mail("ok")
    tx1.record_rcpt("ok")
    tx1.record_rcpt("permfail")
    tx1.record_data()
    tx1.commit(NOW + 1)
    tx2 = session.begin_transaction(NOW + 2)
    tx2.record_rcpt("tempfail")
    tx2.rollback(NOW + 3)
    session.begin_transaction(NOW + 4)  # never ended: counted as rollback
    session.record_auth("fail")
    session.record_reset()

    summary = summarize_session(session, NOW + 10)
    assert summary.timestamp == NOW + 10
    assert summary.score == pytest.approx(score_session(session))
    assert summary.rcpt_count == 3
    assert summary.data_count == 1
    assert summary.commit_count == 1
    assert summary.rollback_count == 2
    assert summary.auth_failures == 1
    assert summary.auth_successes == 0
    assert summary.resets == 1


def test_aggregate_summaries_empty():
    assert aggregate_summaries([]) is None


def test_aggregate_summaries_sums_and_averages():
    summaries = [
        SessionSummary(timestamp=NOW, score=0.2, rcpt_count=1, commit_count=1),
        SessionSummary(timestamp=NOW + 5, score=0.8, rcpt_count=4, rollback_count=2, resets=1),
    ]
    agg = aggregate_summaries(summaries)
    assert agg.score == pytest.approx(0.5)
    assert agg.rcpt_count == 5
    assert agg.commit_count == 1
    assert agg.rollback_count == 2
    assert agg.resets == 1
    assert agg.timestamp == NOW + 5
