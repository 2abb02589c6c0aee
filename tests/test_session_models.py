"""
Tests for session/transaction state and connection source parsing.
"""

from __future__ import annotations

import pytest

from smtpd_reputation.core.exceptions import (
    InvalidConnectionError,
    NoOpenTransactionError,
    SessionStateError,
    TransactionClosedError,
)
from smtpd_reputation.session.models import Session, Transaction, parse_address

from conftest import NOW, make_session


@pytest.mark.parametrize(
    "src,expected",
    [
        ("192.0.2.1:25", "192.0.2.1"),
        ("192.0.2.1", "192.0.2.1"),
        ("[2001:db8::1]:587", "2001:db8::1"),
        ("2001:db8::1", "2001:db8::1"),
    ],
)
def test_parse_address_tcp(src, expected):
    assert parse_address(src) == expected


@pytest.mark.parametrize("src", ["unix:/var/run/smtpd.sock", "local", "", "[2001:db8::1", "example.org:25"])
def test_parse_address_rejects_non_tcp(src):
    with pytest.raises(InvalidConnectionError):
        parse_address(src)


def test_bind_connection_dns_flags():
    s = make_session(rdns="Mail.Example.org.", fcrdns="ok")
    assert s.rdns and s.fcrdns
    assert s.rdns_name == "mail.example.org"
    s2 = make_session(rdns="<unknown>", fcrdns="fail")
    assert not s2.rdns and not s2.fcrdns
    assert s2.rdns_name is None


def test_address_bound_once():
    s = make_session()
    with pytest.raises(SessionStateError):
        s.bind_connection(NOW, "203.0.113.5", "<unknown>", "fail")
    assert s.address == "192.0.2.10"


def test_identify_methods():
    s = Session(session_id="s")
    s.identify("helo", "a")
    s.identify("EHLO", "b")
    assert s.cmd_helo and s.cmd_ehlo
    assert s.heloname == "b"


def test_current_transaction_requires_begin():
    with pytest.raises(NoOpenTransactionError):
        Session(session_id="s").current_transaction()


def test_transaction_lifecycle():
    tx = Transaction(begin_time=NOW)
    tx.record_mail("ok")
    tx.record_rcpt("ok")
    tx.record_rcpt("tempfail")
    tx.record_rcpt("permfail")
    tx.record_rcpt("weird")
    tx.record_data()
    assert not tx.ended
    tx.rollback(NOW + 1)
    assert tx.rolled_back
    assert not tx.committed
    assert tx.rcpt_total == 3
    for mutate in (lambda: tx.record_data(), lambda: tx.commit(NOW + 2), lambda: tx.record_rcpt("ok")):
        with pytest.raises(TransactionClosedError):
            mutate()
