"""
Data models for SMTP session state.

Session and Transaction are built incrementally from lifecycle events for one
connection; SessionSummary is the immutable record written to history at
disconnect. Events for one session arrive sequentially, so nothing here locks.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any

from smtpd_reputation.core.exceptions import (
    InvalidConnectionError,
    NoOpenTransactionError,
    SessionStateError,
    TransactionClosedError,
)

RDNS_UNKNOWN = "<unknown>"
FCRDNS_PASS_VALUES = frozenset({"ok", "pass"})

RESULT_OK = "ok"
RESULT_TEMPFAIL = "tempfail"
RESULT_PERMFAIL = "permfail"

NEUTRAL_TRUST = 0.5


def parse_address(src: str) -> str:
    """
    Return the IP address of a TCP connection source as a string.

    Accepts "192.0.2.1:25", "[2001:db8::1]:25", or a bare IP. Anything else
    (unix sockets, "local", garbage) raises InvalidConnectionError.
    """
    raw = (src or "").strip()
    if raw.startswith("["):
        host, sep, _ = raw[1:].partition("]")
        if not sep:
            raise InvalidConnectionError(src)
    elif raw.count(":") == 1:
        host = raw.split(":", 1)[0]
    else:
        host = raw
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        raise InvalidConnectionError(src) from None


def normalize_hostname(name: str | None) -> str | None:
    """Lowercase and drop the trailing root dot; None/blank -> None."""
    if not name:
        return None
    name = name.strip().rstrip(".").lower()
    return name or None


@dataclass
class Transaction:
    """
    One SMTP envelope attempt within a session.

    Recipient counters only grow. Once committed or rolled back (end_time set)
    the transaction is closed and every mutator raises TransactionClosedError.
    """

    begin_time: float
    end_time: float | None = None
    mail_from_ok: bool = False
    rcpt_ok: int = 0
    rcpt_tempfail: int = 0
    rcpt_permfail: int = 0
    saw_data: bool = False
    committed: bool = False

    @property
    def ended(self) -> bool:
        return self.end_time is not None

    @property
    def rolled_back(self) -> bool:
        return self.ended and not self.committed

    @property
    def rcpt_failed(self) -> int:
        return self.rcpt_tempfail + self.rcpt_permfail

    @property
    def rcpt_total(self) -> int:
        return self.rcpt_ok + self.rcpt_failed

    def _check_open(self) -> None:
        if self.ended:
            raise TransactionClosedError("transaction already ended")

    def record_mail(self, result: str) -> None:
        self._check_open()
        if result == RESULT_OK:
            self.mail_from_ok = True

    def record_rcpt(self, result: str) -> None:
        """Count a recipient outcome; results other than ok/tempfail/permfail are ignored."""
        self._check_open()
        if result == RESULT_OK:
            self.rcpt_ok += 1
        elif result == RESULT_TEMPFAIL:
            self.rcpt_tempfail += 1
        elif result == RESULT_PERMFAIL:
            self.rcpt_permfail += 1

    def record_data(self) -> None:
        self._check_open()
        self.saw_data = True

    def commit(self, timestamp: float) -> None:
        self._check_open()
        self.end_time = timestamp
        self.committed = True

    def rollback(self, timestamp: float) -> None:
        self._check_open()
        self.end_time = timestamp


@dataclass
class ResourceTrust:
    """Running per-resource trust for one session (incremental strategy)."""

    ip: float = NEUTRAL_TRUST
    rdns: float = NEUTRAL_TRUST
    helo: float = NEUTRAL_TRUST
    overall: float = NEUTRAL_TRUST


@dataclass
class Session:
    """
    State for one connection, from connect to disconnect.

    address is bound exactly once at connect. transactions only grows.
    skip marks a session whose connection descriptor was not TCP; every later
    event for it is ignored.
    """

    session_id: str
    skip: bool = False
    connect_time: float | None = None
    disconnect_time: float | None = None
    address: str | None = None
    rdns_name: str | None = None
    rdns: bool = False
    fcrdns: bool = False
    cmd_helo: bool = False
    cmd_ehlo: bool = False
    heloname: str | None = None
    cmd_auth: bool = False
    auth_ok: int = 0
    auth_fail: int = 0
    cmd_tls: bool = False
    tls_string: str | None = None
    resets: int = 0
    transactions: list[Transaction] = field(default_factory=list)
    trust: ResourceTrust = field(default_factory=ResourceTrust)

    def bind_connection(self, timestamp: float, address: str, rdns: str, fcrdns: str) -> None:
        """Record the connect event. Raises SessionStateError if already bound."""
        if self.address is not None:
            raise SessionStateError(f"session {self.session_id} already bound to {self.address}")
        self.connect_time = timestamp
        self.address = address
        self.rdns = bool(rdns) and rdns != RDNS_UNKNOWN
        self.rdns_name = normalize_hostname(rdns) if self.rdns else None
        self.fcrdns = (fcrdns or "").strip().lower() in FCRDNS_PASS_VALUES

    def identify(self, method: str, hostname: str) -> None:
        method = (method or "").upper()
        if method == "HELO":
            self.cmd_helo = True
        elif method == "EHLO":
            self.cmd_ehlo = True
        self.heloname = hostname

    def record_auth(self, result: str) -> None:
        self.cmd_auth = True
        if result == RESULT_OK:
            self.auth_ok += 1
        else:
            self.auth_fail += 1

    def record_tls(self, tls_string: str) -> None:
        # smtps counts as implicit STARTTLS
        self.cmd_tls = True
        self.tls_string = tls_string

    def record_reset(self) -> None:
        self.resets += 1

    def begin_transaction(self, timestamp: float) -> Transaction:
        tx = Transaction(begin_time=timestamp)
        self.transactions.append(tx)
        return tx

    def current_transaction(self) -> Transaction:
        """Return the most recently begun transaction."""
        if not self.transactions:
            raise NoOpenTransactionError(f"session {self.session_id} has no transaction")
        return self.transactions[-1]

    @property
    def helo_key(self) -> str | None:
        """HELO name as stored in trust tables: lowercased, no trailing dot."""
        return normalize_hostname(self.heloname)

    @property
    def helo_matches_rdns(self) -> bool:
        return self.rdns_name is not None and self.helo_key == self.rdns_name


@dataclass(frozen=True)
class SessionSummary:
    """
    Immutable snapshot of a finished session, stored in address history.

    score: Final session score in [0, 1].
    rollback_count: Transactions that did not commit (rolled back or left open).
    """

    timestamp: float
    score: float
    auth_failures: int = 0
    auth_successes: int = 0
    resets: int = 0
    rcpt_count: int = 0
    data_count: int = 0
    commit_count: int = 0
    rollback_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "score": self.score,
            "auth_failures": self.auth_failures,
            "auth_successes": self.auth_successes,
            "resets": self.resets,
            "rcpt_count": self.rcpt_count,
            "data_count": self.data_count,
            "commit_count": self.commit_count,
            "rollback_count": self.rollback_count,
        }
