"""
Application-level exceptions.

Raised by the session model and configuration layer; the event handlers
catch them at the boundary, log, and drop the offending event. Nothing here
is fatal: a bad event for one session never affects another.
"""

from __future__ import annotations


class ReputationError(Exception):
    """Base class for all smtpd-reputation errors."""


class ConfigurationError(ReputationError):
    """Invalid or unsupported configuration (e.g. unknown strategy)."""


class InvalidConnectionError(ReputationError):
    """Connection descriptor is not a TCP endpoint (unix socket, garbage)."""

    def __init__(self, src: str) -> None:
        super().__init__(f"not a TCP connection source: {src!r}")
        self.src = src


class SessionStateError(ReputationError):
    """Session used in a way its lifecycle does not allow."""


class NoOpenTransactionError(SessionStateError):
    """Transaction event arrived before any tx-begin for the session."""


class TransactionClosedError(SessionStateError):
    """Mutation attempted on a committed or rolled-back transaction."""
