"""
Core utilities: shared exceptions and cross-cutting concerns.
"""

from smtpd_reputation.core.exceptions import (
    ConfigurationError,
    InvalidConnectionError,
    NoOpenTransactionError,
    ReputationError,
    SessionStateError,
    TransactionClosedError,
)

__all__ = [
    "ConfigurationError",
    "InvalidConnectionError",
    "NoOpenTransactionError",
    "ReputationError",
    "SessionStateError",
    "TransactionClosedError",
]
