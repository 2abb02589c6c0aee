"""
Per-connection session state: sessions, transactions and history summaries.
"""

from smtpd_reputation.session.models import (
    ResourceTrust,
    Session,
    SessionSummary,
    Transaction,
    parse_address,
)

__all__ = [
    "ResourceTrust",
    "Session",
    "SessionSummary",
    "Transaction",
    "parse_address",
]
