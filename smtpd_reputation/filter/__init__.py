"""
Filter surface: one handler per SMTP session lifecycle event.
"""

from smtpd_reputation.filter.handlers import FilterHandlers, create_handlers
from smtpd_reputation.filter.registry import SessionRegistry

__all__ = ["FilterHandlers", "SessionRegistry", "create_handlers"]
