"""
Structured logging for smtpd-reputation.

JSON logs with timestamp, session_id, address and event_type.
Use get_logger() in all modules so output stays aggregation-friendly.
"""

from smtpd_reputation.smtpd_logging.logger import bind_session, get_logger

__all__ = ["bind_session", "get_logger"]
