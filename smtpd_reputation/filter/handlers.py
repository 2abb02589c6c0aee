"""
Session lifecycle event handlers.

The filter dispatcher calls one handler per event with the event timestamp
(Unix seconds), the session id it allocated through SessionRegistry, and the
event fields. Handlers mutate the session, notify the reputation engine and
return None. They never raise: a malformed event is logged and dropped, and a
session whose source is not TCP is marked skip and ignored from then on.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

from smtpd_reputation.analysis_engine.engine import ReputationEngine, build_engine
from smtpd_reputation.config.settings import Settings, get_settings
from smtpd_reputation.core.exceptions import InvalidConnectionError, ReputationError, SessionStateError
from smtpd_reputation.filter.registry import SessionRegistry
from smtpd_reputation.session.models import RESULT_OK, Session, parse_address
from smtpd_reputation.smtpd_logging import bind_session


def session_event(handler: Callable[..., None]) -> Callable[..., None]:
    """
    Resolve session_id to its Session, skip ignored sessions, and isolate errors.

    The wrapped method receives the Session in place of the id.
    """

    @functools.wraps(handler)
    def wrapper(self: FilterHandlers, timestamp: float, session_id: str, *args: Any, **kwargs: Any) -> None:
        try:
            session = self.registry.get(session_id)
            if session.skip:
                return
            handler(self, timestamp, session, *args, **kwargs)
        except ReputationError as e:
            bind_session(session_id, __name__).warning("event_dropped", handler=handler.__name__, error=str(e))
        except Exception as e:
            bind_session(session_id, __name__).exception("event_failed", handler=handler.__name__, error=str(e))

    return wrapper


class FilterHandlers:
    """Event handlers bound to one engine and one session registry."""

    def __init__(self, engine: ReputationEngine, registry: SessionRegistry | None = None) -> None:
        self.engine = engine
        self.registry = registry if registry is not None else SessionRegistry()

    def allocate(self, session_id: str) -> Session:
        """Allocator hook: fresh Session before any event for session_id."""
        return self.registry.allocate(session_id)

    @session_event
    def on_link_connect(
        self,
        timestamp: float,
        session: Session,
        rdns: str,
        fcrdns: str,
        src: str,
        dest: str,
    ) -> None:
        if session.address is not None:
            raise SessionStateError(f"session {session.session_id} already bound to {session.address}")
        try:
            address = parse_address(src)
        except InvalidConnectionError as e:
            session.skip = True
            bind_session(session.session_id, __name__).info("session_skipped", src=e.src)
            return
        session.bind_connection(timestamp, address, rdns, fcrdns)
        self.engine.on_connect(session)

    def on_link_disconnect(self, timestamp: float, session_id: str) -> None:
        try:
            self._disconnect(timestamp, session_id)
        finally:
            self.registry.release(session_id)

    @session_event
    def _disconnect(self, timestamp: float, session: Session) -> None:
        if session.address is None:
            bind_session(session.session_id, __name__).warning("disconnect_without_connect")
            return
        session.disconnect_time = timestamp
        self.engine.on_disconnect(session)

    @session_event
    def on_link_identify(self, timestamp: float, session: Session, method: str, hostname: str) -> None:
        session.identify(method, hostname)
        self.engine.on_identify(session)

    @session_event
    def on_link_auth(self, timestamp: float, session: Session, result: str, username: str) -> None:
        session.record_auth(result)

    @session_event
    def on_link_tls(self, timestamp: float, session: Session, tls_string: str) -> None:
        session.record_tls(tls_string)

    @session_event
    def on_tx_reset(self, timestamp: float, session: Session, message_id: str) -> None:
        session.record_reset()

    @session_event
    def on_tx_begin(self, timestamp: float, session: Session, message_id: str) -> None:
        session.begin_transaction(timestamp)
        bind_session(session.session_id, __name__).debug("tx_begin", message_id=message_id)

    @session_event
    def on_tx_mail(self, timestamp: float, session: Session, message_id: str, result: str, mail_from: str) -> None:
        session.current_transaction().record_mail(result)
        self.engine.on_mail(session, result == RESULT_OK)

    @session_event
    def on_tx_rcpt(self, timestamp: float, session: Session, message_id: str, result: str, rcpt_to: str) -> None:
        session.current_transaction().record_rcpt(result)
        self.engine.on_rcpt(session, result == RESULT_OK)

    @session_event
    def on_tx_data(self, timestamp: float, session: Session, message_id: str, result: str) -> None:
        session.current_transaction().record_data()

    @session_event
    def on_tx_commit(self, timestamp: float, session: Session, message_id: str, message_size: int) -> None:
        tx = session.current_transaction()
        tx.commit(timestamp)
        self.engine.on_transaction_end(session, tx)

    @session_event
    def on_tx_rollback(self, timestamp: float, session: Session, message_id: str) -> None:
        tx = session.current_transaction()
        tx.rollback(timestamp)
        self.engine.on_transaction_end(session, tx)


def create_handlers(settings: Settings | None = None) -> FilterHandlers:
    """Build handlers over the engine selected by settings (default: get_settings())."""
    return FilterHandlers(build_engine(settings or get_settings()))
