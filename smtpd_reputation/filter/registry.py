"""
Per-connection session allocation.

The dispatcher calls allocate() when a connection opens, before delivering
any event for it, and release() once disconnect has been handled. Sessions
themselves are owned by their connection; only the id -> Session map is shared.
"""

from __future__ import annotations

import threading

from smtpd_reputation.core.exceptions import SessionStateError
from smtpd_reputation.session.models import Session


class SessionRegistry:
    """Thread-safe session_id -> Session map."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def allocate(self, session_id: str) -> Session:
        """Create a fresh, zeroed Session for session_id, replacing any stale one."""
        session = Session(session_id=session_id)
        with self._lock:
            self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionStateError(f"no session allocated for {session_id}")
        return session

    def release(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
