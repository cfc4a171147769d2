"""
In-memory session store.

One AppState per client session, dropped after an idle TTL. Nothing is
persisted: a restart forgets every session.
"""

import logging
import time
import uuid
from typing import Dict, Optional, Tuple

from refuel.config import settings
from .state import AppState

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Keeps AppState objects keyed by session id.

    Usage:
        session_id, state = session_store.create()
        state = session_store.get(session_id)
    """

    def __init__(self, ttl_seconds: Optional[float] = None):
        self.ttl = ttl_seconds if ttl_seconds is not None else settings.session_ttl_minutes * 60
        self._sessions: Dict[str, Tuple[AppState, float]] = {}  # id -> (state, last_access)

    def create(self) -> Tuple[str, AppState]:
        """Start a new session with a fresh AppState."""
        self.purge_expired()
        session_id = str(uuid.uuid4())
        state = AppState()
        self._sessions[session_id] = (state, time.monotonic())
        logger.info(f"Session {session_id} created ({len(self._sessions)} active)")
        return session_id, state

    def get(self, session_id: str) -> Optional[AppState]:
        """State for session_id, None if unknown or expired."""
        entry = self._sessions.get(session_id)
        if entry is None:
            return None

        state, last_access = entry
        now = time.monotonic()
        if now - last_access > self.ttl:
            self._sessions.pop(session_id, None)
            logger.info(f"Session {session_id} expired")
            return None

        self._sessions[session_id] = (state, now)
        return state

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        return self._sessions.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        """Drop idle sessions, return how many were removed."""
        cutoff = time.monotonic() - self.ttl
        expired = [sid for sid, (_, last) in self._sessions.items() if last < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


# Global session store instance
session_store = SessionStore()
