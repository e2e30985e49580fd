"""
repositories/session_store.py
-----------------------------
In-memory store of conversation Sessions, keyed by Telegram user ID.

Sessions live only as long as the process: a restart forgets every
unfinished wizard. Access is serialized with a lock so the store can be
shared by concurrent workers without changing its interface.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from models.session import Session, utcnow
from utils.logger import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Keyed map of user_id -> Session with get / put / clear."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._sessions: dict[int, Session] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, user_id: int) -> Optional[Session]:
        """
        Fetch the Session for a user.

        Returns:
            The stored Session, or None if the user has no conversation.
        """
        with self._lock:
            return self._sessions.get(user_id)

    def put(self, session: Session) -> Session:
        """
        Store a Session, replacing any previous one for the same user.

        Returns:
            The stored copy, with `updated_at` set to now.
        """
        stamped = session.touched(self._clock())
        with self._lock:
            self._sessions[session.user_id] = stamped
        return stamped

    def clear(self, user_id: int) -> bool:
        """
        Drop a user's Session.

        Returns:
            True if there was one.
        """
        with self._lock:
            return self._sessions.pop(user_id, None) is not None

    def sweep(self, max_idle: timedelta) -> list[int]:
        """
        Remove Sessions untouched for longer than `max_idle`.

        Returns:
            The user IDs whose Sessions were removed.
        """
        cutoff = self._clock() - max_idle
        with self._lock:
            expired = [uid for uid, s in self._sessions.items() if s.updated_at < cutoff]
            for uid in expired:
                del self._sessions[uid]
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s): {expired}")
        return expired

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
