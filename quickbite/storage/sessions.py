"""Login session stores.

A session maps an opaque token to a user id until it expires. Backends
expose one through their ``sessions`` attribute; the relational backend
keeps its own table-backed store next to the data.
"""

import secrets
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

DEFAULT_SESSION_TTL = 24 * 60 * 60


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """Abstract base class for session stores."""

    def __init__(
        self,
        ttl: float = DEFAULT_SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self._clock = clock

    def _expiry(self) -> float:
        return self._clock() + self.ttl

    @abstractmethod
    def create(self, user_id: int) -> str:
        """Open a session for ``user_id`` and return its id."""
        pass

    @abstractmethod
    def get(self, session_id: str) -> int | None:
        """Return the user id of a live session, or None."""
        pass

    @abstractmethod
    def touch(self, session_id: str) -> bool:
        """Extend a live session by the TTL."""
        pass

    @abstractmethod
    def destroy(self, session_id: str) -> bool:
        """End a session."""
        pass

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop expired sessions and return how many were removed."""
        pass


class MemorySessionStore(SessionStore):
    """Process-local session store."""

    def __init__(
        self,
        ttl: float = DEFAULT_SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(ttl, clock)
        self._sessions: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int) -> str:
        session_id = new_session_id()
        with self._lock:
            self._sessions[session_id] = (user_id, self._expiry())
        return session_id

    def get(self, session_id: str) -> int | None:
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return None
            user_id, expires_at = record
            if expires_at <= self._clock():
                del self._sessions[session_id]
                return None
            return user_id

    def touch(self, session_id: str) -> bool:
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None or record[1] <= self._clock():
                return False
            self._sessions[session_id] = (record[0], self._expiry())
            return True

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [sid for sid, (_, exp) in self._sessions.items() if exp <= now]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
