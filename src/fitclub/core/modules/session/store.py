"""Session storage backends."""

import threading
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta

from fitclub.core.modules.session.models import Session, SessionStats, SessionToken, SessionUser, SessionView
from fitclub.utils import generate_token, now

DEFAULT_MAX_AGE = timedelta(days=7)


class SessionStore(ABC):
    """Registry of authenticated sessions.

    Implementations never raise for unknown or expired sessions: both are
    reported as None (or False / 0 for the bulk operations).
    """

    @abstractmethod
    def create(self, user: SessionUser) -> SessionToken: ...

    @abstractmethod
    def get(self, session_id: str) -> Session | None: ...

    @abstractmethod
    def delete(self, session_id: str) -> bool: ...

    @abstractmethod
    def cleanup_expired(self) -> int: ...

    @abstractmethod
    def stats(self, recent_limit: int = 10) -> SessionStats: ...

    @abstractmethod
    def sessions_for_user(self, user_id: str) -> list[Session]: ...

    @abstractmethod
    def terminate_all_for_user(self, user_id: str) -> int: ...

    @abstractmethod
    def clear(self) -> None: ...


class InMemorySessionStore(SessionStore):
    """Process-local session table guarded by a single lock.

    Sessions do not survive a restart.
    """

    def __init__(self, max_age: timedelta = DEFAULT_MAX_AGE, clock: Callable[[], datetime] = now) -> None:
        self.max_age = max_age
        self._clock = clock
        self._sessions: dict[SessionToken, Session] = {}
        self._lock = threading.Lock()

    def _is_expired(self, session: Session, at: datetime) -> bool:
        return at - session.created_at > self.max_age

    def create(self, user: SessionUser) -> SessionToken:
        session_id = SessionToken(generate_token())
        timestamp = self._clock()
        session = Session(id=session_id, user=user.model_copy(), created_at=timestamp, last_accessed=timestamp)
        with self._lock:
            self._sessions[session_id] = session
        return session_id

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(SessionToken(session_id))
            if session is None:
                return None
            timestamp = self._clock()
            if self._is_expired(session, timestamp):
                del self._sessions[session.id]
                return None
            session.last_accessed = timestamp
            return session.model_copy(deep=True)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(SessionToken(session_id), None) is not None

    def cleanup_expired(self) -> int:
        with self._lock:
            timestamp = self._clock()
            expired = [sid for sid, session in self._sessions.items() if self._is_expired(session, timestamp)]
            for sid in expired:
                del self._sessions[sid]
            return len(expired)

    def stats(self, recent_limit: int = 10) -> SessionStats:
        with self._lock:
            timestamp = self._clock()
            active: list[Session] = []
            expired = 0
            for session in self._sessions.values():
                if self._is_expired(session, timestamp):
                    expired += 1
                else:
                    active.append(session)

            total_age = sum((timestamp - s.created_at).total_seconds() for s in active)
            recent = sorted(active, key=lambda s: s.last_accessed, reverse=True)[:recent_limit]
            return SessionStats(
                total=len(self._sessions),
                active=len(active),
                expired=expired,
                average_age_seconds=total_age / len(active) if active else 0.0,
                by_role=dict(Counter(s.user.role for s in active)),
                recent=[SessionView.from_domain(s) for s in recent],
            )

    def sessions_for_user(self, user_id: str) -> list[Session]:
        """Sessions of a user, newest first. Expired-but-unswept entries are included."""
        with self._lock:
            owned = [s.model_copy(deep=True) for s in self._sessions.values() if s.user.id == user_id]
        return sorted(owned, key=lambda s: s.created_at, reverse=True)

    def terminate_all_for_user(self, user_id: str) -> int:
        with self._lock:
            owned = [sid for sid, session in self._sessions.items() if session.user.id == user_id]
            for sid in owned:
                del self._sessions[sid]
            return len(owned)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
