from datetime import timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from fitclub.config import Config
from fitclub.core.core import Service
from fitclub.core.modules.session.models import Session, SessionStats, SessionToken, SessionUser
from fitclub.core.modules.session.store import InMemorySessionStore, SessionStore
from fitclub.errors import AuthenticationError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Service for managing user sessions on top of a SessionStore."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config, store: SessionStore | None = None) -> None:
        super().__init__(database, config)
        self.store = store or InMemorySessionStore(max_age=self.max_age)

    @property
    def max_age(self) -> timedelta:
        return timedelta(days=self.config.session_max_age_days)

    def create_session(self, user: SessionUser) -> SessionToken:
        session_id = self.store.create(user)
        logger.info("session_created", user_id=user.id, role=user.role)
        return session_id

    def get_session(self, session_id: str) -> Session | None:
        return self.store.get(session_id)

    def get_authenticated_user(self, session_id: str) -> SessionUser:
        session = self.store.get(session_id)
        if session is None:
            raise AuthenticationError("Invalid or expired session")
        return session.user

    def is_session_valid(self, session_id: str) -> bool:
        return self.store.get(session_id) is not None

    def invalidate_session(self, session_id: str) -> bool:
        """Remove a session; False when it was already gone."""
        deleted = self.store.delete(session_id)
        if deleted:
            logger.info("session_invalidated")
        return deleted

    def get_user_sessions(self, user_id: str) -> list[Session]:
        return self.store.sessions_for_user(user_id)

    def terminate_user_sessions(self, user_id: str) -> int:
        count = self.store.terminate_all_for_user(user_id)
        logger.info("user_sessions_terminated", user_id=user_id, count=count)
        return count

    def cleanup_expired(self) -> int:
        count = self.store.cleanup_expired()
        if count:
            logger.info("expired_sessions_cleaned", count=count)
        return count

    def get_stats(self, recent_limit: int = 10) -> SessionStats:
        return self.store.stats(recent_limit)

    async def on_stop(self) -> None:
        """Drop all sessions on shutdown."""
        self.store.clear()
