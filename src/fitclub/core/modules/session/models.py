"""Session management models."""

from datetime import datetime
from typing import NewType

from pydantic import BaseModel, Field

from fitclub.core.modules.user.models import UserRole, UserType

SessionToken = NewType("SessionToken", str)


class SessionUser(BaseModel):
    """Snapshot of the authenticated user embedded in a session."""

    id: str
    email: str
    role: UserRole
    name: str
    user_type: UserType


class Session(BaseModel):
    """Authenticated session held by the session store.

    Expiry is anchored to created_at; lookups only move last_accessed.
    """

    id: SessionToken
    user: SessionUser
    created_at: datetime
    last_accessed: datetime


class SessionView(BaseModel):
    """Session information (API representation), never carries the full token."""

    id_prefix: str = Field(..., description="First characters of the session token")
    user: SessionUser = Field(..., description="Session owner")
    created_at: datetime = Field(..., description="Session creation time")
    last_accessed: datetime = Field(..., description="Last time the session was used")

    @classmethod
    def from_domain(cls, session: Session) -> "SessionView":
        return cls(
            id_prefix=session.id[:8],
            user=session.user,
            created_at=session.created_at,
            last_accessed=session.last_accessed,
        )


class SessionStats(BaseModel):
    """Aggregate view over the session table."""

    total: int = Field(..., description="All stored sessions, including expired ones", ge=0)
    active: int = Field(..., description="Sessions that are still valid", ge=0)
    expired: int = Field(..., description="Expired sessions not yet swept", ge=0)
    average_age_seconds: float = Field(..., description="Average age of active sessions", ge=0)
    by_role: dict[UserRole, int] = Field(..., description="Active sessions per role")
    recent: list[SessionView] = Field(..., description="Most recently active sessions, most recent first")


class SessionCheck(BaseModel):
    """Authentication status of the caller."""

    authenticated: bool = Field(..., description="Whether the caller holds a valid session")
    user: SessionUser | None = Field(None, description="Session owner")
    dashboard_url: str | None = Field(None, description="Landing page for the user's role")
    session_created: datetime | None = Field(None, description="Session creation time")
    last_accessed: datetime | None = Field(None, description="Last time the session was used")
