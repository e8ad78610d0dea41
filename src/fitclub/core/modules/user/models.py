from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from fitclub.core.db import MongoModel
from fitclub.utils import now


class UserType(StrEnum):
    """Partition a user record lives in."""

    STAFF = "staff"
    MEMBER = "member"


class UserRole(StrEnum):
    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    MANAGER = "manager"
    TRAINER = "trainer"
    MEMBER = "member"
    CLIENT = "client"


ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})
STAFF_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.MANAGER, UserRole.TRAINER})
MEMBER_ROLES = frozenset({UserRole.MEMBER, UserRole.CLIENT})


class User(MongoModel):
    """Staff or member account.

    Stored in the `staff` or `members` collection depending on UserType.
    Indexed on email - unique, reset_password_token.
    """

    name: str
    email: str  # lower-cased
    password_hash: str  # bcrypt hash
    role: UserRole
    is_active: bool = True
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None
    last_login_at: datetime | None = None
    reset_password_token: str | None = None  # sha256 digest of the issued token
    reset_password_expires: datetime | None = None
    reset_password_requested_at: datetime | None = None
    password_changed_at: datetime | None = None


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    user_type: UserType = Field(..., description="Account partition")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="Role")
    is_active: bool = Field(..., description="Whether the account can sign in")
    created_at: datetime = Field(..., description="Account creation time")
    last_login_at: datetime | None = Field(None, description="Last successful sign in")

    @classmethod
    def from_domain(cls, user: User, user_type: UserType) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            user_type=user_type,
            name=user.name,
            email=user.email,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
        )


DASHBOARD_URLS: dict[UserRole, str] = {
    UserRole.MEMBER: "/member-dashboard",
    UserRole.ADMIN: "/admin",
    UserRole.SUPER_ADMIN: "/admin",
    UserRole.MANAGER: "/manager-dashboard",
    UserRole.TRAINER: "/trainer-dashboard",
}


def dashboard_url_for_role(role: UserRole) -> str:
    return DASHBOARD_URLS.get(role, "/staff-dashboard")
