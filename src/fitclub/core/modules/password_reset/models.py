"""Password reset audit log and result models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from fitclub.core.db import MongoModel
from fitclub.core.modules.user.models import UserType

UNKNOWN = "unknown"


class ResetAction(StrEnum):
    REQUESTED = "requested"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"


class ResetFailureReason(StrEnum):
    NOT_FOUND = "not_found"
    DEACTIVATED = "deactivated"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    SYSTEM_ERROR = "system_error"


class PasswordResetLog(MongoModel):
    """Append-only audit entry, one per reset state transition attempt.

    Indexed on user_id, email, (user_type, timestamp).
    """

    user_id: str  # "unknown" when no user could be resolved
    user_type: UserType
    email: str
    action: ResetAction
    timestamp: datetime
    details: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class ResetUserInfo(BaseModel):
    """Identity of the account a reset token belongs to."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    name: str = Field(..., description="Display name")


class ResetRequestResult(BaseModel):
    success: bool
    message: str
    reason: ResetFailureReason | None = None
    token: str | None = None
    expires_at: datetime | None = None
    user: ResetUserInfo | None = None


class TokenVerification(BaseModel):
    success: bool
    message: str
    reason: ResetFailureReason | None = None
    expired: bool = False
    user: ResetUserInfo | None = None


class ResetResult(BaseModel):
    success: bool
    message: str
    reason: ResetFailureReason | None = None
    user: ResetUserInfo | None = None


class ResetRequestAccepted(BaseModel):
    """Public answer to a reset request, identical whether or not the account exists."""

    message: str = Field(..., description="Generic confirmation message")
    token: str | None = Field(None, description="Raw reset token, only returned in development mode")
