from typing import Annotated, Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from fitclub.core.modules.password_reset.models import PasswordResetLog
from fitclub.core.modules.session.models import SessionStats, SessionView
from fitclub.core.modules.user.models import UserType
from fitclub.core.pagination import PaginationResult
from fitclub.web.deps import AppDep, AuthTokenDep
from fitclub.web.openapi import ErrorResponse

router = APIRouter(tags=["admin"])

ADMIN_RESPONSES: dict[int | str, dict[str, Any]] = {
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Admin privileges required"},
}


class CountResponse(BaseModel):
    count: int = Field(..., description="Number of affected records", ge=0)


@router.get(
    "/admin/sessions/stats",
    summary="Session statistics",
    description="Totals, per-role counts and the most recently active sessions.",
    operation_id="getSessionStats",
    responses=ADMIN_RESPONSES,
)
async def session_stats(
    app: AppDep,
    auth_token: AuthTokenDep,
    recent: Annotated[int, Query(ge=0, le=100, description="Number of recent sessions to include")] = 10,
) -> SessionStats:
    return app.get_session_stats(auth_token, recent)


@router.post(
    "/admin/sessions/cleanup",
    summary="Remove expired sessions",
    description="Sweep expired sessions. Meant to be called periodically by a scheduler.",
    operation_id="cleanupExpiredSessions",
    responses=ADMIN_RESPONSES,
)
async def cleanup_sessions(app: AppDep, auth_token: AuthTokenDep) -> CountResponse:
    return CountResponse(count=app.cleanup_expired_sessions(auth_token))


@router.get(
    "/admin/users/{user_id}/sessions",
    summary="List sessions of a user",
    operation_id="listUserSessions",
    responses=ADMIN_RESPONSES,
)
async def user_sessions(user_id: str, app: AppDep, auth_token: AuthTokenDep) -> list[SessionView]:
    return app.get_user_sessions(auth_token, user_id)


@router.delete(
    "/admin/users/{user_id}/sessions",
    summary="End all sessions of a user",
    description="Force logout of a user on all devices.",
    operation_id="terminateUserSessions",
    responses=ADMIN_RESPONSES,
)
async def terminate_user_sessions(user_id: str, app: AppDep, auth_token: AuthTokenDep) -> CountResponse:
    return CountResponse(count=app.terminate_user_sessions(auth_token, user_id))


@router.post(
    "/admin/password-reset/cleanup",
    summary="Clear expired reset tokens",
    description="Clear expired password reset tokens of staff and members. Meant to be called periodically.",
    operation_id="cleanupExpiredResetTokens",
    responses=ADMIN_RESPONSES,
)
async def cleanup_reset_tokens(app: AppDep, auth_token: AuthTokenDep) -> CountResponse:
    return CountResponse(count=await app.cleanup_expired_reset_tokens(auth_token))


@router.get(
    "/admin/password-reset/logs",
    summary="Password reset audit log",
    operation_id="listPasswordResetLogs",
    responses=ADMIN_RESPONSES,
)
async def reset_logs(
    app: AppDep,
    auth_token: AuthTokenDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    user_type: Annotated[UserType | None, Query(description="Only entries of this partition")] = None,
) -> PaginationResult[PasswordResetLog]:
    return await app.get_password_reset_logs(auth_token, limit, offset, user_type)
