from typing import Annotated

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, EmailStr, Field

from fitclub.core.modules.password_reset.models import ResetRequestAccepted, ResetUserInfo
from fitclub.core.modules.user.models import UserType
from fitclub.web.deps import AppDep
from fitclub.web.openapi import ErrorResponse

router = APIRouter(tags=["password-reset"])


class ResetRequest(BaseModel):
    """Request reset instructions for an account."""

    email: EmailStr = Field(..., description="Email of the account")
    user_type: UserType = Field(..., description="Account partition")


class ResetConfirmRequest(BaseModel):
    """Choose a new password with a reset token."""

    token: str = Field(..., min_length=1, description="Token received by email")
    new_password: str = Field(..., min_length=1, description="New password")
    user_type: UserType = Field(..., description="Account partition")


@router.post(
    "/auth/password-reset/request",
    summary="Request password reset",
    description="Send reset instructions by email. The response is the same whether or not the account exists.",
    operation_id="requestPasswordReset",
    responses={
        200: {"description": "Request accepted"},
        503: {"model": ErrorResponse, "description": "System error"},
    },
)
async def request_reset(reset_data: ResetRequest, app: AppDep, request: Request) -> ResetRequestAccepted:
    ip_address = request.client.host if request.client else None
    return await app.request_password_reset(
        reset_data.email, reset_data.user_type, ip_address, request.headers.get("user-agent")
    )


@router.get(
    "/auth/password-reset/verify",
    summary="Verify reset token",
    description="Check a reset token before showing the new password form. Does not consume the token.",
    operation_id="verifyPasswordResetToken",
    responses={
        200: {"description": "Token is valid"},
        400: {"model": ErrorResponse, "description": "Invalid or expired token"},
    },
)
async def verify_token(
    app: AppDep,
    token: Annotated[str, Query(min_length=1, description="Reset token")],
    user_type: Annotated[UserType, Query(description="Account partition")],
) -> ResetUserInfo:
    return await app.verify_reset_token(token, user_type)


@router.post(
    "/auth/password-reset/confirm",
    summary="Reset password",
    description="Set a new password using a reset token. The token can be used once; all sessions are ended.",
    operation_id="confirmPasswordReset",
    status_code=204,
    responses={
        204: {"description": "Password changed"},
        400: {"model": ErrorResponse, "description": "Invalid password, invalid or expired token"},
    },
)
async def confirm_reset(confirm_data: ResetConfirmRequest, app: AppDep) -> None:
    await app.reset_password(confirm_data.token, confirm_data.new_password, confirm_data.user_type)
