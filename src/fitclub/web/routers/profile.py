from fastapi import APIRouter
from pydantic import BaseModel, Field

from fitclub.core.modules.session.models import SessionView
from fitclub.core.modules.user.models import UserView
from fitclub.web.deps import AppDep, AuthTokenDep
from fitclub.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


class ChangePasswordRequest(BaseModel):
    """Request to change user password."""

    old_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, description="New password")


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the profile of the currently authenticated user.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.get_current_user(auth_token)


@router.get(
    "/profile/sessions",
    summary="List my sessions",
    description="Sessions of the current user, newest first.",
    operation_id="listMySessions",
    responses={
        200: {"description": "Sessions of the current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_my_sessions(app: AppDep, auth_token: AuthTokenDep) -> list[SessionView]:
    return app.get_my_sessions(auth_token)


@router.post(
    "/profile/change-password",
    summary="Change password",
    description="Change the password for the currently authenticated user.",
    operation_id="changePassword",
    status_code=204,
    responses={
        204: {"description": "Password changed successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        400: {"model": ErrorResponse, "description": "Invalid current password or new password"},
    },
)
async def change_password(request: ChangePasswordRequest, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.change_password(auth_token, request.old_password, request.new_password)
