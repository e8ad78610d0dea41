from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, EmailStr, Field

from fitclub.core.modules.user.models import UserRole, UserType, UserView
from fitclub.web.deps import AppDep, AuthTokenDep
from fitclub.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


class CreateUserRequest(BaseModel):
    """Request to create a new user."""

    user_type: UserType = Field(..., description="Account partition")
    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Initial password")
    role: UserRole = Field(..., description="Role, must match the partition")


class SetActiveRequest(BaseModel):
    is_active: bool = Field(..., description="Whether the account can sign in")


@router.get(
    "/users",
    summary="List users",
    description="List staff or member accounts. Only accessible by admin users.",
    operation_id="listUsers",
    responses={
        200: {"description": "Accounts of the partition"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_users(
    app: AppDep,
    auth_token: AuthTokenDep,
    user_type: Annotated[UserType, Query(description="Account partition")] = UserType.MEMBER,
) -> list[UserView]:
    return await app.list_users(auth_token, user_type)


@router.post(
    "/users",
    summary="Create new user",
    description="Create a staff or member account. Only accessible by admin users.",
    operation_id="createUser",
    responses={
        201: {"description": "User created successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
    },
    status_code=201,
)
async def create_user(create_data: CreateUserRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.create_user(
        auth_token, create_data.user_type, create_data.name, create_data.email, create_data.password, create_data.role
    )


@router.put(
    "/users/{user_type}/{user_id}/active",
    summary="Activate or deactivate user",
    description="Deactivated accounts cannot sign in or reset their password; their sessions are ended.",
    operation_id="setUserActive",
    responses={
        200: {"description": "Updated account"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def set_user_active(
    user_type: UserType, user_id: UUID, request: SetActiveRequest, app: AppDep, auth_token: AuthTokenDep
) -> UserView:
    return await app.set_user_active(auth_token, user_type, user_id, request.is_active)
