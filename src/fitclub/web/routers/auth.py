from fastapi import APIRouter, Response
from pydantic import BaseModel, EmailStr, Field

from fitclub.core.modules.session.models import SessionCheck
from fitclub.core.modules.user.models import UserType, UserView
from fitclub.web.deps import SESSION_COOKIE, AppDep, AuthTokenDep, OptionalAuthTokenDep
from fitclub.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password for authentication")
    user_type: UserType = Field(UserType.MEMBER, description="Account partition to sign in to")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Session token for subsequent requests")


class RegisterRequest(BaseModel):
    """Member self-registration request."""

    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class LogoutAllResponse(BaseModel):
    terminated: int = Field(..., description="Number of sessions ended")


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password to receive a session token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account is deactivated"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, response: Response) -> LoginResponse:
    """Authenticate user and create session."""

    token = await app.login(login_data.email, login_data.password, login_data.user_type)

    # Set cookie for browser-based clients
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=app.config.session_cookie_secure,
        max_age=app.config.session_max_age_days * 24 * 60 * 60,  # matches session max age
    )

    return LoginResponse(token=token)


@router.post(
    "/auth/register",
    summary="Register member",
    description="Create a member account. Staff accounts are created by administrators.",
    operation_id="registerMember",
    status_code=201,
    responses={
        201: {"description": "Member created"},
        400: {"model": ErrorResponse, "description": "Invalid request or email already registered"},
    },
)
async def register(register_data: RegisterRequest, app: AppDep) -> UserView:
    return await app.register_member(register_data.name, register_data.email, register_data.password)


@router.get(
    "/auth/check",
    summary="Check authentication",
    description="Report whether the caller holds a valid session. Never fails for anonymous callers.",
    operation_id="checkAuth",
)
async def check(app: AppDep, auth_token: OptionalAuthTokenDep) -> SessionCheck:
    return app.check_session(auth_token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current session.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    app.logout(auth_token)
    response.delete_cookie(SESSION_COOKIE)


@router.post(
    "/auth/logout-all",
    summary="End all sessions",
    description="Invalidate every session of the current user, on all devices.",
    operation_id="logoutAll",
    responses={
        200: {"description": "Sessions ended"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout_all(app: AppDep, auth_token: AuthTokenDep, response: Response) -> LogoutAllResponse:
    terminated = app.logout_everywhere(auth_token)
    response.delete_cookie(SESSION_COOKIE)
    return LogoutAllResponse(terminated=terminated)
