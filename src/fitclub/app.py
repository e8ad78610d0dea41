from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, NoReturn
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from fitclub.config import Config
from fitclub.core.core import Core
from fitclub.core.modules.password_reset.models import (
    PasswordResetLog,
    ResetFailureReason,
    ResetRequestAccepted,
    ResetUserInfo,
)
from fitclub.core.modules.password_reset.service import REQUEST_ACCEPTED_MESSAGE
from fitclub.core.modules.session.models import SessionCheck, SessionStats, SessionToken, SessionUser, SessionView
from fitclub.core.modules.user.models import User, UserRole, UserType, UserView, dashboard_url_for_role
from fitclub.core.modules.user.validators import validate_password
from fitclub.core.pagination import PaginationResult
from fitclub.errors import AccessDeniedError, AuthenticationError, ExpiredTokenError, InvalidTokenError, ServiceError


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        self._core = Core(config, database)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Authentication ===
    def is_auth_token_valid(self, auth_token: SessionToken) -> bool:
        """Check if session token is valid."""
        return self._core.services.session.is_session_valid(auth_token)

    async def login(self, email: str, password: str, user_type: UserType) -> SessionToken:
        """Authenticate user and create session."""
        user = await self._core.services.user.verify_credentials(user_type, email, password)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AccessDeniedError("Account is deactivated")
        await self._core.services.user.touch_last_login(user_type, user.id)
        return self._core.services.session.create_session(self._session_user(user, user_type))

    async def register_member(self, name: str, email: str, password: str) -> UserView:
        """Self-registration for club members."""
        user = await self._core.services.user.create_user(UserType.MEMBER, name, email, password, UserRole.MEMBER)
        return UserView.from_domain(user, UserType.MEMBER)

    def logout(self, auth_token: SessionToken) -> None:
        """Invalidate user session."""
        self._core.services.access.ensure_authenticated(auth_token)
        self._core.services.session.invalidate_session(auth_token)

    def logout_everywhere(self, auth_token: SessionToken) -> int:
        """Invalidate every session of the current user."""
        current_user = self._core.services.access.ensure_authenticated(auth_token)
        return self._core.services.session.terminate_user_sessions(current_user.id)

    def check_session(self, auth_token: SessionToken | None) -> SessionCheck:
        """Describe the caller's session without raising for anonymous callers."""
        session = self._core.services.session.get_session(auth_token) if auth_token else None
        if session is None:
            return SessionCheck(authenticated=False)
        return SessionCheck(
            authenticated=True,
            user=session.user,
            dashboard_url=dashboard_url_for_role(session.user.role),
            session_created=session.created_at,
            last_accessed=session.last_accessed,
        )

    # === Profile ===
    async def get_current_user(self, auth_token: SessionToken) -> UserView:
        """Get current authenticated user profile."""
        current_user = self._core.services.access.ensure_authenticated(auth_token)
        user = await self._core.services.user.get_user(current_user.user_type, UUID(current_user.id))
        return UserView.from_domain(user, current_user.user_type)

    def get_my_sessions(self, auth_token: SessionToken) -> list[SessionView]:
        current_user = self._core.services.access.ensure_authenticated(auth_token)
        return [SessionView.from_domain(s) for s in self._core.services.session.get_user_sessions(current_user.id)]

    async def change_password(self, auth_token: SessionToken, old_password: str, new_password: str) -> None:
        """Change password for current user."""
        current_user = self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.user.change_password(
            current_user.user_type, UUID(current_user.id), old_password, new_password
        )

    # === Password reset ===
    async def request_password_reset(
        self, email: str, user_type: UserType, ip_address: str | None = None, user_agent: str | None = None
    ) -> ResetRequestAccepted:
        """Start a password reset; the answer never reveals whether the account exists."""
        reset = self._core.services.password_reset
        result = await reset.request_reset(email, user_type, ip_address, user_agent)
        if result.reason == ResetFailureReason.SYSTEM_ERROR:
            raise ServiceError

        token = None
        if result.success and result.token is not None and result.user is not None:
            self._core.services.mail.queue_password_reset(result.user, result.token, user_type)
            if self.config.expose_reset_token:
                token = result.token
        return ResetRequestAccepted(message=REQUEST_ACCEPTED_MESSAGE, token=token)

    async def verify_reset_token(self, token: str, user_type: UserType) -> ResetUserInfo:
        result = await self._core.services.password_reset.verify_token(token, user_type)
        if not result.success or result.user is None:
            self._raise_reset_failure(result.reason, result.message)
        return result.user

    async def reset_password(self, token: str, new_password: str, user_type: UserType) -> None:
        """Consume a reset token, then sign the user out everywhere."""
        validate_password(new_password)
        result = await self._core.services.password_reset.reset_password(token, new_password, user_type)
        if not result.success or result.user is None:
            self._raise_reset_failure(result.reason, result.message)
        self._core.services.session.terminate_user_sessions(str(result.user.id))

    # === Users (admin) ===
    async def list_users(self, auth_token: SessionToken, user_type: UserType) -> list[UserView]:
        self._core.services.access.ensure_admin(auth_token)
        users = await self._core.services.user.list_users(user_type)
        return [UserView.from_domain(user, user_type) for user in users]

    async def create_user(
        self, auth_token: SessionToken, user_type: UserType, name: str, email: str, password: str, role: UserRole
    ) -> UserView:
        """Create a new staff or member account (admin only)."""
        self._core.services.access.ensure_admin(auth_token)
        user = await self._core.services.user.create_user(user_type, name, email, password, role)
        return UserView.from_domain(user, user_type)

    async def set_user_active(self, auth_token: SessionToken, user_type: UserType, user_id: UUID, is_active: bool) -> UserView:
        """Activate or deactivate an account (admin only); deactivation ends its sessions."""
        current_user = self._core.services.access.ensure_admin(auth_token)
        if not is_active and current_user.id == str(user_id):
            raise AccessDeniedError("Cannot deactivate yourself")
        user = await self._core.services.user.set_active(user_type, user_id, is_active)
        if not is_active:
            self._core.services.session.terminate_user_sessions(str(user_id))
        return UserView.from_domain(user, user_type)

    # === Sessions (admin) ===
    def get_session_stats(self, auth_token: SessionToken, recent_limit: int = 10) -> SessionStats:
        self._core.services.access.ensure_admin(auth_token)
        return self._core.services.session.get_stats(recent_limit)

    def get_user_sessions(self, auth_token: SessionToken, user_id: str) -> list[SessionView]:
        self._core.services.access.ensure_admin(auth_token)
        return [SessionView.from_domain(s) for s in self._core.services.session.get_user_sessions(user_id)]

    def terminate_user_sessions(self, auth_token: SessionToken, user_id: str) -> int:
        """Force logout of a user on all devices (admin only)."""
        self._core.services.access.ensure_admin(auth_token)
        return self._core.services.session.terminate_user_sessions(user_id)

    def cleanup_expired_sessions(self, auth_token: SessionToken) -> int:
        self._core.services.access.ensure_admin(auth_token)
        return self._core.services.session.cleanup_expired()

    # === Password reset maintenance (admin) ===
    async def cleanup_expired_reset_tokens(self, auth_token: SessionToken) -> int:
        self._core.services.access.ensure_admin(auth_token)
        return await self._core.services.password_reset.cleanup_expired_tokens()

    async def get_password_reset_logs(
        self, auth_token: SessionToken, limit: int = 50, offset: int = 0, user_type: UserType | None = None
    ) -> PaginationResult[PasswordResetLog]:
        self._core.services.access.ensure_admin(auth_token)
        return await self._core.services.password_reset.get_logs(limit, offset, user_type)

    # === Private helpers ===
    @staticmethod
    def _session_user(user: User, user_type: UserType) -> SessionUser:
        return SessionUser(id=str(user.id), email=user.email, role=user.role, name=user.name, user_type=user_type)

    @staticmethod
    def _raise_reset_failure(reason: ResetFailureReason | None, message: str) -> NoReturn:
        if reason == ResetFailureReason.EXPIRED_TOKEN:
            raise ExpiredTokenError(message)
        if reason == ResetFailureReason.SYSTEM_ERROR:
            raise ServiceError
        raise InvalidTokenError(message)
