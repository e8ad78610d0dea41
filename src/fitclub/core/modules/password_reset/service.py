from datetime import timedelta
from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from fitclub.config import Config
from fitclub.core.core import Service
from fitclub.core.modules.password_reset.models import (
    UNKNOWN,
    PasswordResetLog,
    ResetAction,
    ResetFailureReason,
    ResetRequestResult,
    ResetResult,
    ResetUserInfo,
    TokenVerification,
)
from fitclub.core.modules.user.models import User, UserType
from fitclub.core.modules.user.validators import normalize_email
from fitclub.core.pagination import PaginationResult
from fitclub.utils import generate_token, now, token_digest

logger = structlog.get_logger(__name__)

REQUEST_ACCEPTED_MESSAGE = "If an account with that email exists, password reset instructions have been sent."
INVALID_TOKEN_MESSAGE = "Invalid or already used token"
EXPIRED_TOKEN_MESSAGE = "Token has expired, please request a new one"
SYSTEM_ERROR_MESSAGE = "A system error occurred, please try again later"


def _user_info(user: User) -> ResetUserInfo:
    return ResetUserInfo(id=user.id, email=user.email, name=user.name)


class PasswordResetService(Service):
    """Issues, verifies and consumes single-use password reset tokens.

    Tokens live on the user record as a sha256 digest with an expiry.
    Every attempt is written to the password_reset_logs collection.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config) -> None:
        super().__init__(database, config)
        self._logs = database.get_collection("password_reset_logs")

    @property
    def token_ttl(self) -> timedelta:
        return timedelta(minutes=self.config.reset_token_ttl_minutes)

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._logs.create_index([("user_id", 1)])
        await self._logs.create_index([("email", 1)])
        await self._logs.create_index([("user_type", 1), ("timestamp", -1)])

    async def request_reset(
        self, email: str, user_type: UserType, ip_address: str | None = None, user_agent: str | None = None
    ) -> ResetRequestResult:
        """Issue a new token for the account, replacing any pending one."""
        email = normalize_email(email)
        client = {"ip_address": ip_address, "user_agent": user_agent}
        try:
            user = await self.core.services.user.find_by_email(user_type, email)
            if user is None:
                await self._log(UNKNOWN, user_type, email, ResetAction.FAILED, "User not found", **client)
                return ResetRequestResult(
                    success=False, reason=ResetFailureReason.NOT_FOUND, message="User with this email was not found"
                )

            if not user.is_active:
                await self._log(str(user.id), user_type, email, ResetAction.FAILED, "Account is deactivated", **client)
                return ResetRequestResult(
                    success=False, reason=ResetFailureReason.DEACTIVATED, message="Account is deactivated"
                )

            token = generate_token()
            timestamp = now()
            expires_at = timestamp + self.token_ttl
            await self.core.services.user.collection(user_type).update_one(
                {"_id": user.id},
                {
                    "$set": {
                        "reset_password_token": token_digest(token),
                        "reset_password_expires": expires_at,
                        "reset_password_requested_at": timestamp,
                        "updated_at": timestamp,
                    }
                },
            )
            await self._log(
                str(user.id), user_type, email, ResetAction.REQUESTED, f"Token issued, expires {expires_at.isoformat()}", **client
            )
        except PyMongoError as e:
            logger.exception("password_reset_request_failed", user_type=user_type)
            await self._log_system_error(user_type, email, e, **client)
            return ResetRequestResult(success=False, reason=ResetFailureReason.SYSTEM_ERROR, message=SYSTEM_ERROR_MESSAGE)

        logger.info("password_reset_requested", user_id=str(user.id), user_type=user_type)
        return ResetRequestResult(
            success=True, message=REQUEST_ACCEPTED_MESSAGE, token=token, expires_at=expires_at, user=_user_info(user)
        )

    async def verify_token(self, token: str, user_type: UserType) -> TokenVerification:
        """Check a token without consuming it."""
        try:
            user = await self._find_by_token(token, user_type)
        except PyMongoError:
            logger.exception("password_reset_verify_failed", user_type=user_type)
            return TokenVerification(success=False, reason=ResetFailureReason.SYSTEM_ERROR, message=SYSTEM_ERROR_MESSAGE)

        if user is None or user.reset_password_expires is None:
            return TokenVerification(success=False, reason=ResetFailureReason.INVALID_TOKEN, message=INVALID_TOKEN_MESSAGE)
        if user.reset_password_expires < now():
            return TokenVerification(
                success=False, reason=ResetFailureReason.EXPIRED_TOKEN, message=EXPIRED_TOKEN_MESSAGE, expired=True
            )
        return TokenVerification(success=True, message="Token is valid", user=_user_info(user))

    async def reset_password(self, token: str, new_password: str, user_type: UserType) -> ResetResult:
        """Set a new password and consume the token in one conditional update."""
        try:
            user = await self._find_by_token(token, user_type)
            timestamp = now()
            if user is None or user.reset_password_expires is None:
                await self._log(UNKNOWN, user_type, UNKNOWN, ResetAction.FAILED, "Invalid token")
                return ResetResult(success=False, reason=ResetFailureReason.INVALID_TOKEN, message=INVALID_TOKEN_MESSAGE)

            if user.reset_password_expires < timestamp:
                await self._log(
                    str(user.id), user_type, user.email, ResetAction.EXPIRED, "Attempt to reset password with an expired token"
                )
                return ResetResult(success=False, reason=ResetFailureReason.EXPIRED_TOKEN, message=EXPIRED_TOKEN_MESSAGE)

            password_hash = self.core.services.user.hash_password(new_password)
            consumed = await self.core.services.user.collection(user_type).find_one_and_update(
                {
                    "_id": user.id,
                    "reset_password_token": token_digest(token),
                    "reset_password_expires": {"$gte": timestamp},
                },
                {
                    "$set": {"password_hash": password_hash, "password_changed_at": timestamp, "updated_at": timestamp},
                    "$unset": {"reset_password_token": "", "reset_password_expires": ""},
                },
                return_document=ReturnDocument.BEFORE,
            )
            if consumed is None:
                # Another request consumed or replaced the token in between
                await self._log(str(user.id), user_type, user.email, ResetAction.FAILED, "Token was already used")
                return ResetResult(success=False, reason=ResetFailureReason.INVALID_TOKEN, message=INVALID_TOKEN_MESSAGE)
        except PyMongoError as e:
            logger.exception("password_reset_failed", user_type=user_type)
            await self._log_system_error(user_type, UNKNOWN, e)
            return ResetResult(success=False, reason=ResetFailureReason.SYSTEM_ERROR, message=SYSTEM_ERROR_MESSAGE)

        # Token consumed and password changed: the reset is committed from here on
        try:
            await self._log(str(user.id), user_type, user.email, ResetAction.COMPLETED, "Password changed")
        except PyMongoError:
            logger.exception("password_reset_audit_failed", user_id=str(user.id), user_type=user_type)

        logger.info("password_reset_completed", user_id=str(user.id), user_type=user_type)
        return ResetResult(success=True, message="Password changed successfully", user=_user_info(user))

    async def cleanup_expired_tokens(self) -> int:
        """Clear expired tokens in both partitions and return how many were cleared."""
        timestamp = now()
        cleaned = 0
        for user_type in UserType:
            collection = self.core.services.user.collection(user_type)
            cursor = collection.find({"reset_password_token": {"$ne": None}, "reset_password_expires": {"$lt": timestamp}})
            for user in await User.list_cursor(cursor):
                result = await collection.update_one(
                    {
                        "_id": user.id,
                        "reset_password_token": user.reset_password_token,
                        "reset_password_expires": {"$lt": timestamp},
                    },
                    {
                        "$set": {"updated_at": timestamp},
                        "$unset": {"reset_password_token": "", "reset_password_expires": ""},
                    },
                )
                if result.modified_count == 0:
                    continue
                await self._log(str(user.id), user_type, user.email, ResetAction.EXPIRED, "Expired token cleared by cleanup")
                cleaned += 1

        if cleaned:
            logger.info("expired_reset_tokens_cleaned", count=cleaned)
        return cleaned

    async def get_logs(self, limit: int = 50, offset: int = 0, user_type: UserType | None = None) -> PaginationResult[PasswordResetLog]:
        """Get paginated audit entries, newest first."""
        query: dict[str, Any] = {} if user_type is None else {"user_type": user_type}
        total = await self._logs.count_documents(query)
        cursor = self._logs.find(query).sort("timestamp", -1).skip(offset).limit(limit)
        items = await PasswordResetLog.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def _find_by_token(self, token: str, user_type: UserType) -> User | None:
        if not token:
            return None
        collection = self.core.services.user.collection(user_type)
        return User.from_mongo(await collection.find_one({"reset_password_token": token_digest(token)}))

    async def _log(
        self,
        user_id: str,
        user_type: UserType,
        email: str,
        action: ResetAction,
        details: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        entry = PasswordResetLog(
            user_id=user_id,
            user_type=user_type,
            email=email,
            action=action,
            timestamp=now(),
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self._logs.insert_one(entry.to_mongo())

    async def _log_system_error(self, user_type: UserType, email: str, error: Exception, **client: str | None) -> None:
        try:
            await self._log(UNKNOWN, user_type, email, ResetAction.FAILED, f"System error: {type(error).__name__}", **client)
        except PyMongoError:
            logger.exception("password_reset_audit_failed", user_type=user_type)
