from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from fitclub.config import Config
from fitclub.core.core import Service
from fitclub.core.modules.user.models import User, UserRole, UserType
from fitclub.core.modules.user.validators import normalize_email, validate_email, validate_password, validate_role
from fitclub.errors import NotFoundError, ValidationError
from fitclub.utils import now

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages staff and member accounts, one collection per partition."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config) -> None:
        super().__init__(database, config)
        self._collections: dict[UserType, AsyncCollection[dict[str, Any]]] = {
            UserType.STAFF: database.get_collection("staff"),
            UserType.MEMBER: database.get_collection("members"),
        }

    def collection(self, user_type: UserType) -> AsyncCollection[dict[str, Any]]:
        return self._collections[user_type]

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.config.bcrypt_rounds)).decode("utf-8")

    async def get_user(self, user_type: UserType, user_id: UUID) -> User:
        doc = await self.collection(user_type).find_one({"_id": user_id})
        if doc is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return User.model_validate(doc)

    async def find_by_email(self, user_type: UserType, email: str) -> User | None:
        """Find a user by email within a partition, None if absent."""
        return User.from_mongo(await self.collection(user_type).find_one({"email": normalize_email(email)}))

    async def has_email(self, user_type: UserType, email: str) -> bool:
        return await self.find_by_email(user_type, email) is not None

    async def list_users(self, user_type: UserType) -> list[User]:
        return await User.list_cursor(self.collection(user_type).find({}).sort("created_at", 1))

    async def create_user(self, user_type: UserType, name: str, email: str, password: str, role: UserRole) -> User:
        """Create user with hashed password."""
        email = normalize_email(email)
        validate_email(email)
        validate_role(user_type, role)
        if not name.strip():
            raise ValidationError("Name cannot be empty")
        if await self.has_email(user_type, email):
            raise ValidationError(f"User '{email}' already exists")

        validate_password(password)
        user = User(name=name.strip(), email=email, password_hash=self.hash_password(password), role=role)
        await self.collection(user_type).insert_one(user.to_mongo())
        logger.info("user_created", user_id=str(user.id), user_type=user_type, role=role)
        return user

    async def verify_credentials(self, user_type: UserType, email: str, password: str) -> User | None:
        """Return the user when the password matches its stored hash."""
        user = await self.find_by_email(user_type, email)
        if user is None:
            return None
        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            return None
        return user

    async def change_password(self, user_type: UserType, user_id: UUID, old_password: str, new_password: str) -> None:
        """Change user password after verifying current password."""
        user = await self.get_user(user_type, user_id)
        if not bcrypt.checkpw(old_password.encode("utf-8"), user.password_hash.encode("utf-8")):
            raise ValidationError("Invalid current password")

        validate_password(new_password)
        timestamp = now()
        await self.collection(user_type).update_one(
            {"_id": user_id},
            {"$set": {"password_hash": self.hash_password(new_password), "password_changed_at": timestamp, "updated_at": timestamp}},
        )
        logger.info("password_changed", user_id=str(user_id), user_type=user_type)

    async def set_active(self, user_type: UserType, user_id: UUID, is_active: bool) -> User:
        """Activate or deactivate an account."""
        result = await self.collection(user_type).update_one(
            {"_id": user_id}, {"$set": {"is_active": is_active, "updated_at": now()}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"User '{user_id}' not found")
        logger.info("user_active_changed", user_id=str(user_id), user_type=user_type, is_active=is_active)
        return await self.get_user(user_type, user_id)

    async def touch_last_login(self, user_type: UserType, user_id: UUID) -> None:
        await self.collection(user_type).update_one({"_id": user_id}, {"$set": {"last_login_at": now()}})

    async def ensure_admin_user_exists(self) -> None:
        """Create the bootstrap super-admin if configured and missing."""
        email, password = self.config.admin_email, self.config.admin_password
        if not email or not password:
            return
        if not await self.has_email(UserType.STAFF, email):
            await self.create_user(UserType.STAFF, "Administrator", email, password, UserRole.SUPER_ADMIN)

    async def on_start(self) -> None:
        """Initialize indexes and admin user."""
        for collection in self._collections.values():
            await collection.create_index([("email", 1)], unique=True)
            await collection.create_index([("reset_password_token", 1)], sparse=True)
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started")
