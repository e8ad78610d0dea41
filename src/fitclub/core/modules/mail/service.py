import asyncio
from typing import Any
from urllib.parse import urlencode

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from fitclub.config import Config
from fitclub.core.core import Service
from fitclub.core.modules.mail.sender import send_email
from fitclub.core.modules.password_reset.models import ResetUserInfo
from fitclub.core.modules.user.models import UserType

logger = structlog.get_logger(__name__)


class MailService(Service):
    """Out-of-band delivery of account emails."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config) -> None:
        super().__init__(database, config)
        self._background_tasks: set[asyncio.Task[Any]] = set()

    async def on_stop(self) -> None:
        """Let queued emails finish before shutdown."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks)

    def reset_url(self, token: str, user_type: UserType) -> str:
        query = urlencode({"token": token, "type": user_type.value})
        return f"{self.config.frontend_url.rstrip('/')}/reset-password?{query}"

    def queue_password_reset(self, user: ResetUserInfo, token: str, user_type: UserType) -> None:
        """Send the reset email in the background.

        The caller returns without waiting for SMTP, so answering a reset
        request takes the same time whether or not the account exists.
        """
        task = asyncio.create_task(self.send_password_reset(user, token, user_type))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def send_password_reset(self, user: ResetUserInfo, token: str, user_type: UserType) -> bool:
        """Email the reset link; False when delivery failed."""
        body = (
            f"Hello {user.name},\n\n"
            "We received a request to reset the password of your FitClub account.\n"
            f"Open the link below within {self.config.reset_token_ttl_minutes} minutes to choose a new password:\n\n"
            f"{self.reset_url(token, user_type)}\n\n"
            "If you did not request a reset, you can ignore this email.\n"
        )
        sent, error = await send_email(self.config, user.email, "FitClub password reset", body)
        if not sent:
            logger.warning("password_reset_email_failed", user_id=str(user.id), error=error)
        return sent
