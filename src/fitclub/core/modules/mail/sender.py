"""Email delivery over SMTP."""

import asyncio
import smtplib
from email.message import EmailMessage

import structlog

from fitclub.config import Config

logger = structlog.get_logger(__name__)


def _deliver(config: Config, message: EmailMessage) -> None:
    if config.smtp_host is None:
        return
    with smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=30) as server:
        server.starttls()
        if config.smtp_user and config.smtp_password:
            server.login(config.smtp_user, config.smtp_password)
        server.send_message(message)


async def send_email(config: Config, to: str, subject: str, body: str) -> tuple[bool, str | None]:
    """Send a plain-text email.

    When SMTP is not configured the message is only logged, which is the
    expected setup for local development.

    Returns:
        Tuple of (success: bool, error_message: str | None)
        - (True, None) on success
        - (False, error_message) on failure
    """
    if config.smtp_host is None:
        logger.info("email_not_sent_smtp_disabled", to=to, subject=subject)
        return True, None

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = config.smtp_from
    message["To"] = to
    message.set_content(body)

    try:
        await asyncio.to_thread(_deliver, config, message)
    except (smtplib.SMTPException, OSError) as e:
        error_msg = str(e)
        logger.exception("email_send_failed", to=to, error=error_msg)
        return False, error_msg
    else:
        logger.debug("email_sent", to=to, subject=subject)
        return True, None
