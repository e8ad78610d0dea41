import hashlib
import secrets
from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def generate_token() -> str:
    """Unguessable URL-safe token for session ids and reset links."""
    return secrets.token_urlsafe(32)


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
