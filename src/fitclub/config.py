from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = "mongodb://localhost:27017/fitclub"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3100
    debug: bool = False
    cors_origins: list[str] = []
    forwarded_allow_ips: str = "127.0.0.1"  # Proxies trusted for X-Forwarded-For
    frontend_url: str = "http://localhost:3000"  # Used to build password reset links
    session_max_age_days: int = 7
    session_cookie_secure: bool = False  # Set to True in production with HTTPS
    reset_token_ttl_minutes: int = 60
    # Return raw reset tokens in API responses. Development and tests only.
    expose_reset_token: bool = False
    bcrypt_rounds: int = 12
    # Bootstrap super-admin, created on startup when both are set
    admin_email: str | None = None
    admin_password: str | None = None
    # SMTP delivery; when smtp_host is unset emails are only logged
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from: str = "noreply@fitclub.local"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "FITCLUB_",
        "extra": "ignore",
    }
