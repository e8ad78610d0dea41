from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from fitclub.app import App
from fitclub.core.modules.session.models import SessionToken
from fitclub.errors import AuthenticationError

SESSION_COOKIE = "session_id"

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_optional_auth_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> SessionToken | None:
    """Read the session token from Authorization Bearer header or cookie, without validating it."""
    if credentials and credentials.scheme == "Bearer":
        return SessionToken(credentials.credentials)
    if token_cookie:
        return SessionToken(token_cookie)
    return None


async def get_auth_token(
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> SessionToken:
    """Get and validate session token from Authorization Bearer header or cookie."""

    # Check Bearer token first (preferred)
    if credentials and credentials.scheme == "Bearer":
        auth_token = SessionToken(credentials.credentials)
        if app.is_auth_token_valid(auth_token):
            return auth_token

    # Fallback to cookie
    if token_cookie:
        auth_token = SessionToken(token_cookie)
        if app.is_auth_token_valid(auth_token):
            return auth_token

    raise AuthenticationError


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthTokenDep = Annotated[SessionToken, Depends(get_auth_token)]
OptionalAuthTokenDep = Annotated[SessionToken | None, Depends(get_optional_auth_token)]
