from fitclub.core.core import Service
from fitclub.core.modules.session.models import SessionToken, SessionUser
from fitclub.core.modules.user.models import ADMIN_ROLES
from fitclub.errors import AccessDeniedError


class AccessService(Service):
    def ensure_authenticated(self, auth_token: SessionToken) -> SessionUser:
        """Ensure the session is valid and return its user."""
        return self.core.services.session.get_authenticated_user(auth_token)

    def ensure_admin(self, auth_token: SessionToken) -> SessionUser:
        """Ensure the authenticated user is admin, raise AccessDeniedError if not."""
        user = self.core.services.session.get_authenticated_user(auth_token)
        if user.role not in ADMIN_ROLES:
            raise AccessDeniedError("Admin privileges required")
        return user
