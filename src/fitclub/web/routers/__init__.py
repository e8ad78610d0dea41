from fitclub.web.routers.admin import router as admin_router
from fitclub.web.routers.auth import router as auth_router
from fitclub.web.routers.password_reset import router as password_reset_router
from fitclub.web.routers.profile import router as profile_router
from fitclub.web.routers.users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "password_reset_router",
    "profile_router",
    "users_router",
]
