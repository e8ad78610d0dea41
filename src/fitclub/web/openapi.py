from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

# Endpoints that work without a session
PUBLIC_ENDPOINTS = {
    ("POST", "/api/v1/auth/login"),
    ("POST", "/api/v1/auth/register"),
    ("GET", "/api/v1/auth/check"),
    ("POST", "/api/v1/auth/password-reset/request"),
    ("GET", "/api/v1/auth/password-reset/verify"),
    ("POST", "/api/v1/auth/password-reset/confirm"),
    ("GET", "/health"),
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="FitClub API",
            version="0.1.0",
            summary="Fitness club accounts, sessions and password recovery",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Bearer session token (preferred)",
            },
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "session_id",
                "description": "Session token stored in cookie",
            },
        }

        # Apply security globally, public endpoints opt out below
        openapi_schema["security"] = [
            {"BearerAuth": []},
            {"SessionCookie": []},
        ]

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PUBLIC_ENDPOINTS:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid email or password", "type": "authentication_error"},
                {"message": "Token has expired, please request a new one", "type": "expired_token"},
                {"message": "Admin privileges required", "type": "access_denied"},
            ]
        }
    }
