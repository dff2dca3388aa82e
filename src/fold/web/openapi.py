from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from fold.config import Config

API_VERSION = "1.0.0"

# Routes reachable without a session
PUBLIC_ENDPOINTS = {
    ("GET", "/"),
    ("GET", "/health"),
    ("GET", "/test-login"),
    ("POST", "/api/auth/sign-up/email"),
    ("POST", "/api/auth/sign-in/email"),
    ("POST", "/api/auth/sign-in/social"),
    ("GET", "/api/auth/sign-in/{provider_id}"),
    ("GET", "/api/auth/callback/{provider_id}"),
    ("GET", "/api/auth/get-session"),
    ("GET", "/api/auth/session"),
    ("POST", "/api/auth/request-password-reset"),
    ("POST", "/api/auth/forget-password"),
    ("POST", "/api/auth/reset-password"),
    ("GET", "/api/auth/reset-password/{token}"),
}


def set_custom_openapi(app: FastAPI, config: Config) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Fold Backend API",
            version=API_VERSION,
            summary="Authentication, user profiles and file uploads for the Fold journaling app",
            routes=app.routes,
        )

        # Add security schemes
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Session token returned by sign-in (preferred for mobile clients)",
            },
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": config.session_cookie_name,
                "description": "Session token stored in an HttpOnly cookie",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [
            {"BearerAuth": []},
            {"SessionCookie": []},
        ]

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PUBLIC_ENDPOINTS:
                    # Mark as public endpoint (no security required)
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Short error title or message")
    message: str | None = Field(None, description="Human-readable details")
    details: dict[str, Any] | None = Field(None, description="Field-level validation errors")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"success": False, "error": "Unauthorized", "message": "Authentication required"},
                {"success": False, "error": "File not found"},
                {
                    "success": False,
                    "error": "Validation failed",
                    "details": {"formErrors": [], "fieldErrors": {"name": ["String should have at least 1 character"]}},
                },
            ]
        }
    }


class SuccessResponse(BaseModel):
    """Acknowledgement without a payload."""

    success: bool = True
    message: str | None = None


class DataResponse[T](BaseModel):
    """Success envelope carrying a payload."""

    success: bool = True
    message: str | None = None
    data: T
