from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

# Routes reachable without an access token
PUBLIC_ENDPOINTS = {
    ("POST", "/api/auth/login"),
    ("POST", "/api/auth/register"),
    ("POST", "/api/auth/refresh"),
    ("GET", "/health"),
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="EQuizz API",
            version="0.1.0",
            summary="Anonymous course evaluation quizzes for students",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Short-lived access token, renewed with the refresh token",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [{"BearerAuth": []}]

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
    code: str = Field(..., description="Machine-readable error code")
    requires_refresh: bool | None = Field(None, alias="requiresRefresh", description="Retry after refreshing tokens")
    requires_login: bool | None = Field(None, alias="requiresLogin", description="Sign in again")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid credentials", "type": "authentication_error", "code": "INVALID_CREDENTIALS"},
                {
                    "message": "Token expired",
                    "type": "authentication_error",
                    "code": "TOKEN_EXPIRED",
                    "requiresRefresh": True,
                },
                {"message": "Quiz already submitted", "type": "validation_error", "code": "DUPLICATE_SUBMISSION"},
                {"message": "Admin privileges required", "type": "access_denied", "code": "ADMIN_REQUIRED"},
            ]
        }
    }


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str = Field(..., description="Human-readable result")
