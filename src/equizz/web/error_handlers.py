import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from equizz.errors import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    StoreUnavailableError,
    UserError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(
    status_code: int, message: str, error_type: str, code: str, **hints: bool
) -> JSONResponse:
    """Create JSON error response with type and code for machine parsing."""
    content: dict[str, Any] = {"message": message, "type": error_type, "code": code}
    content.update({key: True for key, value in hints.items() if value})
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    code = exc.code if isinstance(exc, UserError) else "BAD_REQUEST"
    if isinstance(exc, AuthenticationError):
        return create_json_error_response(
            401,
            str(exc),
            "authentication_error",
            code,
            requiresRefresh=exc.requires_refresh,
            requiresLogin=exc.requires_login,
        )
    if isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code, str(exc), error_type, code)


async def store_error_handler(request: Request, exc: Exception) -> Response:
    """Persistence failures (503). The driver message stays in the logs."""
    logger.error("Store unavailable on %s: %s", request.url.path, exc)
    return create_json_error_response(
        503, "Service temporarily unavailable", "store_unavailable", StoreUnavailableError.code
    )


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        500, "An unexpected error occurred.", "internal_server_error", "INTERNAL_ERROR"
    )


async def request_validation_handler(_: Request, exc: Exception) -> Response:
    """Malformed request bodies are reported like any other validation error (400)."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}" for error in errors
    )
    return create_json_error_response(
        400, message or "Invalid request", "validation_error", ValidationError.code
    )
