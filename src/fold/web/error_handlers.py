import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from fold.config import Config
from fold.errors import AuthenticationError, NotFoundError, RateLimitError, UpstreamError, UserError, ValidationError

logger = logging.getLogger(__name__)

REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def create_json_error_response(
    status_code: int,
    error: str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create the uniform ``{success: false, error, message?, details?}`` body."""
    content: dict[str, Any] = {"success": False, "error": error}
    if message is not None:
        content["message"] = message
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def flatten_validation_errors(errors: list[dict[str, Any]]) -> dict[str, Any]:
    """Group pydantic errors into form-level and per-field messages."""
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in REQUEST_LOCATIONS:
            loc = loc[1:]
        if loc:
            field_errors.setdefault(".".join(loc), []).append(error["msg"])
        else:
            form_errors.append(error["msg"])
    return {"formErrors": form_errors, "fieldErrors": field_errors}


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    # Determine the appropriate status code based on error
    if isinstance(exc, AuthenticationError):
        status_code = 401
    elif isinstance(exc, RateLimitError):
        status_code = 429
    elif isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, UpstreamError):
        status_code = 500
    else:
        # ValidationError and any other UserError subclass
        status_code = 400

    title = exc.title if isinstance(exc, UserError) else None
    details = exc.details if isinstance(exc, ValidationError) else None
    if title:
        return create_json_error_response(status_code, error=title, message=str(exc), details=details)
    return create_json_error_response(status_code, error=str(exc), details=details)


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Handle request body and parameter validation failures (400)."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    return create_json_error_response(400, error="Validation failed", details=flatten_validation_errors(list(errors)))


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle routing-level HTTP errors such as unknown routes."""
    if not isinstance(exc, StarletteHTTPException):
        return await general_exception_handler(request, exc)

    if exc.status_code == 404:
        return create_json_error_response(
            404, error="Not Found", message=f"Route {request.method} {request.url.path} not found"
        )
    return create_json_error_response(
        exc.status_code, error=HTTPStatus(exc.status_code).phrase, message=str(exc.detail), headers=exc.headers
    )


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500). Details are hidden in production."""
    logger.exception("Unexpected error: %s", exc)
    config: Config = request.app.state.config
    message = "An unexpected error occurred" if config.is_production else str(exc)
    return create_json_error_response(500, error="Internal Server Error", message=message)
