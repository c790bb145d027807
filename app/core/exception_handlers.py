"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses → status from ``ERROR_STATUS_CODES`` (400/401/403/404/429)
- RateLimitedError → 429 with the fixed ``{"error": "<message>"}`` body
- FastAPI request validation errors → 400 with normalized field messages
- Unexpected Exception → generic 500 (safety net)
- All structured responses include request_id for tracing
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ForbiddenAppError,
    NotFoundAppError,
    RateLimitedError,
    ValidationAppError,
)
from app.core.logging import get_request_id
from app.core.validation import normalize_validation_errors

logger = logging.getLogger(__name__)

# Checked in order; first matching type wins
ERROR_STATUS_CODES: tuple[tuple[type[AppError], int], ...] = (
    (RateLimitedError, 429),
    (AuthenticationAppError, 401),
    (ForbiddenAppError, 403),
    (NotFoundAppError, 404),
    (ValidationAppError, 400),
)


def status_code_for(exc: AppError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error_content: dict = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code.
    """
    status_code = status_code_for(exc)

    if isinstance(exc, RateLimitedError):
        # Clients key off this exact body; keep it free of the usual envelope
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "path": request.url.path,
        },
    )

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report body/path/query validation failures as 400 with field messages."""
    errors = normalize_validation_errors(exc.errors())
    logger.info(
        "request_validation_failed",
        extra={"path": request.url.path, "errors": errors},
    )
    return JSONResponse(
        status_code=400,
        content=_error_body(
            "validation_error",
            "request validation failed",
            {"errors": errors},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure with its traceback and returns a generic message; no
    implementation details reach the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
