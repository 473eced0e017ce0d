"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 429, 500, 502, 503)
- RequestValidationError → 400 (malformed body or wrong field types)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from code_commenter.core.config import settings
from code_commenter.core.errors import (
    AppError,
    ConfigurationAppError,
    LLMAppError,
    MalformedResponseAppError,
    QuotaAppError,
    RateLimitAppError,
    UpstreamAppError,
    ValidationAppError,
)
from code_commenter.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code.

    - ValidationAppError → 400 Bad Request
    - RateLimitAppError → 429 Too Many Requests (client budget)
    - QuotaAppError → 429 Too Many Requests (provider budget)
    - MalformedResponseAppError → 502 Bad Gateway
    - UpstreamAppError → 503 Service Unavailable
    - ConfigurationAppError / other LLMAppError → 500
    """
    if isinstance(exc, ValidationAppError):
        return 400
    if isinstance(exc, (RateLimitAppError, QuotaAppError)):
        return 429
    if isinstance(exc, MalformedResponseAppError):
        return 502
    if isinstance(exc, UpstreamAppError):
        return 503
    if isinstance(exc, (ConfigurationAppError, LLMAppError)):
        return 500
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error_content = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    # Include details only if present (optional structured context)
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "error_type": type(exc).__name__,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers = None
    if isinstance(exc, RateLimitAppError) and exc.headers:
        headers = exc.headers

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 for malformed bodies instead of FastAPI's default 422.

    Only field locations and error types are echoed back; submitted values
    are dropped so code snippets never appear in error bodies.
    """
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.append({"field": ".".join(loc) or "body", "type": error.get("type", "invalid")})

    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(fields),
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=400,
        content=_error_body(
            "invalid_request",
            "Missing or invalid fields in request body",
            {"context": {"fields": fields}},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs exception details outside production while returning a generic
    message. Prevents information leakage (no stack traces to client).
    """
    extra = {
        "error_type": type(exc).__name__,
        "request_path": request.url.path,
        "request_method": request.method,
        "request_id": get_request_id(),
    }
    if not settings.is_production:
        extra["error_msg"] = str(exc)
    logger.error("unhandled_exception", extra=extra)

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An error occurred while processing your request. Please try again.",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
