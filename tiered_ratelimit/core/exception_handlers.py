"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- Gate rejections keep the flat client contract:
  403 ``{error, message}``, 429 ``{error, message, retry_after, limit, type}``,
  503 ``{error, message, type}``
- Other AppError subclasses → ``{"error": {code, message, request_id}}``
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from tiered_ratelimit.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    CounterStoreUnavailableError,
    RateLimitExceededAppError,
)
from tiered_ratelimit.core.logging import get_request_id

logger = logging.getLogger(__name__)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededAppError) -> JSONResponse:
    """Render a 429 rejection with its Retry-After and X-RateLimit-* headers."""

    return JSONResponse(
        status_code=429,
        content=exc.body,
        headers=exc.headers or None,
    )


async def authorization_error_handler(request: Request, exc: AuthorizationAppError) -> JSONResponse:
    """Render a 403 when the caller lacks the role a gate requires."""

    logger.warning(
        "authorization_denied",
        extra={
            "error_code": exc.code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=403,
        content={"error": "Forbidden", "message": exc.message},
    )


async def store_unavailable_handler(request: Request, exc: CounterStoreUnavailableError) -> JSONResponse:
    """Render a 503 when a fail-closed tier cannot reach the counter store."""

    tier = (exc.details or {}).get("tier")
    content = {"error": "Service Unavailable", "message": exc.message}
    if tier:
        content["type"] = f"{tier}_rate_limit"
    return JSONResponse(status_code=503, content=content)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - AuthenticationAppError → 401 Unauthorized
    - Anything else (ValidationAppError, ...) → 400 Bad Request

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
    status_code = 400  # Default: client error
    if isinstance(exc, AuthenticationAppError):
        status_code = 401

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        }
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. Prevents information leakage (no stack traces to client).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Starlette dispatches on the most specific class in the exception's MRO,
    so the gate rejection handlers take precedence over the AppError one.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(RateLimitExceededAppError)(rate_limit_exceeded_handler)
    app.exception_handler(AuthorizationAppError)(authorization_error_handler)
    app.exception_handler(CounterStoreUnavailableError)(store_unavailable_handler)
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
