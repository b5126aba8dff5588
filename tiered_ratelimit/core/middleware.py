"""HTTP middleware for request ID propagation and correlation.

The middleware:
- Accepts an incoming X-Request-ID header when it is a valid UUID,
  otherwise generates a new UUID4
- Binds request_id and client_ip to the log context for the request
- Injects request_id and total duration into response headers
- Clears the log context after completion to prevent context leaks

``rate_limit_headers_middleware`` copies the headers computed by the
throttle dependency onto the final response.

Usage:
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(rate_limit_headers_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from tiered_ratelimit.core.config import settings
from tiered_ratelimit.core.logging import bind_log_context, clear_log_context


def _valid_uuid(value: str | None) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.

    Example:
        >>> # Request arrives with a non-UUID id: "req-abc-123"
        >>> # Response carries a freshly generated UUID instead.
    """

    header_name = settings.log.request_id_header
    incoming = request.headers.get(header_name)
    request_id = incoming if _valid_uuid(incoming) else str(uuid.uuid4())

    bind_log_context(
        request_id=request_id,
        client_ip=request.client.host if request.client else None,
    )
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_log_context()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def rate_limit_headers_middleware(request: Request, call_next) -> Response:
    """Attach X-RateLimit-* headers computed by the throttle dependency.

    Applied here rather than on the endpoint's ``Response`` so that error
    responses (HTTPException, validation errors, AppError handlers) of a
    counted request carry the headers too.
    """

    response: Response = await call_next(request)
    headers = getattr(request.state, "rate_limit_headers", None) or {}
    for name, value in headers.items():
        response.headers.setdefault(name, value)
    return response
