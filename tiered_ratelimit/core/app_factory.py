"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability and separation of concerns compared to a monolithic main.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from tiered_ratelimit import __version__
from tiered_ratelimit.api.routes import (
    admin_router,
    authenticated_router,
    health_router,
    public_router,
)
from tiered_ratelimit.core.config import settings
from tiered_ratelimit.core.exception_handlers import setup_exception_handlers
from tiered_ratelimit.core.logging import configure_logging
from tiered_ratelimit.core.middleware import (
    rate_limit_headers_middleware,
    request_id_middleware,
)
from tiered_ratelimit.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Tiered Rate Limit API",
        description=(
            "HTTP API protected by tiered rate limiting: public routes are "
            "limited per client IP and user agent, authenticated routes per "
            "user and role (authenticated, premium, admin), and admin routes "
            "require the admin role. Every throttled response carries "
            "X-RateLimit-Limit, X-RateLimit-Remaining and X-RateLimit-Reset."
        ),
        version=__version__,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware
    app.middleware("http")(rate_limit_headers_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(public_router, prefix="/v1")
    app.include_router(authenticated_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "env": settings.app_env,
            "rate_limit_enabled": settings.rate_limits.enabled,
            "rate_limit_backend": settings.rate_limits.backend,
        },
    )
    return app
