from __future__ import annotations

from tiered_ratelimit.api.routes.admin import router as admin_router
from tiered_ratelimit.api.routes.authenticated import router as authenticated_router
from tiered_ratelimit.api.routes.health import router as health_router
from tiered_ratelimit.api.routes.public import router as public_router

__all__ = ["admin_router", "authenticated_router", "health_router", "public_router"]
