"""Rate limiting dependencies for FastAPI routes.

This module wires the tiered gates into the HTTP layer.

Design goals:
- Minimal coupling: routes declare ``Depends(throttle(tier, endpoint_type))``.
- Swap-friendly: the counter store is selected by settings (memory/redis).
- Per-request policy: gates are rebuilt from current settings on each call,
  so a config change applies to the next request without resetting counters.

Rejections are raised as application errors and rendered by the global
exception handlers (403 forbidden, 429 too many requests, 503 when a
fail-closed tier cannot reach the counter store).
"""

from __future__ import annotations

import logging
import threading
from typing import Annotated, Callable

from fastapi import Header, Request

from tiered_ratelimit.adapters.counter_store import AbstractCounterStore, create_counter_store
from tiered_ratelimit.core.auth import lookup_principal
from tiered_ratelimit.core.config import settings
from tiered_ratelimit.core.errors import (
    AuthenticationAppError,
    AuthorizationAppError,
    CounterStoreUnavailableError,
    RateLimitExceededAppError,
)
from tiered_ratelimit.services.identity import UserPrincipal
from tiered_ratelimit.services.rate_limit_gate import (
    Forbidden,
    RateLimitGate,
    RequestContext,
    ServiceUnavailable,
    TooManyRequests,
    get_tier_config,
)

logger = logging.getLogger(__name__)


_store: AbstractCounterStore | None = None
_store_config: tuple[str, str, str] | None = None
_store_lock = threading.Lock()


def get_counter_store() -> AbstractCounterStore:
    """Return the process-wide counter store.

    The instance is cached in-module to preserve counters across requests.
    If the backend configuration changes (primarily in tests), the store is
    rebuilt. Dependencies run in the threadpool, so the rebuild is locked.

    Returns:
        AbstractCounterStore: Configured store instance.
    """

    global _store, _store_config

    cfg = settings.rate_limits
    config = (cfg.backend, cfg.redis_url, cfg.key_prefix)

    with _store_lock:
        if _store is None or _store_config != config:
            _store = create_counter_store(cfg)
            _store_config = config
            logger.info("rate_limit.store_initialized", extra={"backend": cfg.backend})

        return _store


def set_counter_store(store: AbstractCounterStore | None) -> None:
    """Replace the process-wide counter store (None rebuilds from settings)."""

    global _store, _store_config

    cfg = settings.rate_limits
    with _store_lock:
        _store = store
        _store_config = (cfg.backend, cfg.redis_url, cfg.key_prefix) if store is not None else None


def get_gate(tier: str) -> RateLimitGate:
    """Build the gate for ``tier`` from current settings and the shared store."""

    return RateLimitGate.from_settings(tier, get_counter_store(), settings.rate_limits)


def build_request_context(request: Request, principal: UserPrincipal | None) -> RequestContext:
    """Extract the attributes gates need from a FastAPI request."""

    return RequestContext(
        method=request.method,
        path=request.url.path,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        principal=principal,
    )


def throttle(tier: str, endpoint_type: str = "general") -> Callable[..., None]:
    """Create a FastAPI dependency enforcing the ``tier`` gate.

    The request is counted before an unknown API key is rejected, so
    callers cycling through bad keys still run into the limit. Computed
    headers are left on ``request.state`` for ``rate_limit_headers_middleware``
    to attach, whatever response the endpoint ends up producing.

    Args:
        tier: ``public``, ``authenticated`` or ``admin``.
        endpoint_type: Route group tag used for policy lookup.

    Returns:
        Dependency callable for ``Depends``.

    Raises:
        ValidationAppError: If the tier is unknown (at route definition time).
    """

    get_tier_config(tier)

    def enforce_rate_limit(
        request: Request,
        x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    ) -> None:
        auth_error: AuthenticationAppError | None = None
        try:
            principal = lookup_principal(x_api_key)
        except AuthenticationAppError as exc:
            principal, auth_error = None, exc

        gate = get_gate(tier)
        ctx = build_request_context(request, principal)

        if not settings.rate_limits.enabled:
            decision = gate.authorize(ctx)
        else:
            decision = gate.evaluate(ctx, endpoint_type)

        if isinstance(decision, Forbidden):
            raise auth_error or AuthorizationAppError(
                code="admin_required",
                message=decision.message,
                details={"tier": tier, "endpoint_type": endpoint_type},
            )

        headers = gate.headers_for(decision) if decision is not None else {}

        if isinstance(decision, TooManyRequests):
            raise RateLimitExceededAppError(
                code="rate_limit_exceeded",
                message=decision.message,
                details={
                    "tier": tier,
                    "endpoint_type": endpoint_type,
                    "limit": decision.policy.max_attempts,
                    "retry_after": decision.retry_after,
                },
                body=decision.body(),
                headers=headers,
            )

        if isinstance(decision, ServiceUnavailable):
            raise CounterStoreUnavailableError(
                code="counter_store_unavailable",
                message=decision.message,
                details={"tier": tier, "endpoint_type": endpoint_type},
            )

        request.state.rate_limit_headers = headers

        if auth_error is not None:
            raise auth_error

    enforce_rate_limit.__name__ = f"enforce_{tier}_{endpoint_type}_rate_limit"
    return enforce_rate_limit
