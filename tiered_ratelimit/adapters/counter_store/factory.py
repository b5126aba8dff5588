"""Factory for creating counter store instances."""

from __future__ import annotations

from tiered_ratelimit.adapters.counter_store.base import AbstractCounterStore
from tiered_ratelimit.adapters.counter_store.in_memory import InMemoryCounterStore
from tiered_ratelimit.adapters.counter_store.redis_store import RedisCounterStore
from tiered_ratelimit.core.config import RateLimitSettings, settings
from tiered_ratelimit.core.errors import ValidationAppError


def create_counter_store(rate_limit_settings: RateLimitSettings | None = None) -> AbstractCounterStore:
    """Instantiate the counter store selected by configuration.

    Args:
        rate_limit_settings: Optional settings; defaults to global settings.

    Returns:
        AbstractCounterStore: Configured store instance.

    Raises:
        ValidationAppError: If the configured backend is unknown.
    """
    cfg = rate_limit_settings or settings.rate_limits
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryCounterStore()

    if backend == "redis":
        return RedisCounterStore.from_url(
            cfg.redis_url,
            socket_timeout=cfg.redis_socket_timeout,
            key_prefix=cfg.key_prefix,
        )

    raise ValidationAppError(
        code="rate_limit_unknown_backend",
        message=(
            f"Unknown counter store backend: '{backend}'. Supported backends: memory, redis"
        ),
        details={"backend": backend},
    )
