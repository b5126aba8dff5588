"""Tests for counter store selection from settings."""

from unittest.mock import patch

import pytest

from tiered_ratelimit.adapters.counter_store import (
    InMemoryCounterStore,
    RedisCounterStore,
    create_counter_store,
)
from tiered_ratelimit.core.config import RateLimitSettings
from tiered_ratelimit.core.errors import ValidationAppError


def test_memory_backend() -> None:
    store = create_counter_store(RateLimitSettings(backend="memory"))
    assert isinstance(store, InMemoryCounterStore)


def test_redis_backend_uses_configured_url() -> None:
    cfg = RateLimitSettings(
        backend="redis",
        redis_url="redis://cache:6379/2",
        redis_socket_timeout=1.5,
        key_prefix="api:",
    )

    with patch.object(RedisCounterStore, "from_url") as from_url:
        store = create_counter_store(cfg)

    from_url.assert_called_once_with(
        "redis://cache:6379/2",
        socket_timeout=1.5,
        key_prefix="api:",
    )
    assert store is from_url.return_value


def test_unknown_backend_raises() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        create_counter_store(RateLimitSettings(backend="memcached"))

    assert exc_info.value.code == "rate_limit_unknown_backend"
