"""Redis-backed counter store.

Counters are plain integer keys with a Redis TTL, so every worker sharing
the same Redis instance enforces the same limits and expiry is handled by
Redis itself.
"""

from __future__ import annotations

import logging
from typing import Any

import redis

from tiered_ratelimit.adapters.counter_store.base import AbstractCounterStore
from tiered_ratelimit.core.errors import CounterStoreUnavailableError

logger = logging.getLogger(__name__)

# Redis TTL reply for a key that exists but has no expiry
_TTL_NO_EXPIRY = -1


class RedisCounterStore(AbstractCounterStore):
    """Counter store using Redis ``SET NX EX`` + ``INCR`` in a transaction.

    ``hit`` opens the window and increments inside one MULTI/EXEC block, so
    the returned count is the exact post-increment value even when many
    workers hit the same key at once.
    """

    def __init__(self, client: Any, *, key_prefix: str = "") -> None:
        """Initialize the store.

        Args:
            client: A ``redis.Redis`` client (or compatible object).
            key_prefix: Optional namespace prepended to every key.
        """
        self._client = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        socket_timeout: float = 0.5,
        key_prefix: str = "",
    ) -> "RedisCounterStore":
        """Build a store from a Redis URL with bounded socket timeouts."""

        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client, key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _unavailable(self, operation: str, exc: Exception) -> CounterStoreUnavailableError:
        logger.error(
            "counter_store.redis_error",
            extra={
                "operation": operation,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
            },
        )
        return CounterStoreUnavailableError(
            code="counter_store_unavailable",
            message="Rate limit counter store is unavailable",
            details={"backend": "redis", "context": {"operation": operation}},
        )

    def attempts(self, key: str) -> int:
        try:
            value = self._client.get(self._key(key))
        except redis.RedisError as exc:
            raise self._unavailable("attempts", exc) from exc
        return int(value) if value is not None else 0

    def hit(self, key: str, ttl_seconds: int) -> int:
        if not key:
            raise ValueError("key must be a non-empty string")
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        name = self._key(key)
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(name, 0, ex=ttl_seconds, nx=True)
            pipe.incr(name)
            pipe.ttl(name)
            _, count, ttl = pipe.execute()
            if ttl == _TTL_NO_EXPIRY:
                self._client.expire(name, ttl_seconds)
                logger.warning(
                    "counter_store.ttl_restored",
                    extra={"operation": "hit", "ttl_seconds": ttl_seconds},
                )
        except redis.RedisError as exc:
            raise self._unavailable("hit", exc) from exc
        return int(count)

    def available_in(self, key: str) -> int:
        """Return seconds left in the window.

        A counter without expiry can never reset, so it is dropped and 0 is
        returned; the next request opens a fresh window.
        """
        name = self._key(key)
        try:
            ttl = int(self._client.ttl(name))
            if ttl == _TTL_NO_EXPIRY:
                self._client.delete(name)
                logger.warning(
                    "counter_store.orphan_cleared",
                    extra={"operation": "available_in"},
                )
        except redis.RedisError as exc:
            raise self._unavailable("available_in", exc) from exc
        # -2: key missing
        return max(0, ttl)

    def clear(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as exc:
            raise self._unavailable("clear", exc) from exc
