"""Unit tests for the Redis counter store (Redis client mocked)."""

from unittest.mock import MagicMock, patch

import pytest
import redis

from tiered_ratelimit.adapters.counter_store.redis_store import RedisCounterStore
from tiered_ratelimit.core.errors import CounterStoreUnavailableError


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


def test_hit_opens_window_and_increments_in_one_transaction(client: MagicMock) -> None:
    pipe = client.pipeline.return_value
    pipe.execute.return_value = [True, 1, 60]
    store = RedisCounterStore(client, key_prefix="rl:")

    assert store.hit("public_rate_limit:auth:1.2.3.4:abcd1234", 60) == 1

    client.pipeline.assert_called_once_with(transaction=True)
    pipe.set.assert_called_once_with("rl:public_rate_limit:auth:1.2.3.4:abcd1234", 0, ex=60, nx=True)
    pipe.incr.assert_called_once_with("rl:public_rate_limit:auth:1.2.3.4:abcd1234")
    client.expire.assert_not_called()


def test_hit_returns_post_increment_count(client: MagicMock) -> None:
    client.pipeline.return_value.execute.return_value = [None, 7, 41]
    store = RedisCounterStore(client)

    assert store.hit("k", 60) == 7


def test_attempts_reads_integer_value(client: MagicMock) -> None:
    client.get.return_value = b"3"
    store = RedisCounterStore(client)

    assert store.attempts("k") == 3
    client.get.assert_called_once_with("k")


def test_attempts_missing_key_is_zero(client: MagicMock) -> None:
    client.get.return_value = None
    store = RedisCounterStore(client)

    assert store.attempts("k") == 0


@pytest.mark.parametrize("ttl, expected", [(42, 42), (-2, 0)])
def test_available_in_maps_redis_ttl(client: MagicMock, ttl: int, expected: int) -> None:
    client.ttl.return_value = ttl
    store = RedisCounterStore(client)

    assert store.available_in("k") == expected


def test_retries_left_uses_attempts(client: MagicMock) -> None:
    client.get.return_value = b"4"
    store = RedisCounterStore(client)

    assert store.retries_left("k", 10) == 6


def test_clear_deletes_key(client: MagicMock) -> None:
    store = RedisCounterStore(client, key_prefix="ns:")

    store.clear("k")

    client.delete.assert_called_once_with("ns:k")


def test_redis_errors_are_wrapped(client: MagicMock) -> None:
    client.get.side_effect = redis.ConnectionError("connection refused")
    client.pipeline.return_value.execute.side_effect = redis.TimeoutError("timeout")
    store = RedisCounterStore(client)

    with pytest.raises(CounterStoreUnavailableError) as exc_info:
        store.attempts("k")
    assert exc_info.value.code == "counter_store_unavailable"

    with pytest.raises(CounterStoreUnavailableError):
        store.hit("k", 60)


def test_from_url_applies_socket_timeouts() -> None:
    with patch("tiered_ratelimit.adapters.counter_store.redis_store.redis.Redis.from_url") as from_url:
        store = RedisCounterStore.from_url("redis://cache:6379/1", socket_timeout=0.25, key_prefix="x:")

    from_url.assert_called_once_with(
        "redis://cache:6379/1",
        socket_timeout=0.25,
        socket_connect_timeout=0.25,
    )
    assert store._client is from_url.return_value


def test_hit_restores_missing_expiry(client: MagicMock) -> None:
    client.pipeline.return_value.execute.return_value = [None, 9, -1]
    store = RedisCounterStore(client, key_prefix="rl:")

    assert store.hit("k", 60) == 9

    client.expire.assert_called_once_with("rl:k", 60)


def test_available_in_drops_counter_without_expiry(client: MagicMock) -> None:
    client.ttl.return_value = -1
    store = RedisCounterStore(client)

    assert store.available_in("k") == 0

    client.delete.assert_called_once_with("k")


def test_available_in_keeps_counter_with_expiry(client: MagicMock) -> None:
    client.ttl.return_value = 30
    store = RedisCounterStore(client)

    assert store.available_in("k") == 30

    client.delete.assert_not_called()
