"""Counter store adapters.

Rate limit gates depend on the abstract store only, so counters can live in
process memory for a single worker or in Redis when several workers share
the same limits.
"""

from tiered_ratelimit.adapters.counter_store.base import AbstractCounterStore
from tiered_ratelimit.adapters.counter_store.factory import create_counter_store
from tiered_ratelimit.adapters.counter_store.in_memory import InMemoryCounterStore
from tiered_ratelimit.adapters.counter_store.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]
