"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from tiered_ratelimit.adapters.counter_store.base import AbstractCounterStore

logger = logging.getLogger(__name__)


@dataclass
class _CounterState:
    count: int
    window_started_at: float
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store holding attempt counters in a process-local dict.

    Expired counters are dropped lazily when their key is touched, and a
    full sweep runs at most once every ``sweep_interval_seconds`` so keys
    that are never seen again do not accumulate.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits. Use the Redis store for shared limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: int = 60,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_interval_seconds: Minimum delay between full expiry sweeps.

        Raises:
            ValueError: If sweep_interval_seconds is invalid.
        """
        if sweep_interval_seconds < 1:
            raise ValueError("sweep_interval_seconds must be >= 1")

        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.RLock()
        self._counters: dict[str, _CounterState] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)

    def _get_live_locked(self, key: str, now: float) -> _CounterState | None:
        state = self._counters.get(key)
        if state is not None and state.expires_at <= now:
            del self._counters[key]
            return None
        return state

    def _sweep_locked(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return

        expired = [k for k, s in self._counters.items() if s.expires_at <= now]
        for key in expired:
            del self._counters[key]
        self._last_sweep = now

        if expired:
            logger.debug(
                "counter_store.sweep",
                extra={"expired": len(expired), "size": len(self._counters)},
            )

    def attempts(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            state = self._get_live_locked(key, now)
            return state.count if state else 0

    def hit(self, key: str, ttl_seconds: int) -> int:
        """Increment the counter for key, opening a window on first hit.

        Raises:
            ValueError: If key is empty or ttl_seconds is invalid.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        now = self._clock()
        with self._lock:
            self._sweep_locked(now)
            state = self._get_live_locked(key, now)
            if state is None:
                state = _CounterState(
                    count=0,
                    window_started_at=now,
                    expires_at=now + ttl_seconds,
                )
                self._counters[key] = state
            state.count += 1
            return state.count

    def available_in(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            state = self._get_live_locked(key, now)
            if state is None:
                return 0
            return max(0, int(math.ceil(state.expires_at - now)))

    def clear(self, key: str) -> None:
        with self._lock:
            self._counters.pop(key, None)

    def reset(self) -> None:
        """Drop every counter."""

        with self._lock:
            self._counters.clear()
