"""Counter store interface.

Gates read and write attempt counters only through this abstraction so the
storage backend (process memory, Redis) can be swapped without touching the
decision logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCounterStore(ABC):
    """Interface for per-key attempt counters with TTL expiry.

    A counter is created by the first ``hit`` for a key and expires
    ``ttl_seconds`` after that first hit. Later hits in the same window
    increment the count without extending the window.
    """

    @abstractmethod
    def attempts(self, key: str) -> int:
        """Return the current attempt count for key (0 when absent or expired)."""
        raise NotImplementedError

    @abstractmethod
    def hit(self, key: str, ttl_seconds: int) -> int:
        """Atomically increment the counter for key.

        Args:
            key: Counter key.
            ttl_seconds: Window length applied when the counter is created.

        Returns:
            The count after the increment.
        """
        raise NotImplementedError

    @abstractmethod
    def available_in(self, key: str) -> int:
        """Return seconds until the counter window expires (0 if no window)."""
        raise NotImplementedError

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove the counter and its window for key."""
        raise NotImplementedError

    def retries_left(self, key: str, max_attempts: int) -> int:
        """Return how many attempts remain before max_attempts is reached.

        The value can be negative when concurrent hits pushed the counter
        past the limit; callers decide how to floor it.
        """
        return max_attempts - self.attempts(key)

    def too_many_attempts(self, key: str, max_attempts: int) -> bool:
        """Return True when the counter has reached max_attempts."""
        return self.attempts(key) >= max_attempts
