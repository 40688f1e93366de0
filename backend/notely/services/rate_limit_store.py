"""
Notely Backend - Rate Limit Window Store Interface
===================================================

What:  Abstract contract for the key-value store behind the distributed
       fixed-window limiter, plus a single-process implementation.
How:   increment(key, window) atomically bumps the counter of the current
       fixed window for `key` and reports the count and when the window ends.
Who:   DistributedRateLimiter calls it; RedisWindowStore is the production
       implementation, InMemoryWindowStore serves tests and local development.

Window arithmetic (shared by every implementation):
    window_index = floor(now / window)
    reset_at     = (window_index + 1) * window

    The counter belongs to (key, window_index). When the clock crosses a
    boundary the next increment lands in a fresh bucket, so the count
    restarts at 1 without any explicit reset.
"""

import math
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Tuple


def window_bounds(now: float, window: int) -> Tuple[int, float]:
    """Return (window_index, reset_at) for a timestamp in epoch seconds."""
    index = math.floor(now / window)
    return index, float((index + 1) * window)


class WindowStore(ABC):
    """
    Contract:
        - increment() is atomic per key: concurrent callers never observe
          the same count for the same window
        - failures surface as RateLimitStoreError, never as a silent zero
    """

    @abstractmethod
    async def increment(self, key: str, window: int) -> Tuple[int, float]:
        """
        Count one request for `key` in the current window.

        Args:
            key:     Client-scoped key (already prefixed by the caller).
            window:  Window size in seconds.

        Returns:
            (count, reset_at): the count including this request, and the
            epoch-seconds timestamp at which the window rolls over.

        Raises:
            RateLimitStoreError: The backing store could not be reached.
        """
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """True if the store is reachable. Used by the health endpoint."""
        ...

    async def close(self) -> None:
        """Release connections. Called from the application lifespan."""
        return None


class InMemoryWindowStore(WindowStore):
    """
    Process-local WindowStore.

    Every process gets its own counters, so this does not enforce a quota
    across instances. Used by tests (with an injected clock) and when
    RATE_LIMIT_STORE=memory.
    """

    # Buckets older than the current window are pruned every N increments
    CLEANUP_EVERY = 1000

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._buckets: Dict[str, Tuple[int, int]] = {}
        self._increments = 0

    async def increment(self, key: str, window: int) -> Tuple[int, float]:
        index, reset_at = window_bounds(self._clock(), window)

        # No await between read and write: atomic under the event loop
        bucket_index, count = self._buckets.get(key, (index, 0))
        if bucket_index != index:
            count = 0
        count += 1
        self._buckets[key] = (index, count)

        self._increments += 1
        if self._increments % self.CLEANUP_EVERY == 0:
            self._prune(index)

        return count, reset_at

    async def ping(self) -> bool:
        return True

    def _prune(self, current_index: int) -> None:
        stale = [k for k, (idx, _) in self._buckets.items() if idx < current_index]
        for k in stale:
            del self._buckets[k]
