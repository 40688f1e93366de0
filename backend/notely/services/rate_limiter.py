"""
Notely Backend - Fixed-Window Rate Limiters
============================================

What:  The two admission-control state machines placed in front of the API.
How:   Both count requests in fixed windows and answer admitted/rejected;
       they differ in scope and storage.
Who:   Constructed once by create_app() and handed to the rate-limit
       middleware by reference.

    ┌──────────────────────────┬──────────────────────────────────────┐
    │ DistributedRateLimiter   │ LocalRateLimiter                     │
    ├──────────────────────────┼──────────────────────────────────────┤
    │ one counter per client   │ one counter for the whole process    │
    │ WindowStore (Redis)      │ limits MemoryStorage                 │
    │ default 10 / 60 s        │ default 25 / 6000 s                  │
    │ shared across instances  │ per process                          │
    └──────────────────────────┴──────────────────────────────────────┘

State machine (both limiters):
    admitted ──(count > limit in active window)──▶ rejected
    rejected ──(window boundary passes)──────────▶ admitted

    Fixed windows reset abruptly, so up to 2x the nominal rate can pass
    across a boundary.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from limits import RateLimitItemPerSecond
from limits.aio.storage import MemoryStorage
from limits.aio.strategies import FixedWindowRateLimiter

from notely.services.rate_limit_store import WindowStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """
    Outcome of one DistributedRateLimiter.limit() call.

    Attributes:
        success:   Whether the request is admitted.
        limit:     Max requests per window.
        remaining: Requests left in the current window (0 when rejected).
        reset:     UNIX epoch milliseconds at which the window rolls over.
    """

    success: bool
    limit: int
    remaining: int
    reset: int

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window resets, at least 1."""
        return max(1, math.ceil(self.reset / 1000 - now))


class DistributedRateLimiter:
    """
    Per-client fixed-window limiter over an injected WindowStore.

    Store errors (RateLimitStoreError) propagate unchanged; the caller
    decides how to surface them. The limiter never admits a request it
    could not count.
    """

    def __init__(
        self,
        store: WindowStore,
        limit: int = 10,
        window: int = 60,
        prefix: str = "notely:ratelimit",
        clock: Callable[[], float] = time.time,
    ):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window < 1:
            raise ValueError("window must be >= 1")
        self.store = store
        self.limit_value = limit
        self.window = window
        self.prefix = prefix
        self.clock = clock

    async def limit(self, client_id: str) -> RateLimitResult:
        count, reset_at = await self.store.increment(
            f"{self.prefix}:{client_id}", self.window
        )
        return RateLimitResult(
            success=count <= self.limit_value,
            limit=self.limit_value,
            remaining=max(0, self.limit_value - count),
            reset=int(reset_at * 1000),
        )


@dataclass(frozen=True)
class LocalRateLimitResult:
    """
    Outcome of one LocalRateLimiter.hit() call.

    Attributes:
        allowed:   Whether the request is admitted.
        limit:     Max requests per window.
        remaining: Requests left in the current window.
        reset_at:  UNIX epoch seconds at which the window rolls over.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float


class LocalRateLimiter:
    """
    Process-wide fixed-window limiter.

    Every caller shares the single GLOBAL_KEY counter. State lives in the
    `limits` in-memory storage owned by this instance, so two instances
    never share a quota.
    """

    GLOBAL_KEY = "global"

    def __init__(
        self,
        max_requests: int = 25,
        window: int = 6000,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window < 1:
            raise ValueError("window must be >= 1")
        self.max_requests = max_requests
        self.window = window
        self._item = RateLimitItemPerSecond(max_requests, window)
        self._storage = MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    @property
    def policy(self) -> str:
        """RateLimit-Policy header value, e.g. '25;w=6000'."""
        return f"{self.max_requests};w={self.window}"

    async def hit(self) -> LocalRateLimitResult:
        allowed = await self._strategy.hit(self._item, self.GLOBAL_KEY)
        stats = await self._strategy.get_window_stats(self._item, self.GLOBAL_KEY)
        return LocalRateLimitResult(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, stats.remaining),
            reset_at=stats.reset_time,
        )

    def seconds_until_reset(self, result: LocalRateLimitResult) -> int:
        return max(0, math.ceil(result.reset_at - time.time()))

    async def reset(self) -> None:
        """Drop the current window; the next hit starts a fresh count."""
        await self._storage.reset()
