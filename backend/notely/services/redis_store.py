"""
Notely Backend - Redis Window Store
====================================

What:  WindowStore backed by Redis, shared by every Notely process.
How:   INCR on `<key>:<window_index>` and PEXPIRE of one window, sent
       together in a MULTI/EXEC pipeline.
Who:   Built by create_app() when RATE_LIMIT_STORE=redis.
When:  Once per request that reaches the distributed limiter.

Key layout:
    notely:ratelimit:203.0.113.7:28512345
    └──── prefix ───┘└── client ┘└ index ┘

    The TTL only garbage-collects old buckets. Correctness comes from the
    window index in the key: a new window is a new key.

Failure mode:
    Connection errors, timeouts and server errors are re-raised as
    RateLimitStoreError. There is no retry and no fallback to "allow".
"""

import logging
import time
from typing import Callable, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from notely.config import Settings
from notely.exceptions import RateLimitStoreError
from notely.services.rate_limit_store import InMemoryWindowStore, WindowStore, window_bounds

logger = logging.getLogger(__name__)


class RedisWindowStore(WindowStore):
    """
    Fixed-window counters in Redis.

    Args:
        client: A redis.asyncio.Redis instance. Injected so tests can pass
                a mock and so the connection pool is owned by the app.
        clock:  Epoch-seconds time source used to pick the window index.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisWindowStore":
        """Build a store from REDIS_URL / REDIS_TOKEN and the timeout settings."""
        client = aioredis.from_url(
            settings.redis_url,
            password=settings.redis_token or None,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_connect_timeout,
            decode_responses=True,
        )
        return cls(client)

    async def increment(self, key: str, window: int) -> Tuple[int, float]:
        index, reset_at = window_bounds(self._clock(), window)
        bucket_key = f"{key}:{index}"

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(bucket_key)
                pipe.pexpire(bucket_key, window * 1000)
                count, _ = await pipe.execute()
        except (RedisError, OSError) as e:
            raise RateLimitStoreError(
                context={
                    "key": bucket_key,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            ) from e

        return int(count), reset_at

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.warning("Redis ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()


def build_window_store(settings: Settings) -> WindowStore:
    """
    Select the WindowStore implementation named by RATE_LIMIT_STORE.

    Raises:
        ValueError: Redis selected but REDIS_URL / REDIS_TOKEN missing.
                    Raised at startup so a misconfigured process never serves.
    """
    if settings.rate_limit_store == "memory":
        logger.warning(
            "Using in-memory rate limit store: quotas are NOT shared between processes"
        )
        return InMemoryWindowStore()

    settings.validate_required_for_production()
    return RedisWindowStore.from_settings(settings)
