"""
Fixed-window rate limiting per key (client IP).

The first request for a key opens a window [now, now + window) with count 1;
further requests inside the window are accepted until the count reaches
max_requests. A request after the window resets starts a new one.

Two backends behind the same allow(key) interface:
- InMemoryRateLimiter: process-local dict under a lock (single instance).
- RedisRateLimiter: shared counter on redis.asyncio, so every instance behind a
  load balancer sees the same count. SET NX PX and INCR run in one MULTI, so a
  counter never exists without its expiry. Fails open when Redis is unreachable.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

from alphiq_backend.alphiq_logging import get_logger

logger = get_logger(__name__)


class RateLimiter(ABC):
    """allow(key) returns True when the request is within the limit and records it."""

    def __init__(self, max_requests: int, window_sec: float) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_sec <= 0:
            raise ValueError("window_sec must be > 0")
        self.max_requests = max_requests
        self.window_sec = window_sec

    @abstractmethod
    async def allow(self, key: str) -> bool:
        ...


@dataclass
class _Window:
    count: int
    reset_at: float


class InMemoryRateLimiter(RateLimiter):
    def __init__(
        self,
        max_requests: int,
        window_sec: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(max_requests, window_sec)
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    async def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_sec)
                self._evict_expired(now)
                return True
            if window.count >= self.max_requests:
                return False
            window.count += 1
            return True

    def _evict_expired(self, now: float) -> None:
        """Drop closed windows so the map does not grow with every IP ever seen."""
        stale = [k for k, w in self._windows.items() if now > w.reset_at]
        for k in stale:
            del self._windows[k]


class RedisRateLimiter(RateLimiter):
    def __init__(
        self,
        max_requests: int,
        window_sec: float,
        client: Any,
        prefix: str = "alphiq:ratelimit",
    ) -> None:
        super().__init__(max_requests, window_sec)
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, max_requests: int, window_sec: float, prefix: str = "alphiq:ratelimit") -> RedisRateLimiter:
        client = redis.from_url(url, decode_responses=True, socket_timeout=3)
        return cls(max_requests, window_sec, client=client, prefix=prefix)

    async def allow(self, key: str) -> bool:
        redis_key = f"{self._prefix}:{key}"
        window_ms = int(self.window_sec * 1000)
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(redis_key, 0, px=window_ms, nx=True)
                pipe.incr(redis_key)
                _, count = await pipe.execute()
        except RedisError as e:
            logger.warning("rate_limit_redis_unavailable", key=redis_key, error=str(e))
            return True
        return int(count) <= self.max_requests


def build_rate_limiter(
    max_requests: int,
    window_sec: float,
    redis_url: str | None = None,
    name: str = "default",
) -> RateLimiter:
    """Redis-backed when redis_url is set, in-memory otherwise."""
    if redis_url:
        logger.info("rate_limiter_backend", name=name, backend="redis", max_requests=max_requests)
        return RedisRateLimiter.from_url(
            redis_url, max_requests, window_sec, prefix=f"alphiq:ratelimit:{name}"
        )
    logger.info("rate_limiter_backend", name=name, backend="memory", max_requests=max_requests)
    return InMemoryRateLimiter(max_requests, window_sec)
