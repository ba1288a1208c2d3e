"""
Pytest tests for the fixed-window rate limiters (in-memory and Redis-backed).
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import redis

from alphiq_backend.api_server.rate_limit import (
    InMemoryRateLimiter,
    RedisRateLimiter,
    build_rate_limiter,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakePipeline:
    """Buffers SET/INCR and applies them together on execute, like MULTI/EXEC."""

    def __init__(self, server: FakeRedis) -> None:
        self.server = server
        self.commands: list[tuple] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc) -> bool:
        return False

    def set(self, key, value, px=None, nx=False):
        self.commands.append(("set", key, value, px, nx))
        return self

    def incr(self, key):
        self.commands.append(("incr", key))
        return self

    async def execute(self) -> list:
        self.server.executions += 1
        if self.server.failures:
            self.server.failures -= 1
            raise redis.TimeoutError("timed out")
        return [self.server.apply(cmd) for cmd in self.commands]


class FakeRedis:
    """Counter store with millisecond expiries driven by FakeClock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.values: dict[str, int] = {}
        self.expires_at: dict[str, float] = {}
        self.failures = 0
        self.executions = 0

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        assert transaction
        return FakePipeline(self)

    def _evict(self, key: str) -> None:
        if key in self.expires_at and self.clock() * 1000 >= self.expires_at[key]:
            self.values.pop(key, None)
            self.expires_at.pop(key, None)

    def apply(self, cmd: tuple):
        key = cmd[1]
        self._evict(key)
        if cmd[0] == "set":
            _, _, value, px, nx = cmd
            if nx and key in self.values:
                return None
            self.values[key] = int(value)
            self.expires_at[key] = self.clock() * 1000 + px
            return True
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]


def _allow(limiter, key: str) -> bool:
    return asyncio.run(limiter.allow(key))


def test_fifth_request_allowed_sixth_rejected():
    limiter = InMemoryRateLimiter(5, 60, clock=FakeClock())
    results = [_allow(limiter, "1.2.3.4") for _ in range(6)]
    assert results == [True, True, True, True, True, False]


def test_keys_are_independent():
    limiter = InMemoryRateLimiter(1, 60, clock=FakeClock())
    assert _allow(limiter, "a") is True
    assert _allow(limiter, "a") is False
    assert _allow(limiter, "b") is True


def test_window_resets_after_expiry():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(2, 60, clock=clock)
    assert _allow(limiter, "ip")
    assert _allow(limiter, "ip")
    assert not _allow(limiter, "ip")
    clock.now += 60
    # still inside [start, start + window]
    assert not _allow(limiter, "ip")
    clock.now += 0.001
    assert _allow(limiter, "ip")
    assert _allow(limiter, "ip")
    assert not _allow(limiter, "ip")


def test_window_is_fixed_not_sliding():
    """Requests late in a window do not extend it."""
    clock = FakeClock()
    limiter = InMemoryRateLimiter(2, 60, clock=clock)
    assert _allow(limiter, "ip")
    clock.now += 59
    assert _allow(limiter, "ip")
    clock.now += 2
    assert _allow(limiter, "ip")


def test_invalid_limits_rejected():
    with pytest.raises(ValueError):
        InMemoryRateLimiter(0, 60)
    with pytest.raises(ValueError):
        InMemoryRateLimiter(5, 0)


def test_redis_limiter_sets_expiry_and_counts_in_one_transaction():
    clock = FakeClock()
    server = FakeRedis(clock)
    limiter = RedisRateLimiter(5, 60, client=server, prefix="test")

    results = [_allow(limiter, "1.2.3.4") for _ in range(6)]

    assert results == [True, True, True, True, True, False]
    assert server.values["test:1.2.3.4"] == 6
    assert server.expires_at["test:1.2.3.4"] == 1000 * 1000 + 60000


def test_redis_limiter_window_resets_after_expiry():
    clock = FakeClock()
    server = FakeRedis(clock)
    limiter = RedisRateLimiter(1, 60, client=server, prefix="test")
    assert _allow(limiter, "ip") is True
    assert _allow(limiter, "ip") is False
    clock.now += 60
    assert _allow(limiter, "ip") is True


def test_redis_limiter_fails_open():
    client = MagicMock()
    client.pipeline.side_effect = redis.ConnectionError("down")
    limiter = RedisRateLimiter(1, 60, client=client)
    assert _allow(limiter, "ip") is True
    assert _allow(limiter, "ip") is True


def test_redis_timeout_never_leaves_counter_without_expiry():
    clock = FakeClock()
    server = FakeRedis(clock)
    server.failures = 1
    limiter = RedisRateLimiter(5, 60, client=server, prefix="test")

    results = [_allow(limiter, "ip") for _ in range(7)]

    assert results == [True, True, True, True, True, True, False]
    assert server.executions == 7
    assert "test:ip" in server.expires_at
    clock.now += 60
    assert _allow(limiter, "ip") is True


def test_build_rate_limiter_selects_backend():
    assert isinstance(build_rate_limiter(5, 60), InMemoryRateLimiter)
    limiter = build_rate_limiter(5, 60, redis_url="redis://localhost:6379/0", name="ai")
    assert isinstance(limiter, RedisRateLimiter)
