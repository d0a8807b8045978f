"""Fixed-window request counters keyed by caller identity.

Redis backs the counters when it is reachable at startup; otherwise an
in-process table is used. A Redis failure during a single hit also falls
back to the in-process table for that hit.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

import redis

from backoffice.core.config import settings

_LOG = logging.getLogger("backoffice.rate_limit")

KEY_PREFIX = "backoffice:rl:"


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    retry_after_seconds: int
    count: int


class RateLimiter(Protocol):
    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        ...


def _window(window_seconds: int) -> int:
    return max(int(window_seconds), 1)


class InMemoryRateLimiter:
    def __init__(self):
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = Lock()

    def _prune(self, now: float) -> None:
        expired = [key for key, (_, ends_at) in self._windows.items() if ends_at <= now]
        for key in expired:
            del self._windows[key]

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        now = time.monotonic()
        with self._lock:
            self._prune(now)
            count, ends_at = self._windows.get(key, (0, now + _window(window_seconds)))
            count += 1
            self._windows[key] = (count, ends_at)
        retry_after = max(1, int(ends_at - now))
        return RateLimitResult(allowed=count <= limit, retry_after_seconds=retry_after, count=count)


class RedisRateLimiter:
    def __init__(self, client: redis.Redis, *, fallback: InMemoryRateLimiter | None = None):
        self.client = client
        self.fallback = fallback or InMemoryRateLimiter()

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        window = _window(window_seconds)
        redis_key = KEY_PREFIX + key
        try:
            pipe = self.client.pipeline()
            pipe.incr(redis_key)
            pipe.ttl(redis_key)
            count, ttl = pipe.execute()
            if int(ttl) < 0:
                self.client.expire(redis_key, window)
                ttl = window
        except redis.RedisError:
            _LOG.warning("redis rate limit hit failed; counting in memory key=%s", key)
            return self.fallback.hit(key, limit=limit, window_seconds=window)
        return RateLimitResult(allowed=int(count) <= limit, retry_after_seconds=int(ttl), count=int(count))


_cached_limiter: RateLimiter | None = None


def _build_limiter() -> RateLimiter:
    try:
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=0.4,
            socket_connect_timeout=0.4,
        )
        client.ping()
    except (redis.RedisError, ValueError):
        _LOG.warning("Redis limiter unavailable; fallback to in-memory limiter")
        return InMemoryRateLimiter()
    return RedisRateLimiter(client)


def get_rate_limiter() -> RateLimiter:
    global _cached_limiter
    if _cached_limiter is None:
        _cached_limiter = _build_limiter()
    return _cached_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    global _cached_limiter
    _cached_limiter = limiter


def hit_forgot_password(email: str) -> RateLimitResult:
    return get_rate_limiter().hit(
        f"forgot-password:{email}",
        limit=settings.FORGOT_PASSWORD_RATE_LIMIT,
        window_seconds=settings.FORGOT_PASSWORD_RATE_WINDOW_SECONDS,
    )
