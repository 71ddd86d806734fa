# eduplatform/core/rate_limiter.py
"""Request rate limiting, process-local or shared through redis."""
from typing import Dict, List, Optional
import logging
import time

from fastapi import Request
import redis.asyncio as redis

from .config import settings
from .exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)


class MemoryRateLimiter:
    """Sliding-window limiter keeping timestamps in process memory.

    Counters are per process and reset on restart; use the redis backend
    when more than one instance serves traffic.
    """
    def __init__(self, sweep_interval: int = 60):
        self.requests: Dict[str, List[float]] = {}
        self.sweep_interval = sweep_interval
        self.last_sweep = time.time()

    def sweep(self, now: float, window: int):
        """Drop keys whose newest request has left the window."""
        stale = [key for key, stamps in self.requests.items() if not stamps or now - stamps[-1] >= window]
        for key in stale:
            del self.requests[key]
        self.last_sweep = now

    async def check(self, key: str, max_requests: int, window: int = 60):
        now = time.time()
        if now - self.last_sweep >= self.sweep_interval:
            self.sweep(now, window)

        # Clean old requests
        recent = [t for t in self.requests.get(key, []) if now - t < window]

        if len(recent) >= max_requests:
            self.requests[key] = recent
            retry_after = int(window - (now - recent[0])) + 1
            raise RateLimitExceeded(retry_after)

        recent.append(now)
        self.requests[key] = recent

    async def close(self):
        self.requests.clear()


class RedisRateLimiter:
    """Fixed-window limiter using INCR/EXPIRE so every instance shares counters."""
    def __init__(self, url: str):
        self.url = url
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        if not self.redis:
            self.redis = redis.from_url(self.url, encoding="utf-8", decode_responses=True)

    async def check(self, key: str, max_requests: int, window: int = 60):
        if not self.redis:
            await self.connect()

        bucket = int(time.time() // window)
        redis_key = f"ratelimit:{key}:{bucket}"

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, window)
            count, _ = await pipe.execute()

        if count > max_requests:
            retry_after = window - int(time.time()) % window
            raise RateLimitExceeded(retry_after)

    async def close(self):
        if self.redis:
            await self.redis.close()
            self.redis = None


def build_rate_limiter():
    if settings.rate_limit_backend == "redis":
        logger.info("Using redis rate limiter backend")
        return RedisRateLimiter(settings.redis_url)
    return MemoryRateLimiter()


rate_limiter = build_rate_limiter()


def rate_limit(max_requests: Optional[int] = None, window: int = 60):
    """FastAPI dependency limiting requests per client IP and path."""
    async def dependency(request: Request):
        client_ip = request.client.host if request.client else "unknown"
        key = f"{client_ip}:{request.url.path}"
        limit = max_requests or settings.rate_limit_per_minute
        await rate_limiter.check(key, limit, window)
    return dependency
