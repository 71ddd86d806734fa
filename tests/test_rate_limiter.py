import time

import pytest
from fakeredis import FakeAsyncRedis, FakeServer
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from eduplatform.core.error_handlers import register_exception_handlers
from eduplatform.core.exceptions import RateLimitExceeded
from eduplatform.core.rate_limiter import MemoryRateLimiter, RedisRateLimiter, rate_limit


async def test_memory_limiter_blocks_after_limit():
    limiter = MemoryRateLimiter()

    for _ in range(3):
        await limiter.check("1.2.3.4:/login", max_requests=3, window=60)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await limiter.check("1.2.3.4:/login", max_requests=3, window=60)

    assert exc_info.value.status_code == 429
    assert 0 < int(exc_info.value.headers["Retry-After"]) <= 61


async def test_memory_limiter_keys_are_independent():
    limiter = MemoryRateLimiter()

    await limiter.check("a", max_requests=1)
    await limiter.check("b", max_requests=1)

    with pytest.raises(RateLimitExceeded):
        await limiter.check("a", max_requests=1)


async def test_rate_limit_dependency_returns_429():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/limited", dependencies=[Depends(rate_limit(max_requests=2))])
    async def limited():
        return {"ok": True}

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        responses = [await client.get("/limited") for _ in range(3)]

    assert [r.status_code for r in responses] == [200, 200, 429]
    assert responses[-1].json() == {"error": "Rate limit exceeded", "type": "RateLimitExceeded"}
    assert "retry-after" in responses[-1].headers


def redis_limiter(server: FakeServer) -> RedisRateLimiter:
    limiter = RedisRateLimiter("redis://localhost:6379/0")
    limiter.redis = FakeAsyncRedis(server=server, decode_responses=True)
    return limiter


async def test_redis_limiter_counts_in_fixed_window():
    limiter = redis_limiter(FakeServer())

    for _ in range(2):
        await limiter.check("1.2.3.4:/login", max_requests=2, window=60)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await limiter.check("1.2.3.4:/login", max_requests=2, window=60)

    assert 0 < int(exc_info.value.headers["Retry-After"]) <= 60
    keys = await limiter.redis.keys("ratelimit:1.2.3.4:/login:*")
    assert len(keys) == 1
    assert 0 < await limiter.redis.ttl(keys[0]) <= 60
    await limiter.close()


async def test_redis_limiter_shares_counters_between_instances():
    server = FakeServer()
    first, second = redis_limiter(server), redis_limiter(server)

    await first.check("5.6.7.8:/login", max_requests=1)

    with pytest.raises(RateLimitExceeded):
        await second.check("5.6.7.8:/login", max_requests=1)
    await second.check("other:/login", max_requests=1)

    await first.close()
    await second.close()


async def test_memory_limiter_forgets_idle_clients():
    limiter = MemoryRateLimiter(sweep_interval=0)
    limiter.requests["9.9.9.9:/old"] = [time.time() - 120]

    await limiter.check("1.1.1.1:/new", max_requests=5, window=60)

    assert "9.9.9.9:/old" not in limiter.requests
    assert "1.1.1.1:/new" in limiter.requests
