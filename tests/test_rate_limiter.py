# ==============================================================================
# RATE LIMITER TESTS
# ==============================================================================
# Fixed window counters and the 429 middleware
# ==============================================================================

import asyncio

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from product_api.middleware.rate_limiter import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
)


def build_app(limiter: FixedWindowRateLimiter) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=limiter)

    @app.get("/ping")
    async def ping() -> dict:
        return {"ok": True}

    @app.get("/health")
    async def health() -> dict:
        return {"status": "healthy"}

    return app


class TestFixedWindowRateLimiter:
    """Tests for the counter map."""

    def test_capacity(self):
        limiter = FixedWindowRateLimiter(capacity=2, window_seconds=60)

        assert limiter.hit("a") == (True, 1, limiter.seconds_until_reset())
        assert limiter.hit("a")[:2] == (True, 0)
        assert limiter.hit("a")[:2] == (False, 0)

    def test_clients_are_independent(self):
        limiter = FixedWindowRateLimiter(capacity=1, window_seconds=60)

        assert limiter.hit("a")[0] is True
        assert limiter.hit("b")[0] is True
        assert limiter.hit("a")[0] is False

    def test_reset(self):
        limiter = FixedWindowRateLimiter(capacity=1, window_seconds=60)
        limiter.hit("a")

        limiter.reset()

        assert limiter.hit("a")[0] is True

    def test_retry_after_within_window(self):
        limiter = FixedWindowRateLimiter(capacity=1, window_seconds=60)
        assert 1 <= limiter.seconds_until_reset() <= 60

    @pytest.mark.asyncio
    async def test_reset_loop(self):
        limiter = FixedWindowRateLimiter(capacity=1, window_seconds=0)
        limiter.hit("a")
        assert limiter.hit("a")[0] is False

        task = asyncio.create_task(limiter.run_reset_loop())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert limiter.hit("a")[0] is True


class TestRateLimitMiddleware:
    """Tests for the HTTP layer of rate limiting."""

    @pytest.mark.asyncio
    async def test_rejects_over_capacity(self):
        app = build_app(FixedWindowRateLimiter(capacity=2, window_seconds=900))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            first = await client.get("/ping")
            second = await client.get("/ping")
            third = await client.get("/ping")

        assert first.status_code == 200
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert second.status_code == 200

        assert third.status_code == 429
        assert int(third.headers["Retry-After"]) >= 1
        body = third.json()
        assert body["success"] is False
        assert body["error"]["code"] == "RATE_LIMIT_EXCEEDED"

    @pytest.mark.asyncio
    async def test_health_is_never_throttled(self):
        app = build_app(FixedWindowRateLimiter(capacity=1, window_seconds=900))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            responses = [await client.get("/health") for _ in range(3)]

        assert all(r.status_code == 200 for r in responses)

    @pytest.mark.asyncio
    async def test_forwarded_for_identifies_client(self):
        app = build_app(FixedWindowRateLimiter(capacity=1, window_seconds=900))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            a = await client.get("/ping", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})
            b = await client.get("/ping", headers={"X-Forwarded-For": "10.0.0.2"})
            again = await client.get("/ping", headers={"X-Forwarded-For": "10.0.0.1"})

        assert a.status_code == 200
        assert b.status_code == 200
        assert again.status_code == 429
