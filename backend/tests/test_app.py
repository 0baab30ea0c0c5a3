"""
DevCamper Backend — Application Wiring Tests
==============================================

Health check, middleware (request id, security headers, rate limit) and the
error envelope for routes that don't exist.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from app.middleware.rate_limit import RateLimitMiddleware


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["geocoder"] == "configured"
        assert body["version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_degraded_without_geocoder_key(self, client, fake_geocoder):
        fake_geocoder.configured = False

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["geocoder"] == "not_configured"


class TestMiddleware:

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/api/v1/bootcamps")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/api/v1/bootcamps", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"

    @pytest.mark.asyncio
    async def test_security_headers(self, client):
        response = await client.get("/api/v1/bootcamps")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, client):
        response = await client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestRateLimit:

    @staticmethod
    def _app(max_requests: int) -> Starlette:
        async def ok(request):
            return PlainTextResponse("ok")

        app = Starlette(routes=[Route("/", ok), Route("/health", ok)])
        app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=600)
        return app

    @pytest.mark.asyncio
    async def test_limit_exceeded(self):
        transport = ASGITransport(app=self._app(max_requests=3))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/")).status_code for _ in range(4)]
            blocked = await client.get("/")

        assert statuses == [200, 200, 200, 429]
        assert blocked.json() == {
            "success": False, "error": "Too many requests, please try again later",
        }
        assert int(blocked.headers["Retry-After"]) > 0

    @pytest.mark.asyncio
    async def test_health_is_not_limited(self):
        transport = ASGITransport(app=self._app(max_requests=1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(3)]

        assert statuses == [200, 200, 200]
