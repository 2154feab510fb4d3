# ==============================================================================
# HEALTH ENDPOINT TESTS
# ==============================================================================
# Tests for root and health check endpoints
# ==============================================================================

import pytest
from httpx import AsyncClient


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_root_endpoint(self, client: AsyncClient):
        """Test root endpoint returns API info."""
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()

        assert "name" in data
        assert "version" in data
        assert data["health"] == "/health"

    @pytest.mark.asyncio
    async def test_health_endpoint(self, client: AsyncClient, adapter):
        """Test health endpoint reports the active backend."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["databaseStatus"] == "connected"
        assert "version" in data
        assert data["database"] == adapter.name

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, client: AsyncClient):
        response = await client.get("/api/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get("/", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
