"""Tests for health check endpoints."""

from httpx import AsyncClient


class TestHealthEndpoint:
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Liveness probe returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": None}


class TestReadyEndpoint:
    async def test_ready_with_database(self, client: AsyncClient) -> None:
        """Readiness probe reports the cache database as connected."""
        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["database"] == "connected"
