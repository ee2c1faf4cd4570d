from contextlib import asynccontextmanager
from unittest.mock import patch

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from common.core.config import settings


@asynccontextmanager
async def unreachable_session(readonly: bool = False):
    raise OperationalError("SELECT 1", {}, ConnectionRefusedError("refused"))
    yield


class TestHealthEndpoints:
    """Integration tests for health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Test health check endpoint."""
        response = await client.get("/api/v1/health/")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": settings.app_name}

    async def test_db_health_check(self, client: AsyncClient):
        """Test database health check endpoint."""
        response = await client.get("/api/v1/health/db")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["latency_ms"] >= 0

    async def test_db_health_check_unreachable(self, client: AsyncClient):
        """Database outage is reported as 503."""
        with patch("api.v1.routes.health.get_session", unreachable_session):
            response = await client.get("/api/v1/health/db")

        assert response.status_code == 503
        assert response.json() == {"status": "unhealthy", "database": "disconnected"}
