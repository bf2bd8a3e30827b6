"""
Unit Tests for Health Check Endpoints.

Tests the health check functionality including:
- Liveness check (/health)
- Readiness check (/health/ready)
- Database connectivity check
"""

import asyncio

import pytest
from fastapi import HTTPException
from unittest.mock import AsyncMock, MagicMock, patch

from modules.backend.api.health import check_database, health_check, readiness_check


def engine_for(connection):
    engine = MagicMock()
    engine.connect.return_value.__aenter__ = AsyncMock(return_value=connection)
    engine.connect.return_value.__aexit__ = AsyncMock(return_value=False)
    return engine


class TestHealthCheck:
    """Tests for the liveness health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_healthy(self):
        """Should return healthy status."""
        assert await health_check() == {"status": "healthy"}


class TestCheckDatabase:
    """Tests for the database health check function."""

    @pytest.mark.asyncio
    async def test_returns_healthy_on_successful_query(self):
        connection = AsyncMock()

        with patch(
            "modules.backend.api.health.get_engine",
            return_value=engine_for(connection),
        ):
            result = await check_database()

        assert result["status"] == "healthy"
        assert "latency_ms" in result
        connection.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_returns_unhealthy_on_connection_error(self):
        connection = AsyncMock()
        connection.execute.side_effect = ConnectionRefusedError("refused")

        with patch(
            "modules.backend.api.health.get_engine",
            return_value=engine_for(connection),
        ):
            result = await check_database()

        assert result == {"status": "unhealthy", "error": "refused"}


class TestReadinessCheck:
    """Tests for the readiness endpoint."""

    @pytest.mark.asyncio
    async def test_returns_healthy_when_database_healthy(self):
        with patch(
            "modules.backend.api.health.check_database",
            AsyncMock(return_value={"status": "healthy", "latency_ms": 1}),
        ):
            result = await readiness_check()

        assert result["status"] == "healthy"
        assert result["checks"]["database"]["status"] == "healthy"
        assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_raises_503_when_database_unhealthy(self):
        with patch(
            "modules.backend.api.health.check_database",
            AsyncMock(return_value={"status": "unhealthy", "error": "refused"}),
        ):
            with pytest.raises(HTTPException) as exc_info:
                await readiness_check()

        assert exc_info.value.status_code == 503
        assert exc_info.value.detail["checks"]["database"]["error"] == "refused"

    @pytest.mark.asyncio
    async def test_raises_503_when_database_hangs(self):
        async def hang():
            await asyncio.sleep(10)

        app_config = MagicMock()
        app_config.application.timeouts.ready_check = 0.01

        with patch("modules.backend.api.health.check_database", hang), \
             patch("modules.backend.api.health.get_app_config", return_value=app_config):
            with pytest.raises(HTTPException) as exc_info:
                await readiness_check()

        assert exc_info.value.status_code == 503
        assert "timed out" in exc_info.value.detail["checks"]["database"]["error"]
