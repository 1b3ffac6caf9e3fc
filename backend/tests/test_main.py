"""
Tests for wardmap.main — create_app, health endpoint and lifespan.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from wardmap.main import create_app


# ═══════════════════════════════════════════════════════════════════
# create_app
# ═══════════════════════════════════════════════════════════════════
class TestCreateApp:
    def test_returns_fastapi_instance(self):
        assert isinstance(create_app(), FastAPI)

    def test_app_title(self):
        assert create_app().title == "Wardmap"

    def test_app_version(self):
        assert create_app().version == "0.1.0"

    @staticmethod
    def _paths(app: FastAPI) -> list[str]:
        return list(app.openapi()["paths"])

    def test_routes_registered(self):
        paths = self._paths(create_app())
        assert "/api/wards" in paths
        assert "/api/wards/boundaries/simplified" in paths
        assert "/api/wards/at" in paths
        assert "/api/wards/{ward_id}" in paths
        assert "/api/wards/import" in paths
        assert "/health" in paths

    def test_static_routes_precede_ward_id(self):
        paths = self._paths(create_app())
        assert paths.index("/api/wards/at") < paths.index("/api/wards/{ward_id}")
        assert paths.index("/api/wards/boundaries/simplified") < paths.index("/api/wards/{ward_id}")


# ═══════════════════════════════════════════════════════════════════
# Health endpoint (no lifespan needed)
# ═══════════════════════════════════════════════════════════════════
class TestHealthEndpoint:
    @pytest.fixture()
    def client(self):
        app = create_app()

        @asynccontextmanager
        async def noop_lifespan(app):
            yield

        app.router.lifespan_context = noop_lifespan
        return TestClient(app)

    def test_health_returns_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": "Wardmap"}

    def test_cors_preflight(self, client):
        resp = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:8081",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.headers["access-control-allow-origin"] == "http://localhost:8081"


# ═══════════════════════════════════════════════════════════════════
# Lifespan
# ═══════════════════════════════════════════════════════════════════
class TestLifespan:
    def _make_mock_db_engine(self, version="3.4.0"):
        mock_db_engine = MagicMock()
        mock_conn = MagicMock()
        mock_result = MagicMock()
        mock_result.scalar.return_value = version
        mock_conn.execute = AsyncMock(return_value=mock_result)

        mock_ctx = AsyncMock()
        mock_ctx.__aenter__ = AsyncMock(return_value=mock_conn)
        mock_ctx.__aexit__ = AsyncMock(return_value=None)
        mock_db_engine.begin.return_value = mock_ctx
        mock_db_engine.dispose = AsyncMock()
        return mock_db_engine, mock_conn

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self):
        from wardmap.main import lifespan

        mock_db_engine, mock_conn = self._make_mock_db_engine()
        mock_init = AsyncMock()

        with (
            patch("wardmap.models.database.engine", mock_db_engine),
            patch("wardmap.models.database.init_models", mock_init),
        ):
            async with lifespan(FastAPI()):
                mock_conn.execute.assert_awaited_once()
                mock_init.assert_awaited_once()
                mock_db_engine.dispose.assert_not_awaited()

        mock_db_engine.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_startup_fails_without_database(self):
        from wardmap.main import lifespan

        mock_db_engine, mock_conn = self._make_mock_db_engine()
        mock_conn.execute.side_effect = OSError("connection refused")

        with patch("wardmap.models.database.engine", mock_db_engine):
            with pytest.raises(OSError):
                async with lifespan(FastAPI()):
                    pass
