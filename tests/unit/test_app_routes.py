"""Smoke tests for the assembled FastAPI app."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from propdesk import __version__
from propdesk.config import Settings
from propdesk.core import lifespan as lifespan_module
from propdesk.main import app


def test_health_without_database():
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": __version__,
        "database": "not_configured",
    }


def test_health_with_database():
    with patch("propdesk.main.get_db_pool", return_value=MagicMock()):
        response = TestClient(app).get("/health")

    assert response.json()["database"] == "connected"


def test_root():
    data = TestClient(app).get("/").json()
    assert data["service"] == "propdesk"


def test_account_routes_registered():
    paths = {route.path for route in app.routes}

    assert "/accounts/{number}/metrics" in paths
    assert "/accounts/metrics" in paths
    assert "/payouts/{payout_id}" in paths
    assert "/accounts/reset-expired" in paths


@pytest.mark.asyncio
async def test_lifespan_wires_in_memory_service_and_logs_bind_address():
    settings = Settings(
        _env_file=None,
        database_url=None,
        service_host="127.0.0.1",
        service_port=9001,
    )

    with (
        patch.object(lifespan_module, "get_settings", return_value=settings),
        patch.object(lifespan_module, "logger") as mock_logger,
    ):
        async with lifespan_module.lifespan(app):
            assert lifespan_module.get_db_pool() is None
            assert lifespan_module.get_account_service() is not None

        startup = mock_logger.info.call_args_list[0]
        assert startup.args[0] == "Starting propdesk"
        assert startup.kwargs["host"] == "127.0.0.1"
        assert startup.kwargs["port"] == 9001

    assert lifespan_module.get_account_service() is None
