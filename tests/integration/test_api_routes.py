"""
tests/integration/test_api_routes.py

Integration tests for app.py and routes/api_routes.py.
Uses FastAPI's TestClient as a context manager so the lifespan starts and stops
cleanly for each test. Depends() providers are overridden with test doubles
backed by FakeProvider from conftest.py.
"""

from __future__ import annotations

import json

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from app import app
from dependencies import get_config_service, get_log_service, get_sync_service
from repositories.config_repository import ConfigRepository
from services.config_service import ConfigService
from services.log_service import LogService
from services.sync_service import SyncService
from settings import Settings

_DOCUMENT = {
    "account_id": "acct123",
    "tunnels": {"tunnel-1": {"zones": {"zone-a": {"records": {"sub.example.com": ["A"]}}}}},
}


@pytest.fixture()
def overrides(fake_provider):
    """Install dependency overrides backed by FakeProvider and an inline document."""

    def _sync_service(log_service: LogService = Depends(get_log_service)) -> SyncService:
        return SyncService(fake_provider, log_service, cycle_timeout=5.0)

    def _config_service() -> ConfigService:
        return ConfigService(ConfigRepository(Settings(app_config=json.dumps(_DOCUMENT))))

    app.dependency_overrides[get_sync_service] = _sync_service
    app.dependency_overrides[get_config_service] = _config_service
    yield fake_provider
    app.dependency_overrides.clear()


def test_health_endpoint_returns_ok():
    """GET /health must return {"status": "ok"} with HTTP 200."""
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_json_reports_scheduler_state():
    """GET /api/health/json reports ok and that the scheduler is disabled in tests."""
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/health/json")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "scheduler_running": False}


def test_status_is_null_before_first_cycle():
    """GET /api/status returns last_cycle=null until a cycle has run."""
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/status")
    assert response.status_code == 200
    assert response.json() == {"last_cycle": None}


def test_recent_logs_include_startup_entry():
    """GET /api/logs/recent returns the activity log, newest first."""
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/logs/recent", params={"limit": 5})
    assert response.status_code == 200
    messages = [e["message"] for e in response.json()]
    assert "Tunnel DNS sync started." in messages


def test_trigger_sync_runs_cycle_and_updates_status(overrides):
    """POST /api/sync reconciles immediately and the report shows up in /api/status."""
    overrides.add_connections("tunnel-1", "1.2.3.4")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/api/sync")
        status = client.get("/api/status").json()

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    (tunnel,) = body["tunnels"]
    assert tunnel["tunnel_id"] == "tunnel-1"
    assert tunnel["targets"][0]["created"] == ["1.2.3.4"]
    assert overrides.contents("zone-a", "sub.example.com", "A") == {"1.2.3.4"}
    assert status["last_cycle"]["tunnels"][0]["tunnel_id"] == "tunnel-1"


def test_trigger_sync_rejects_invalid_configuration(overrides):
    """POST /api/sync returns 422 and writes nothing when the document is invalid."""
    app.dependency_overrides[get_config_service] = lambda: ConfigService(
        ConfigRepository(Settings(app_config="{broken"))
    )

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/api/sync")

    assert response.status_code == 422
    assert overrides.events == []


def test_trigger_sync_without_token_is_unavailable(monkeypatch):
    """Without CLOUDFLARE_API_TOKEN the manual trigger answers 503."""
    monkeypatch.delenv("CLOUDFLARE_API_TOKEN", raising=False)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/api/sync")

    assert response.status_code == 503
