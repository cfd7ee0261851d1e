"""
Tests for the HTTP API.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from catalog_sync.config import settings
from catalog_sync import dependencies
from catalog_sync.dependencies import get_sync_state
from catalog_sync.main import app
from catalog_sync.processor import SyncResult, SyncSummary


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "sync_api_token", "letmein")
    with TestClient(app) as test_client:
        yield test_client


AUTH = {"Authorization": "Bearer letmein"}


def test_health_needs_no_auth(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_requires_token(client):
    assert client.get("/api/sync/status").status_code == 401


def test_wrong_token_rejected(client):
    response = client.get("/api/sync/status", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_disabled_without_configured_token(client, monkeypatch):
    monkeypatch.setattr(settings, "sync_api_token", "")
    assert client.get("/api/sync/status", headers=AUTH).status_code == 503


def test_status_before_any_run(client):
    response = client.get("/api/sync/status", headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["running"] is False
    assert body["last_summary"] is None


def test_status_reports_last_summary(client):
    get_sync_state().last_result = SyncResult(summary=SyncSummary(), error=None)

    body = client.get("/api/sync/status", headers=AUTH).json()

    assert body["last_success"] is True
    assert body["last_summary"]["created"] == 0


def test_trigger_runs_sync_in_background(client, monkeypatch):
    async def fake_run_sync(config):
        return SyncResult(summary=SyncSummary(), error=None)

    monkeypatch.setattr("catalog_sync.routes.sync.run_sync", fake_run_sync)

    response = client.post("/api/sync", headers=AUTH)

    assert response.status_code == 202
    assert response.json()["success"] is True


def test_shutdown_waits_for_cancelled_sync():
    cleaned_up = []

    async def slow_sync():
        try:
            await asyncio.sleep(3600)
        finally:
            cleaned_up.append(True)

    async def start_and_shut_down():
        await dependencies.init_dependencies()
        state = dependencies.get_sync_state()
        state.task = asyncio.create_task(slow_sync())
        await asyncio.sleep(0)
        await dependencies.close_dependencies()
        return state

    state = asyncio.run(start_and_shut_down())

    assert cleaned_up == [True]
    assert state.task.cancelled()
    assert state.running is False
