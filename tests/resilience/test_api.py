"""Tests for the HTTP API.

The app lifespan does NOT run under ``ASGITransport``, so the service is
attached to ``app.state`` by the fixture.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fakes import START_MS, make_workspace, snapshot_payload
from httpx import ASGITransport, AsyncClient

from tabvault.resilience.app import app
from tabvault.resilience.managers.activity import ActivityTracker
from tabvault.resilience.managers.workspaces import WorkspaceManager
from tabvault.resilience.service import ResilienceService
from tabvault.resilience.store.base import SNAPSHOTS_KEY
from tabvault.resilience.store.memory import MemoryKeyValueStore


@pytest.fixture
async def client(service: ResilienceService) -> AsyncIterator[AsyncClient]:
    app.state.service = service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.service = None


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_service_unavailable() -> None:
    app.state.service = None
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get("/api/auto-save/status")
    assert resp.status_code == 503


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


async def test_trigger_and_list(client: AsyncClient) -> None:
    resp = await client.post("/api/snapshots/trigger")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Auto-save completed successfully"}

    resp = await client.get("/api/snapshots/list")
    assert resp.status_code == 200
    body = resp.json()
    assert len(body) == 1
    assert body[0]["sessionId"] == f"session_{START_MS}"
    assert body[0]["metadata"]["totalTabs"] == 2
    assert body[0]["tabs"][0]["url"] == "https://example.com/1"

    # Debounced second trigger reports failure instead of pretending to save.
    resp = await client.post("/api/snapshots/trigger")
    assert resp.json()["success"] is False


async def test_recover_and_clear(client: AsyncClient, local: MemoryKeyValueStore) -> None:
    workspace = make_workspace("w1").to_store()
    await local.set(SNAPSHOTS_KEY, [snapshot_payload("a", START_MS, workspaces=[workspace])])

    resp = await client.post("/api/snapshots/recover", json={"snapshotIds": ["a"]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "recovered": 1}

    resp = await client.get("/api/workspaces/list")
    assert [w["name"] for w in resp.json()] == ["Workspace w1 (Recovered)"]

    resp = await client.post("/api/snapshots/clear")
    assert resp.status_code == 204
    resp = await client.get("/api/snapshots/list")
    assert resp.json() == []


# ---------------------------------------------------------------------------
# Settings and status
# ---------------------------------------------------------------------------


async def test_auto_save_settings_and_status(client: AsyncClient) -> None:
    resp = await client.post("/api/settings/auto-save", json={"enabled": True, "interval": 120})
    assert resp.status_code == 200
    assert resp.json()["enabled"] is True
    assert resp.json()["phase"] == "scheduled"

    resp = await client.post("/api/settings/auto-save", json={"enabled": False})
    assert resp.json()["phase"] == "disabled"

    resp = await client.get("/api/auto-save/status")
    assert resp.status_code == 200
    assert resp.json() == {
        "enabled": False,
        "inProgress": False,
        "failureCount": 0,
        "disabledUntil": 0,
        "lastAttemptTime": 0,
        "phase": "disabled",
    }

    resp = await client.get("/api/settings/get")
    assert resp.json()["autoSaveEnabled"] is False
    assert resp.json()["autoSaveInterval"] == 120


async def test_auto_save_settings_validation(client: AsyncClient) -> None:
    resp = await client.post("/api/settings/auto-save", json={"interval": 0})
    assert resp.status_code == 422


async def test_inactivity_settings(client: AsyncClient, service: ResilienceService) -> None:
    resp = await client.post(
        "/api/settings/inactivity",
        json={"enabled": True, "timeoutMinutes": 30, "protectedDomains": ["*.corp.io"]},
    )
    assert resp.status_code == 204
    assert service.monitor.active is True

    config = (await client.get("/api/settings/get")).json()
    assert config["autoCloseInactiveTabs"] is True
    assert config["inactiveTabTimeoutMinutes"] == 30
    assert config["protectedDomains"] == ["*.corp.io"]


# ---------------------------------------------------------------------------
# Tab events and workspaces
# ---------------------------------------------------------------------------


async def test_tab_events(client: AsyncClient, activity: ActivityTracker) -> None:
    assert (await client.post("/api/tabs/5/created")).status_code == 204
    assert (await client.post("/api/tabs/5/updated", json={"status": "complete"})).status_code == 204
    assert (await client.post("/api/tabs/6/activated")).status_code == 204
    assert set(await activity.get_all()) == {5, 6}

    assert (await client.post("/api/tabs/5/removed")).status_code == 204
    assert set(await activity.get_all()) == {6}


async def test_switch_workspace(client: AsyncClient, workspaces: WorkspaceManager) -> None:
    await workspaces.replace_workspaces([make_workspace("a", active=True), make_workspace("b")])

    resp = await client.post("/api/workspaces/b/switch")
    assert resp.status_code == 204
    assert [w.id for w in await workspaces.list_workspaces() if w.is_active] == ["b"]

    resp = await client.post("/api/workspaces/missing/switch")
    assert resp.status_code == 404

    assert (await client.post("/api/workspaces/a/delete")).status_code == 204
    assert (await client.post("/api/workspaces/a/delete")).status_code == 404
