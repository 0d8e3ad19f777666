"""Tests for the offline store-maintenance commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from click.testing import CliRunner
from fakes import make_workspace, snapshot_payload

from tabvault.cli import main
from tabvault.resilience.services.timers import now_ms
from tabvault.resilience.store.base import SNAPSHOTS_KEY, WORKSPACES_KEY
from tabvault.resilience.store.local import LocalKeyValueStore


@pytest.fixture
def data_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("TABVAULT_DATA_ROOT", str(tmp_path))
    monkeypatch.setenv("TABVAULT_STATE_STORE", "local")
    # Keep loguru off the runner's short-lived stderr.
    monkeypatch.setattr("tabvault.resilience.log.setup_logging", lambda *args, **kwargs: None)
    return tmp_path


def _local(data_root: Path) -> LocalKeyValueStore:
    return LocalKeyValueStore(data_root, "local")


def test_list_empty(data_root: Path) -> None:
    result = CliRunner().invoke(main, ["snapshots", "list"])
    assert result.exit_code == 0
    assert "No snapshots." in result.output


def test_list_and_clear(data_root: Path) -> None:
    store = _local(data_root)
    asyncio.run(store.set(SNAPSHOTS_KEY, [snapshot_payload("snap-1", now_ms())]))

    result = CliRunner().invoke(main, ["snapshots", "list"])
    assert result.exit_code == 0
    assert "snap-1" in result.output
    assert "1 tabs" in result.output

    result = CliRunner().invoke(main, ["snapshots", "clear", "--yes"])
    assert result.exit_code == 0
    assert asyncio.run(store.get(SNAPSHOTS_KEY)) == []


def test_recover(data_root: Path) -> None:
    store = _local(data_root)
    workspace = make_workspace("w1").to_store()
    asyncio.run(store.set(SNAPSHOTS_KEY, [snapshot_payload("snap-1", now_ms(), workspaces=[workspace])]))

    result = CliRunner().invoke(main, ["recover", "snap-1", "unknown"])

    assert result.exit_code == 0
    assert "Recovered 1 workspaces." in result.output
    stored = asyncio.run(store.get(WORKSPACES_KEY))
    assert [ws["name"] for ws in stored] == ["Workspace w1 (Recovered)"]


def test_memory_store_is_rejected(data_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABVAULT_STATE_STORE", "memory")
    result = CliRunner().invoke(main, ["snapshots", "cleanup"])
    assert result.exit_code != 0
    assert "persistent store" in result.output
