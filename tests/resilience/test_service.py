"""Tests for the service lifecycle (start / stop wiring)."""

from __future__ import annotations

from pathlib import Path

from fakes import HOUR_MS, START_MS, FakeClock, make_workspace, set_config, snapshot_payload

from tabvault.resilience.models.enums import RecoveryOutcome, SchedulerPhase
from tabvault.resilience.service import ResilienceService, create_stores
from tabvault.resilience.settings import TabvaultSettings
from tabvault.resilience.store.base import (
    RUNNING_FLAG_KEY,
    SETTINGS_KEY,
    SNAPSHOTS_KEY,
    TEMP_SNAPSHOT_PREFIX,
)
from tabvault.resilience.store.local import LocalKeyValueStore
from tabvault.resilience.store.memory import MemoryKeyValueStore


async def test_clean_start(service: ResilienceService, local: MemoryKeyValueStore, sync: MemoryKeyValueStore) -> None:
    outcome = await service.start()

    assert outcome is RecoveryOutcome.CLEAN_START
    assert service.running is True
    assert await local.get(RUNNING_FLAG_KEY) is True
    assert (await sync.get(SETTINGS_KEY))["autoSaveEnabled"] is True
    assert service.scheduler.phase is SchedulerPhase.SCHEDULED


async def test_start_after_crash_restores(service: ResilienceService, local: MemoryKeyValueStore) -> None:
    workspace = make_workspace("w1").to_store()
    await local.set(RUNNING_FLAG_KEY, True)
    await local.set(SNAPSHOTS_KEY, [snapshot_payload("a", START_MS, workspaces=[workspace])])

    outcome = await service.start()

    assert outcome is RecoveryOutcome.RESTORED
    names = [ws.name for ws in await service.workspaces.list_workspaces()]
    assert "Workspace w1" in names


async def test_start_after_crash_with_recovery_disabled(
    service: ResilienceService, local: MemoryKeyValueStore, sync: MemoryKeyValueStore
) -> None:
    await set_config(sync, enableCrashRecovery=False)
    await local.set(RUNNING_FLAG_KEY, True)

    assert await service.start() is RecoveryOutcome.SKIPPED
    assert await local.get(RUNNING_FLAG_KEY) is True


async def test_start_with_auto_save_disabled(service: ResilienceService, sync: MemoryKeyValueStore) -> None:
    await set_config(sync, autoSaveEnabled=False)
    await service.start()
    assert service.scheduler.phase is SchedulerPhase.DISABLED


async def test_start_purges_orphaned_temp_keys(service: ResilienceService, local: MemoryKeyValueStore) -> None:
    await local.set(f"{TEMP_SNAPSHOT_PREFIX}stale", {"id": "stale"})
    await service.start()
    assert await local.get(f"{TEMP_SNAPSHOT_PREFIX}stale") is None


async def test_stop_clears_marker_and_evicts(
    service: ResilienceService, local: MemoryKeyValueStore, clock: FakeClock
) -> None:
    await service.start()
    await local.set(
        SNAPSHOTS_KEY,
        [snapshot_payload("new", START_MS), snapshot_payload("old", START_MS - 25 * HOUR_MS)],
    )

    await service.stop()

    assert service.running is False
    assert await local.get(RUNNING_FLAG_KEY) is False
    assert [s["id"] for s in await local.get(SNAPSHOTS_KEY)] == ["new"]
    assert service.scheduler.phase is not SchedulerPhase.SCHEDULED


async def test_cleanup(service: ResilienceService, local: MemoryKeyValueStore) -> None:
    await local.set(SNAPSHOTS_KEY, [snapshot_payload(f"s{i}", START_MS - i) for i in range(12)])
    assert await service.cleanup() == 2


def test_create_stores(tmp_path: Path) -> None:
    local, sync = create_stores(TabvaultSettings(state_store="memory"))
    assert isinstance(local, MemoryKeyValueStore)
    assert local is not sync

    local, sync = create_stores(TabvaultSettings(state_store="local", data_root=str(tmp_path)))
    assert isinstance(local, LocalKeyValueStore)
    assert isinstance(sync, LocalKeyValueStore)
