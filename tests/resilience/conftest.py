"""Shared fixtures for resilience-core tests.

Everything runs against in-memory stores and fakes for the tab platform,
the notifier and the clock; no browser bridge is needed.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fakes import FakeClock, FakeNotifier, FakeTabPlatform, make_tab

from tabvault.resilience.managers.activity import ActivityTracker
from tabvault.resilience.managers.snapshots import SnapshotStore
from tabvault.resilience.managers.workspaces import WorkspaceManager
from tabvault.resilience.service import ResilienceService
from tabvault.resilience.services.autosave import AutoSaveScheduler
from tabvault.resilience.services.inactivity import InactivityMonitor
from tabvault.resilience.services.recovery import CrashRecovery
from tabvault.resilience.store.memory import MemoryKeyValueStore

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def local() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def sync() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def platform() -> FakeTabPlatform:
    return FakeTabPlatform([make_tab(1), make_tab(2, "chrome://settings"), make_tab(3, active=True)])


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def snapshots(local: MemoryKeyValueStore, sync: MemoryKeyValueStore, clock: FakeClock) -> SnapshotStore:
    return SnapshotStore(local, sync, clock=clock)


@pytest.fixture
def workspaces(local: MemoryKeyValueStore) -> WorkspaceManager:
    return WorkspaceManager(local)


@pytest.fixture
def activity(local: MemoryKeyValueStore, clock: FakeClock) -> ActivityTracker:
    return ActivityTracker(local, clock=clock)


@pytest.fixture
async def scheduler(
    snapshots: SnapshotStore,
    workspaces: WorkspaceManager,
    platform: FakeTabPlatform,
    sync: MemoryKeyValueStore,
    clock: FakeClock,
) -> AsyncIterator[AutoSaveScheduler]:
    sched = AutoSaveScheduler(
        snapshots=snapshots,
        workspaces=workspaces,
        platform=platform,
        sync=sync,
        clock=clock,
        failure_cooldown=0.05,
    )
    yield sched
    sched.shutdown()


@pytest.fixture
def recovery(
    local: MemoryKeyValueStore,
    sync: MemoryKeyValueStore,
    snapshots: SnapshotStore,
    workspaces: WorkspaceManager,
    notifier: FakeNotifier,
    clock: FakeClock,
) -> CrashRecovery:
    return CrashRecovery(
        local=local,
        sync=sync,
        snapshots=snapshots,
        workspaces=workspaces,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
async def monitor(
    platform: FakeTabPlatform,
    activity: ActivityTracker,
    sync: MemoryKeyValueStore,
    notifier: FakeNotifier,
    clock: FakeClock,
) -> AsyncIterator[InactivityMonitor]:
    mon = InactivityMonitor(
        platform=platform,
        activity=activity,
        sync=sync,
        notifier=notifier,
        clock=clock,
        sweep_interval=3600,
        grace_delay=0.01,
    )
    yield mon
    mon.shutdown()


@pytest.fixture
async def service(
    local: MemoryKeyValueStore,
    sync: MemoryKeyValueStore,
    platform: FakeTabPlatform,
    notifier: FakeNotifier,
    clock: FakeClock,
) -> AsyncIterator[ResilienceService]:
    svc = ResilienceService(
        local=local,
        sync=sync,
        platform=platform,
        notifier=notifier,
        clock=clock,
        failure_cooldown=0.05,
        grace_delay=0.01,
    )
    yield svc
    await svc.stop()
