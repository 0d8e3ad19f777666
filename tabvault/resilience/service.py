"""Resilience service -- wires the store, managers and services together.

Owns the process lifecycle:

- **start**: install defaults, detect a crash and recover, set the running
  marker, arm the auto-save scheduler and inactivity monitor, purge orphaned
  temporary snapshot keys, arm the hourly cleanup.
- **stop**: clear the running marker, cancel every timer, reset failure
  tracking, run a final cleanup.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

from tabvault.resilience.managers.activity import ActivityTracker
from tabvault.resilience.managers.settings import ensure_defaults
from tabvault.resilience.managers.snapshots import SnapshotStore
from tabvault.resilience.managers.workspaces import WorkspaceManager
from tabvault.resilience.models.enums import RecoveryOutcome
from tabvault.resilience.services.autosave import FAILURE_COOLDOWN_SECONDS, AutoSaveScheduler
from tabvault.resilience.services.inactivity import GRACE_DELAY_SECONDS, SWEEP_INTERVAL_SECONDS, InactivityMonitor
from tabvault.resilience.services.recovery import CrashRecovery
from tabvault.resilience.services.timers import PeriodicTimer, now_ms
from tabvault.resilience.store.local import LocalKeyValueStore
from tabvault.resilience.store.memory import MemoryKeyValueStore

if TYPE_CHECKING:
    from tabvault.resilience.platform.base import Notifier, TabPlatform
    from tabvault.resilience.settings import TabvaultSettings
    from tabvault.resilience.store.base import KeyValueStore

CLEANUP_INTERVAL_SECONDS = 3600.0


def create_stores(settings: TabvaultSettings) -> tuple[KeyValueStore, KeyValueStore]:
    """Create the ``(local, sync)`` store scopes for the configured backend."""
    if settings.state_store == "memory":
        return MemoryKeyValueStore(), MemoryKeyValueStore()
    return (
        LocalKeyValueStore(settings.data_root, "local", prefix=settings.data_prefix),
        LocalKeyValueStore(settings.data_root, "sync", prefix=settings.data_prefix),
    )


class ResilienceService:
    def __init__(
        self,
        *,
        local: KeyValueStore,
        sync: KeyValueStore,
        platform: TabPlatform,
        notifier: Notifier | None = None,
        clock: Callable[[], int] = now_ms,
        cleanup_interval: float = CLEANUP_INTERVAL_SECONDS,
        failure_cooldown: float = FAILURE_COOLDOWN_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        grace_delay: float = GRACE_DELAY_SECONDS,
    ) -> None:
        self.local = local
        self.sync = sync
        self.snapshots = SnapshotStore(local, sync, clock=clock)
        self.workspaces = WorkspaceManager(local)
        self.activity = ActivityTracker(local, clock=clock)
        self.scheduler = AutoSaveScheduler(
            snapshots=self.snapshots,
            workspaces=self.workspaces,
            platform=platform,
            sync=sync,
            clock=clock,
            failure_cooldown=failure_cooldown,
        )
        self.recovery = CrashRecovery(
            local=local,
            sync=sync,
            snapshots=self.snapshots,
            workspaces=self.workspaces,
            notifier=notifier,
            clock=clock,
        )
        self.monitor = InactivityMonitor(
            platform=platform,
            activity=self.activity,
            sync=sync,
            notifier=notifier,
            clock=clock,
            sweep_interval=sweep_interval,
            grace_delay=grace_delay,
        )
        self._cleanup_interval = cleanup_interval
        self._cleanup_timer: PeriodicTimer | None = None

    @property
    def running(self) -> bool:
        return self._cleanup_timer is not None

    async def start(self) -> RecoveryOutcome:
        await ensure_defaults(self.local, self.sync)

        try:
            outcome = await self.recovery.detect_and_recover()
        except Exception:
            logger.exception("Recovery: crash detection failed")
            outcome = RecoveryOutcome.SKIPPED

        await self.recovery.mark_running()
        await self.scheduler.initialize()
        await self.monitor.initialize()

        try:
            await self.snapshots.purge_orphans()
        except Exception:
            logger.exception("Snapshots: orphan purge at startup failed")

        self._cleanup_timer = PeriodicTimer(self._cleanup_interval, self.cleanup, name="snapshot-cleanup")
        self._cleanup_timer.start()
        logger.info("Resilience service started (recovery={})", outcome)
        return outcome

    async def cleanup(self) -> int:
        return await self.snapshots.cleanup()

    async def stop(self) -> None:
        logger.info("Resilience service shutting down")
        try:
            await self.recovery.mark_clean_shutdown()
        except Exception:
            logger.exception("Recovery: failed to clear running marker")

        if self._cleanup_timer is not None:
            self._cleanup_timer.cancel()
            self._cleanup_timer = None
        self.scheduler.shutdown()
        self.monitor.shutdown()

        try:
            await self.cleanup()
        except Exception:
            logger.exception("Snapshots: cleanup at shutdown failed")
