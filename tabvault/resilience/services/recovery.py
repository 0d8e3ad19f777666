"""Crash detection and snapshot recovery.

A boolean marker under ``extensionRunning`` is set when the service starts
and cleared on clean shutdown.  Finding it set at the next start means the
previous process died without shutting down.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from loguru import logger

from tabvault.resilience.managers.settings import load_config
from tabvault.resilience.models.enums import NotificationKind, RecoveryOutcome
from tabvault.resilience.models.workspace import Workspace
from tabvault.resilience.platform.base import notify_quietly
from tabvault.resilience.services.timers import now_ms
from tabvault.resilience.store.base import RUNNING_FLAG_KEY

if TYPE_CHECKING:
    from tabvault.resilience.managers.snapshots import SnapshotStore
    from tabvault.resilience.managers.workspaces import WorkspaceManager
    from tabvault.resilience.models.snapshot import Snapshot
    from tabvault.resilience.platform.base import Notifier
    from tabvault.resilience.store.base import KeyValueStore

RECOVERED_SESSION_NAME = "Recovered Session"
RECOVERED_SUFFIX = " (Recovered)"


def recovered_copy(workspace: Workspace, *, now: int) -> Workspace:
    """Copy a snapshot workspace under a fresh id so it cannot collide with live ones."""
    return workspace.model_copy(
        update={
            "id": f"recovered_{workspace.id}_{now}_{uuid.uuid4().hex[:8]}",
            "name": f"{workspace.name}{RECOVERED_SUFFIX}",
            "is_active": False,
            "timestamp": now,
        },
        deep=True,
    )


def recovered_session(snapshot: Snapshot, *, now: int) -> Workspace:
    """Synthetic workspace holding the tabs that were open when the snapshot was taken."""
    return Workspace(
        id=f"recovery_{now}",
        name=RECOVERED_SESSION_NAME,
        timestamp=now,
        is_active=False,
        tabs=[tab.to_tab_record() for tab in snapshot.tabs],
    )


class CrashRecovery:
    def __init__(
        self,
        *,
        local: KeyValueStore,
        sync: KeyValueStore,
        snapshots: SnapshotStore,
        workspaces: WorkspaceManager,
        notifier: Notifier | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._local = local
        self._sync = sync
        self._snapshots = snapshots
        self._workspaces = workspaces
        self._notifier = notifier
        self._clock = clock

    # -- Running marker --------------------------------------------------------

    async def was_running(self) -> bool:
        return bool(await self._local.get(RUNNING_FLAG_KEY))

    async def mark_running(self) -> None:
        await self._local.set(RUNNING_FLAG_KEY, True)

    async def mark_clean_shutdown(self) -> None:
        await self._local.set(RUNNING_FLAG_KEY, False)

    # -- Detection -------------------------------------------------------------

    async def detect_and_recover(self) -> RecoveryOutcome:
        """Run once at start, before the running marker is set again."""
        if not await self.was_running():
            return RecoveryOutcome.CLEAN_START

        config = await load_config(self._sync)
        if not config.enable_crash_recovery:
            logger.info("Recovery: unclean shutdown detected, crash recovery disabled")
            return RecoveryOutcome.SKIPPED

        logger.warning("Recovery: crash detected, previous run did not shut down cleanly")

        if config.auto_restore_on_startup:
            restored = await self.restore_latest()
            return RecoveryOutcome.RESTORED if restored else RecoveryOutcome.NOTHING_TO_RESTORE

        if config.show_recovery_notifications:
            await notify_quietly(
                self._notifier,
                NotificationKind.RECOVERY_AVAILABLE,
                "Recovery Available",
                "Workspace recovery data is available. Open TabVault to restore your workspaces.",
            )
            return RecoveryOutcome.NOTIFIED

        return RecoveryOutcome.SKIPPED

    # -- Recovery --------------------------------------------------------------

    async def restore_latest(self) -> bool:
        """Restore workspaces from the newest snapshot.  Returns ``False`` if none exists.

        The snapshot's workspace list replaces the current one, and its live
        tabs (if any) become a "Recovered Session" workspace at the head.
        Tabs are not reopened.
        """
        snapshot = await self._snapshots.latest()
        if snapshot is None:
            logger.info("Recovery: no snapshots available, nothing to restore")
            return False

        if not snapshot.workspaces and not snapshot.tabs:
            logger.info("Recovery: latest snapshot {} is empty, nothing to restore", snapshot.id)
            return False

        workspaces = list(snapshot.workspaces) or await self._workspaces.list_workspaces()
        if snapshot.tabs:
            workspaces.insert(0, recovered_session(snapshot, now=self._clock()))

        config = await load_config(self._sync)
        if len(workspaces) > config.max_workspaces:
            logger.info("Recovery: evicting {} workspaces beyond limit", len(workspaces) - config.max_workspaces)
            workspaces = workspaces[: config.max_workspaces]

        await self._workspaces.replace_workspaces(workspaces)
        logger.info(
            "Recovery: restored {} workspaces from snapshot {} ({} tabs)",
            len(snapshot.workspaces),
            snapshot.id,
            len(snapshot.tabs),
        )
        return True

    async def recover_by_ids(self, snapshot_ids: Sequence[str]) -> int:
        """Append copies of the given snapshots' workspaces.  Returns how many were added.

        Unknown ids are ignored.  Stored snapshots are never modified.  The
        copies always fit under ``max_workspaces``: the oldest current
        workspaces (list tail) are evicted to make room.
        """
        snapshots = await self._snapshots.get_snapshots(snapshot_ids)
        now = self._clock()
        recovered = [recovered_copy(ws, now=now) for snapshot in snapshots for ws in snapshot.workspaces]
        if not recovered:
            logger.info("Recovery: nothing recovered from {} requested snapshots", len(snapshot_ids))
            return 0

        config = await load_config(self._sync)
        recovered = recovered[: config.max_workspaces]
        current = await self._workspaces.list_workspaces()
        kept = current[: config.max_workspaces - len(recovered)]
        if len(kept) < len(current):
            logger.info("Recovery: evicting {} workspaces beyond limit", len(current) - len(kept))
        await self._workspaces.replace_workspaces([*kept, *recovered])
        logger.info("Recovery: recovered {} workspaces from {} snapshots", len(recovered), len(snapshots))
        return len(recovered)

    async def clear_recovery_data(self) -> None:
        await self._snapshots.clear()
