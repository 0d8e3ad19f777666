"""Auto-save scheduler -- periodic snapshot creation with debounce and backoff.

State machine::

    Uninitialized -> Scheduled -> (Idle <-> Saving) -> Disabled -> Scheduled

- ``initialize`` arms a periodic timer when auto-save is enabled.  Concurrent
  initialisation requests while one is in flight are no-ops.
- Each tick runs a cycle in its own task.  A cycle is skipped (never queued)
  while another one runs or when the previous attempt started less than
  ``DEBOUNCE_MS`` ago.
- ``MAX_CONSECUTIVE_FAILURES`` failed cycles cancel the timer and arm a
  one-shot re-enable after the cooldown.  Any successful cycle resets the
  failure counter and the disabled-until marker.

All mutable bookkeeping lives on a ``SchedulerState`` owned by the scheduler,
so the state machine can be driven in tests without waiting on timers.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger

from tabvault import __version__
from tabvault.resilience.managers.settings import load_config, update_config
from tabvault.resilience.models.api import AutoSaveSettingsUpdate, AutoSaveStatus, ManualSaveResult
from tabvault.resilience.models.enums import CycleOutcome, SchedulerPhase
from tabvault.resilience.models.snapshot import LiveTabRecord, Snapshot, SnapshotMetadata
from tabvault.resilience.services.timers import OneShotTimer, PeriodicTimer, now_ms

if TYPE_CHECKING:
    from tabvault.resilience.managers.snapshots import SnapshotStore
    from tabvault.resilience.managers.workspaces import WorkspaceManager
    from tabvault.resilience.models.tab import LiveTab
    from tabvault.resilience.models.workspace import Workspace
    from tabvault.resilience.platform.base import TabPlatform
    from tabvault.resilience.store.base import KeyValueStore

MIN_INTERVAL_SECONDS = 10
DEFAULT_INTERVAL_SECONDS = 60
DEBOUNCE_MS = 5_000
MAX_CONSECUTIVE_FAILURES = 3
FAILURE_COOLDOWN_SECONDS = 300.0


# ---------------------------------------------------------------------------
# Snapshot construction
# ---------------------------------------------------------------------------


def capturable_tabs(tabs: Sequence[LiveTab]) -> list[LiveTab]:
    """Tabs worth capturing: a URL that is not a host-internal page."""
    return [tab for tab in tabs if tab.url and not tab.is_internal]


def build_snapshot(
    tabs: Sequence[LiveTab],
    workspaces: Sequence[Workspace],
    *,
    now: int,
    extension_version: str = __version__,
) -> Snapshot:
    valid = capturable_tabs(tabs)
    return Snapshot(
        id=f"snapshot_{now}_{uuid.uuid4().hex[:9]}",
        timestamp=now,
        session_id=f"session_{now}",
        workspaces=list(workspaces),
        tabs=[
            LiveTabRecord(
                id=tab.id,
                url=tab.url,
                title=tab.title,
                fav_icon_url=tab.fav_icon_url,
                pinned=tab.pinned,
                window_id=tab.window_id,
                index=tab.index,
                active=tab.active,
            )
            for tab in valid
        ],
        metadata=SnapshotMetadata(
            total_tabs=len(valid),
            total_workspaces=len(workspaces),
            extension_version=extension_version,
            created_at=datetime.fromtimestamp(now / 1000, tz=UTC).isoformat(),
        ),
    )


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass
class SchedulerState:
    """Mutable bookkeeping of the auto-save state machine."""

    failure_count: int = 0
    disabled_until: int = 0
    """Epoch ms before which periodic cycles are skipped (0 = not disabled)."""

    last_attempt_time: int = 0
    in_progress: bool = False
    initializing: bool = False
    user_disabled: bool = False
    """Auto-save switched off in settings (as opposed to failure backoff)."""

    timer: PeriodicTimer | None = None
    reenable_timer: OneShotTimer | None = None

    @property
    def timer_armed(self) -> bool:
        return self.timer is not None and self.timer.active


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class AutoSaveScheduler:
    def __init__(
        self,
        *,
        snapshots: SnapshotStore,
        workspaces: WorkspaceManager,
        platform: TabPlatform,
        sync: KeyValueStore,
        state: SchedulerState | None = None,
        clock: Callable[[], int] = now_ms,
        failure_cooldown: float = FAILURE_COOLDOWN_SECONDS,
    ) -> None:
        self._snapshots = snapshots
        self._workspaces = workspaces
        self._platform = platform
        self._sync = sync
        self._clock = clock
        self._failure_cooldown = failure_cooldown
        self.state = state or SchedulerState()

    # -- Query -----------------------------------------------------------------

    @property
    def phase(self) -> SchedulerPhase:
        state = self.state
        if state.in_progress:
            return SchedulerPhase.SAVING
        if state.timer_armed:
            return SchedulerPhase.IDLE if state.last_attempt_time else SchedulerPhase.SCHEDULED
        if state.user_disabled or state.disabled_until > self._clock():
            return SchedulerPhase.DISABLED
        if state.reenable_timer is not None and state.reenable_timer.pending:
            return SchedulerPhase.DISABLED
        return SchedulerPhase.UNINITIALIZED

    def status(self) -> AutoSaveStatus:
        state = self.state
        return AutoSaveStatus(
            enabled=state.timer_armed,
            in_progress=state.in_progress,
            failure_count=state.failure_count,
            disabled_until=state.disabled_until,
            last_attempt_time=state.last_attempt_time,
            phase=self.phase,
        )

    # -- Lifecycle -------------------------------------------------------------

    async def initialize(self) -> None:
        """Read settings and (re)arm the periodic timer if auto-save is enabled."""
        state = self.state
        if state.initializing:
            logger.debug("Auto-save: initialization already in progress, skipping")
            return

        state.initializing = True
        try:
            config = await load_config(self._sync)
            interval = max(config.auto_save_interval or DEFAULT_INTERVAL_SECONDS, MIN_INTERVAL_SECONDS)
            self._cancel_timer()

            if not config.auto_save_enabled:
                state.user_disabled = True
                logger.info("Auto-save: disabled in settings, not scheduling")
                return

            state.user_disabled = False
            state.timer = PeriodicTimer(interval, self._on_tick, name="auto-save")
            state.timer.start()
            logger.info("Auto-save: initialised with {}s interval", interval)
        except Exception:
            logger.exception("Auto-save: initialization failed")
            self._cancel_timer()
        finally:
            state.initializing = False

    async def apply_settings(self, update: AutoSaveSettingsUpdate) -> AutoSaveStatus:
        """Persist changed auto-save settings, tear down and reinitialise."""
        changes = update.to_config()
        if changes:
            await update_config(self._sync, changes)
        logger.info("Auto-save: settings changed, reinitialising")
        self._cancel_timer()
        self._cancel_reenable()
        self._reset_failures()
        await self.initialize()
        return self.status()

    def shutdown(self) -> None:
        """Cancel every outstanding timer.  A cycle already running is left to finish."""
        self._cancel_timer()
        self._cancel_reenable()
        self._reset_failures()
        logger.info("Auto-save: stopped")

    # -- Cycles ----------------------------------------------------------------

    async def _on_tick(self) -> None:
        await self.run_cycle()

    async def run_cycle(self) -> CycleOutcome:
        """Attempt one snapshot cycle.  Never raises."""
        state = self.state
        now = self._clock()

        if state.disabled_until > now:
            logger.debug("Auto-save: disabled until {}, skipping", state.disabled_until)
            return CycleOutcome.SKIPPED

        if state.in_progress or now - state.last_attempt_time < DEBOUNCE_MS:
            logger.debug("Auto-save: skipped, operation in progress or too recent")
            return CycleOutcome.SKIPPED

        state.in_progress = True
        state.last_attempt_time = now
        snapshot_id: str | None = None

        try:
            # Settings may have changed since the tick fired.
            config = await load_config(self._sync)
            if not config.auto_save_enabled:
                logger.info("Auto-save: disabled during snapshot creation, aborting")
                return CycleOutcome.ABORTED

            tabs, workspaces = await asyncio.gather(
                self._platform.query_tabs(),
                self._workspaces.list_workspaces(),
            )
            snapshot = build_snapshot(tabs, workspaces, now=now)
            snapshot_id = snapshot.id
            await self._snapshots.save(snapshot)
        except Exception as exc:
            logger.exception("Auto-save: snapshot cycle failed")
            if snapshot_id is not None:
                await self._purge_failed(snapshot_id)
            self._record_failure(exc)
            return CycleOutcome.FAILED
        else:
            self._record_success()
            logger.info(
                "Auto-save completed: {} ({} tabs, {} workspaces)",
                snapshot.id,
                snapshot.metadata.total_tabs,
                snapshot.metadata.total_workspaces,
            )
            return CycleOutcome.SAVED
        finally:
            state.in_progress = False

    async def trigger_manual(self) -> ManualSaveResult:
        """Run one cycle now, bypassing the failure / disabled gate for this attempt.

        If the attempt does not save, the prior failure state is restored.
        """
        state = self.state
        prior = (state.failure_count, state.disabled_until)
        logger.info("Auto-save: manual trigger")

        state.failure_count = 0
        state.disabled_until = 0
        outcome = await self.run_cycle()

        if outcome is CycleOutcome.SAVED:
            return ManualSaveResult(success=True, message="Auto-save completed successfully")

        state.failure_count, state.disabled_until = prior
        messages = {
            CycleOutcome.SKIPPED: "Auto-save skipped: another save is running or one ran moments ago",
            CycleOutcome.ABORTED: "Auto-save is disabled in settings",
            CycleOutcome.FAILED: "Auto-save failed; see logs for details",
        }
        return ManualSaveResult(success=False, message=messages[outcome])

    # -- Failure bookkeeping ---------------------------------------------------

    async def _purge_failed(self, snapshot_id: str) -> None:
        try:
            await self._snapshots.cleanup_failed(snapshot_id)
        except Exception:
            logger.exception("Auto-save: cleanup after failed snapshot {} failed", snapshot_id)

    def _record_failure(self, exc: Exception) -> None:
        state = self.state
        state.failure_count += 1
        logger.error("Auto-save failure #{}: {}", state.failure_count, exc)

        if state.failure_count < MAX_CONSECUTIVE_FAILURES:
            logger.info("Auto-save will continue, failure count: {}/{}", state.failure_count, MAX_CONSECUTIVE_FAILURES)
            return

        state.disabled_until = self._clock() + int(self._failure_cooldown * 1000)
        self._cancel_timer()
        self._cancel_reenable()
        state.reenable_timer = OneShotTimer(self._failure_cooldown, self._reenable, name="auto-save-reenable")
        state.reenable_timer.start()
        logger.warning(
            "Auto-save temporarily disabled after {} consecutive failures; re-enabling in {}s",
            state.failure_count,
            self._failure_cooldown,
        )

    def _record_success(self) -> None:
        state = self.state
        if state.failure_count > 0:
            logger.info("Auto-save recovered after {} failures", state.failure_count)
        self._reset_failures()

    def _reset_failures(self) -> None:
        self.state.failure_count = 0
        self.state.disabled_until = 0

    async def _reenable(self) -> None:
        self.state.reenable_timer = None
        logger.info("Auto-save: cooldown elapsed, reinitialising")
        await self.initialize()

    # -- Timers ----------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self.state.timer is not None:
            self.state.timer.cancel()
            self.state.timer = None

    def _cancel_reenable(self) -> None:
        if self.state.reenable_timer is not None:
            self.state.reenable_timer.cancel()
            self.state.reenable_timer = None
