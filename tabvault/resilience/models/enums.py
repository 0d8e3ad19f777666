"""Shared enumerations used across the resilience core."""

from __future__ import annotations

from enum import StrEnum

# -- Tabs --------------------------------------------------------------------


class TabStatus(StrEnum):
    """Loading status reported by the tab platform."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    COMPLETE = "complete"


# -- Auto-save ---------------------------------------------------------------


class SchedulerPhase(StrEnum):
    """Observable phase of the auto-save state machine."""

    UNINITIALIZED = "uninitialized"
    SCHEDULED = "scheduled"
    IDLE = "idle"
    SAVING = "saving"
    DISABLED = "disabled"


class CycleOutcome(StrEnum):
    """Result of a single snapshot cycle attempt."""

    SAVED = "saved"
    SKIPPED = "skipped"
    ABORTED = "aborted"
    FAILED = "failed"


# -- Recovery ----------------------------------------------------------------


class RecoveryOutcome(StrEnum):
    """What the crash detector did at process start."""

    CLEAN_START = "clean_start"
    RESTORED = "restored"
    NOTIFIED = "notified"
    NOTHING_TO_RESTORE = "nothing_to_restore"
    SKIPPED = "skipped"


# -- Notifications -----------------------------------------------------------


class NotificationKind(StrEnum):
    SUSPEND_WARNING = "suspend_warning"
    RECOVERY_AVAILABLE = "recovery_available"
