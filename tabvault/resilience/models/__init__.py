"""Data models for the resilience core."""

from tabvault.resilience.models.activity import TabActivity
from tabvault.resilience.models.api import (
    AutoSaveSettingsUpdate,
    AutoSaveStatus,
    InactivitySettingsUpdate,
    ManualSaveResult,
    RecoverRequest,
    RecoverResponse,
    TabUpdatedEvent,
)
from tabvault.resilience.models.config import ResilienceConfig
from tabvault.resilience.models.enums import (
    CycleOutcome,
    NotificationKind,
    RecoveryOutcome,
    SchedulerPhase,
    TabStatus,
)
from tabvault.resilience.models.snapshot import LiveTabRecord, Snapshot, SnapshotMetadata
from tabvault.resilience.models.tab import LiveTab
from tabvault.resilience.models.workspace import TabRecord, Workspace

__all__ = [
    # API schemas
    "AutoSaveSettingsUpdate",
    "AutoSaveStatus",
    # Enums
    "CycleOutcome",
    "InactivitySettingsUpdate",
    # Tabs
    "LiveTab",
    "LiveTabRecord",
    "ManualSaveResult",
    "NotificationKind",
    "RecoverRequest",
    "RecoverResponse",
    "RecoveryOutcome",
    # Config
    "ResilienceConfig",
    "SchedulerPhase",
    # Snapshot
    "Snapshot",
    "SnapshotMetadata",
    # Activity
    "TabActivity",
    "TabRecord",
    "TabStatus",
    "TabUpdatedEvent",
    # Workspace
    "Workspace",
]
