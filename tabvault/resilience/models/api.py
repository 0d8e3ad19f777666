"""Request / response schemas for the inbound message interface.

Update schemas are partial: only fields explicitly set by the caller are
merged into the stored settings (``model_dump(exclude_unset=True)``).
Field names map onto ``ResilienceConfig`` attributes through ``to_config``.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from tabvault.resilience.models.base import StoredModel
from tabvault.resilience.models.enums import SchedulerPhase, TabStatus

# ---------------------------------------------------------------------------
# Settings updates
# ---------------------------------------------------------------------------


class AutoSaveSettingsUpdate(StoredModel):
    """Partial update of the auto-save settings."""

    enabled: bool | None = None
    interval: int | None = Field(default=None, ge=1, description="Seconds; floored to 10 by the scheduler.")
    max_snapshots: int | None = Field(default=None, ge=1)
    max_age_hours: int | None = Field(default=None, ge=1)

    def to_config(self) -> dict[str, Any]:
        mapping = {
            "enabled": "auto_save_enabled",
            "interval": "auto_save_interval",
            "max_snapshots": "max_auto_save_snapshots",
            "max_age_hours": "snapshot_max_age_hours",
        }
        return {mapping[key]: value for key, value in self.model_dump(exclude_unset=True).items()}


class InactivitySettingsUpdate(StoredModel):
    """Partial update of the inactive-tab suspension settings."""

    enabled: bool | None = None
    timeout_minutes: int | None = Field(default=None, ge=1)
    exclude_pinned: bool | None = None
    exclude_audible: bool | None = None
    notify_before: bool | None = None
    protected_domains: list[str] | None = None

    def to_config(self) -> dict[str, Any]:
        mapping = {
            "enabled": "auto_close_inactive_tabs",
            "timeout_minutes": "inactive_tab_timeout_minutes",
            "exclude_pinned": "exclude_pinned_from_auto_close",
            "exclude_audible": "exclude_audible_from_auto_close",
            "notify_before": "notify_before_auto_close",
            "protected_domains": "protected_domains",
        }
        return {mapping[key]: value for key, value in self.model_dump(exclude_unset=True).items()}


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


class RecoverRequest(StoredModel):
    snapshot_ids: list[str]


class RecoverResponse(StoredModel):
    success: bool = True
    recovered: int = 0


class ManualSaveResult(StoredModel):
    success: bool
    message: str


class AutoSaveStatus(StoredModel):
    enabled: bool
    in_progress: bool
    failure_count: int
    disabled_until: int
    last_attempt_time: int
    phase: SchedulerPhase


# ---------------------------------------------------------------------------
# Tab events
# ---------------------------------------------------------------------------


class TabUpdatedEvent(StoredModel):
    status: TabStatus | None = None
    url: str | None = None
