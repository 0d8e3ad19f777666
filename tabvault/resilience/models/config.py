"""User settings persisted under the synced ``settings`` key.

Defaults mirror the extension's install-time defaults.  The document is
shared with the outer extension (theme, shortcuts, ...), so unknown keys are
kept and written back untouched.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from tabvault.resilience.models.base import StoredModel


class ResilienceConfig(StoredModel):
    model_config = ConfigDict(extra="allow")

    # -- Auto-save -------------------------------------------------------------
    auto_save_enabled: bool = True
    auto_save_interval: int = 60
    """Seconds between snapshot ticks.  The scheduler enforces a 10s floor."""

    max_auto_save_snapshots: int = 10
    snapshot_max_age_hours: int = 24

    # -- Crash recovery --------------------------------------------------------
    enable_crash_recovery: bool = True
    auto_restore_on_startup: bool = True
    show_recovery_notifications: bool = True

    # -- Inactive tabs ---------------------------------------------------------
    auto_close_inactive_tabs: bool = False
    inactive_tab_timeout_minutes: int = 60
    exclude_pinned_from_auto_close: bool = True
    exclude_audible_from_auto_close: bool = True
    notify_before_auto_close: bool = True
    protected_domains: list[str] = Field(default_factory=list)

    # -- Workspaces ------------------------------------------------------------
    max_workspaces: int = 20

    @property
    def snapshot_cap(self) -> int:
        return max(self.max_auto_save_snapshots, 1)

    @property
    def snapshot_max_age_ms(self) -> int:
        return self.snapshot_max_age_hours * 60 * 60 * 1000

    @property
    def inactive_timeout_ms(self) -> int:
        return self.inactive_tab_timeout_minutes * 60 * 1000
