"""Snapshot data model.

A snapshot is a point-in-time capture of both the saved-workspace list and
the currently open tabs.  Snapshots are created only by the auto-save
scheduler and never mutated after creation.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from tabvault.resilience.models.base import StoredModel
from tabvault.resilience.models.workspace import TabRecord, Workspace

SNAPSHOT_VERSION = "1.1"


class LiveTabRecord(StoredModel):
    """Open tab as captured at snapshot time (carries its live identifiers)."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    url: str
    title: str = ""
    fav_icon_url: str | None = None
    pinned: bool = False
    window_id: int | None = None
    index: int | None = None
    active: bool = False

    def to_tab_record(self) -> TabRecord:
        """Drop live identifiers, keeping only what is needed to reopen the tab."""
        return TabRecord(
            url=self.url,
            title=self.title,
            pinned=self.pinned,
            active=self.active,
            favicon=self.fav_icon_url,
        )


class SnapshotMetadata(StoredModel):
    total_tabs: int = 0
    total_workspaces: int = 0
    extension_version: str = ""
    created_at: str = ""
    platform: str = "tabvault"


class Snapshot(StoredModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int
    session_id: str
    version: str = SNAPSHOT_VERSION
    workspaces: list[Workspace] = Field(default_factory=list)
    tabs: list[LiveTabRecord] = Field(default_factory=list)
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)
