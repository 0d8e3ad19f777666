"""Workspace data model.

A workspace is a named, user-curated set of tabs, independent of any live
browser state.  Tab entries are reconstructable records, not live handles.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from tabvault.resilience.models.base import StoredModel


class TabRecord(StoredModel):
    """Reconstructable state of one tab inside a workspace or snapshot.

    Keys written by the extension (``favIconUrl``, ...) are kept as extras.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    url: str
    title: str = ""
    pinned: bool = False
    active: bool = False
    favicon: str | None = None


class Workspace(StoredModel):
    """Saved workspace.

    Extra keys written by the outer extension (``tabCount``,
    ``lastAccessed``, ...) are kept so whole-value replaces do not drop them.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    timestamp: int
    is_active: bool = False
    tabs: list[TabRecord] = Field(default_factory=list)
