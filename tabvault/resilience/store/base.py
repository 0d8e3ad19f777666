"""Key-value store interface for durable state.

The persistent store is process-wide and offers two scopes: a small
``sync`` scope for settings and a larger ``local`` scope for bulk data
(workspaces, snapshots, per-tab activity).  Each scope is one
``KeyValueStore`` instance.

Values are JSON-compatible and replaced whole on every ``set``: there are
no partial updates and no transactions across keys.  Callers must re-read a
key before mutating it.

Persisted layout::

    sync:   settings
    local:  workspaces, autoSaveSnapshots, tabActivity, extensionRunning,
            temp_snapshot_{snapshot_id}
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# -- Well-known keys ---------------------------------------------------------

SETTINGS_KEY = "settings"
WORKSPACES_KEY = "workspaces"
SNAPSHOTS_KEY = "autoSaveSnapshots"
TAB_ACTIVITY_KEY = "tabActivity"
RUNNING_FLAG_KEY = "extensionRunning"
TEMP_SNAPSHOT_PREFIX = "temp_snapshot_"


@runtime_checkable
class KeyValueStore(Protocol):
    """Async protocol for one scope of the persistent store."""

    async def get(self, key: str) -> Any | None:
        """Return the stored value, or ``None`` if the key is absent."""
        ...

    async def set(self, key: str, value: Any) -> None:
        """Replace the whole value stored under ``key``."""
        ...

    async def remove(self, key: str) -> None:
        """Remove ``key``.  No-op if absent."""
        ...

    async def keys(self) -> list[str]:
        """Return all keys currently present."""
        ...
