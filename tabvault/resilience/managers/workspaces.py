"""Workspace list operations.

The whole list lives under the ``workspaces`` key and is replaced on every
write.  Every write normalises the list so that at most one workspace has
``is_active`` set.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from loguru import logger

from tabvault.resilience.errors import WorkspaceNotFoundError
from tabvault.resilience.models.workspace import Workspace
from tabvault.resilience.store.base import WORKSPACES_KEY

if TYPE_CHECKING:
    from tabvault.resilience.store.base import KeyValueStore


def enforce_single_active(workspaces: Sequence[Workspace]) -> list[Workspace]:
    """Keep ``is_active`` only on the first active workspace."""
    result: list[Workspace] = []
    seen_active = False
    for ws in workspaces:
        if ws.is_active and seen_active:
            ws = ws.model_copy(update={"is_active": False})
        seen_active = seen_active or ws.is_active
        result.append(ws)
    return result


class WorkspaceManager:
    def __init__(self, local: KeyValueStore) -> None:
        self._local = local

    async def list_workspaces(self) -> list[Workspace]:
        raw = await self._local.get(WORKSPACES_KEY) or []
        return [Workspace.model_validate(item) for item in raw]

    async def replace_workspaces(self, workspaces: Sequence[Workspace]) -> list[Workspace]:
        normalised = enforce_single_active(workspaces)
        await self._local.set(WORKSPACES_KEY, [ws.to_store() for ws in normalised])
        return normalised

    async def prepend_workspace(self, workspace: Workspace, *, max_workspaces: int | None = None) -> list[Workspace]:
        """Insert ``workspace`` at the head, evicting the oldest beyond ``max_workspaces``."""
        current = await self.list_workspaces()
        if workspace.is_active:
            current = [ws.model_copy(update={"is_active": False}) for ws in current]
        updated = [workspace, *current]
        if max_workspaces is not None and len(updated) > max_workspaces:
            evicted = updated[max_workspaces:]
            updated = updated[:max_workspaces]
            logger.info("Workspaces: evicted {} beyond limit {}", len(evicted), max_workspaces)
        return await self.replace_workspaces(updated)

    async def switch_active(self, workspace_id: str) -> Workspace:
        """Mark exactly ``workspace_id`` as active.  Raises ``WorkspaceNotFoundError``."""
        current = await self.list_workspaces()
        if not any(ws.id == workspace_id for ws in current):
            raise WorkspaceNotFoundError(workspace_id)
        updated = [ws.model_copy(update={"is_active": ws.id == workspace_id}) for ws in current]
        await self.replace_workspaces(updated)
        return next(ws for ws in updated if ws.id == workspace_id)

    async def delete_workspace(self, workspace_id: str) -> Workspace:
        """Remove a workspace.  Raises ``WorkspaceNotFoundError`` if missing."""
        current = await self.list_workspaces()
        target = next((ws for ws in current if ws.id == workspace_id), None)
        if target is None:
            raise WorkspaceNotFoundError(workspace_id)
        await self.replace_workspaces([ws for ws in current if ws.id != workspace_id])
        return target
