"""Workspace endpoints (RPC-style).

All write operations use POST; reads use GET.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from tabvault.resilience.deps import Service
from tabvault.resilience.models.workspace import Workspace

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.get("/list", response_model=list[Workspace])
async def list_workspaces(service: Service) -> list[Workspace]:
    return await service.workspaces.list_workspaces()


@router.post("/{workspace_id}/switch", status_code=status.HTTP_204_NO_CONTENT)
async def switch_workspace(workspace_id: str, service: Service) -> None:
    """Make ``workspace_id`` the only active workspace."""
    try:
        await service.workspaces.switch_active(workspace_id)
    except LookupError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{workspace_id}' not found.") from None


@router.post("/{workspace_id}/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workspace(workspace_id: str, service: Service) -> None:
    try:
        await service.workspaces.delete_workspace(workspace_id)
    except LookupError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{workspace_id}' not found.") from None
