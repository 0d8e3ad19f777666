"""Snapshot endpoints (RPC-style).

All write operations use POST; reads use GET.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from tabvault.resilience.deps import Service
from tabvault.resilience.models.api import ManualSaveResult, RecoverRequest, RecoverResponse
from tabvault.resilience.models.snapshot import Snapshot

router = APIRouter(prefix="/snapshots", tags=["snapshots"])


@router.post("/trigger", response_model=ManualSaveResult)
async def trigger_snapshot(service: Service) -> ManualSaveResult:
    """Run one auto-save cycle now, bypassing failure backoff for this attempt."""
    return await service.scheduler.trigger_manual()


@router.get("/list", response_model=list[Snapshot])
async def list_snapshots(service: Service) -> list[Snapshot]:
    """List stored snapshots, newest first."""
    return await service.snapshots.list_snapshots()


@router.post("/recover", response_model=RecoverResponse)
async def recover_snapshots(body: RecoverRequest, service: Service) -> RecoverResponse:
    """Append recovered copies of the selected snapshots' workspaces."""
    recovered = await service.recovery.recover_by_ids(body.snapshot_ids)
    return RecoverResponse(success=True, recovered=recovered)


@router.post("/clear", status_code=status.HTTP_204_NO_CONTENT)
async def clear_snapshots(service: Service) -> None:
    """Delete all recovery data."""
    await service.recovery.clear_recovery_data()
