from __future__ import annotations

from fastapi import APIRouter

from tabvault.resilience.deps import Service
from tabvault.resilience.models.api import AutoSaveStatus

router = APIRouter(prefix="/auto-save", tags=["auto-save"])


@router.get("/status", response_model=AutoSaveStatus)
async def auto_save_status(service: Service) -> AutoSaveStatus:
    """Current scheduler state: armed timer, in-flight cycle and failure backoff."""
    return service.scheduler.status()
