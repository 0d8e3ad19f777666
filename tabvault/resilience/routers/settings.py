"""Settings update endpoints.

Bodies are partial: only fields present in the request are changed.  Each
update re-initialises the affected component.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from tabvault.resilience.deps import Service
from tabvault.resilience.managers.settings import load_config
from tabvault.resilience.models.api import AutoSaveSettingsUpdate, AutoSaveStatus, InactivitySettingsUpdate
from tabvault.resilience.models.config import ResilienceConfig

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/get", response_model=ResilienceConfig)
async def get_config(service: Service) -> ResilienceConfig:
    return await load_config(service.sync)


@router.post("/auto-save", response_model=AutoSaveStatus)
async def update_auto_save(body: AutoSaveSettingsUpdate, service: Service) -> AutoSaveStatus:
    return await service.scheduler.apply_settings(body)


@router.post("/inactivity", status_code=status.HTTP_204_NO_CONTENT)
async def update_inactivity(body: InactivitySettingsUpdate, service: Service) -> None:
    await service.monitor.apply_settings(body)
