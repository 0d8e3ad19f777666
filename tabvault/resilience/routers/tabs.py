"""Tab lifecycle events forwarded by the host browser.

Events only refresh or drop per-tab activity records; they never fail the
caller because of an unknown tab id.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from tabvault.resilience.deps import Service
from tabvault.resilience.models.api import TabUpdatedEvent

router = APIRouter(prefix="/tabs", tags=["tabs"])


@router.post("/{tab_id}/activated", status_code=status.HTTP_204_NO_CONTENT)
async def tab_activated(tab_id: int, service: Service) -> None:
    await service.monitor.on_tab_activated(tab_id)


@router.post("/{tab_id}/created", status_code=status.HTTP_204_NO_CONTENT)
async def tab_created(tab_id: int, service: Service) -> None:
    await service.monitor.on_tab_created(tab_id)


@router.post("/{tab_id}/updated", status_code=status.HTTP_204_NO_CONTENT)
async def tab_updated(tab_id: int, body: TabUpdatedEvent, service: Service) -> None:
    """Only a navigation reaching ``complete`` counts as activity."""
    await service.monitor.on_tab_updated(tab_id, body.status)


@router.post("/{tab_id}/removed", status_code=status.HTTP_204_NO_CONTENT)
async def tab_removed(tab_id: int, service: Service) -> None:
    await service.monitor.on_tab_removed(tab_id)
