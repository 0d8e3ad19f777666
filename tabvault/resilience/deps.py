"""FastAPI dependency injection for the resilience service.

Usage in route handlers::

    @router.post("/trigger")
    async def trigger(service: Service) -> ManualSaveResult:
        ...

The dependency raises HTTP 503 if the service was not started (lifespan
failed or did not run).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from tabvault.resilience.service import ResilienceService


def get_service(request: Request) -> ResilienceService:
    """Return the shared resilience service."""
    service: ResilienceService | None = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Resilience service is not running.",
        )
    return service


Service = Annotated[ResilienceService, Depends(get_service)]
"""Annotated dependency: the running resilience service."""
