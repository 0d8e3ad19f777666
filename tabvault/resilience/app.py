from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRouter
from loguru import logger

from tabvault.resilience.log import setup_logging
from tabvault.resilience.platform.bridge import HttpTabPlatform
from tabvault.resilience.service import ResilienceService, create_stores
from tabvault.resilience.settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings, server=True)

    logger.info("TabVault starting (host={}, port={})", settings.host, settings.port)
    prefix_info = f", prefix={settings.data_prefix}" if settings.data_prefix else ""
    logger.info("Data root: {} (store={}{})", settings.data_root, settings.state_store, prefix_info)
    logger.info("Browser bridge: {}", settings.bridge_url)

    _app.state.service = None

    local, sync = create_stores(settings)
    bridge = HttpTabPlatform(settings.bridge_url, timeout=settings.bridge_timeout)
    service = ResilienceService(local=local, sync=sync, platform=bridge, notifier=bridge)
    await service.start()
    _app.state.service = service

    yield

    # -- Shutdown --------------------------------------------------------------
    _app.state.service = None
    await service.stop()
    await bridge.aclose()
    logger.info("TabVault stopped")


app = FastAPI(title="TabVault", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


from tabvault.resilience.routers.autosave import router as autosave_router  # noqa: E402
from tabvault.resilience.routers.settings import router as settings_router  # noqa: E402
from tabvault.resilience.routers.snapshots import router as snapshots_router  # noqa: E402
from tabvault.resilience.routers.tabs import router as tabs_router  # noqa: E402
from tabvault.resilience.routers.workspaces import router as workspaces_router  # noqa: E402

api.include_router(snapshots_router)
api.include_router(settings_router)
api.include_router(autosave_router)
api.include_router(tabs_router)
api.include_router(workspaces_router)

app.include_router(api)
