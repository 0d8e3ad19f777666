"""User settings access over the synced store scope."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from tabvault.resilience.models.config import ResilienceConfig
from tabvault.resilience.store.base import (
    SETTINGS_KEY,
    SNAPSHOTS_KEY,
    TAB_ACTIVITY_KEY,
    WORKSPACES_KEY,
)

if TYPE_CHECKING:
    from tabvault.resilience.store.base import KeyValueStore


async def load_config(sync: KeyValueStore) -> ResilienceConfig:
    """Read the stored settings, falling back to defaults for missing keys."""
    raw = await sync.get(SETTINGS_KEY)
    return ResilienceConfig.model_validate(raw or {})


async def update_config(sync: KeyValueStore, changes: dict[str, Any]) -> ResilienceConfig:
    """Merge ``changes`` (attribute names) into the stored settings.

    Re-reads the document right before writing so concurrent edits by other
    collaborators to unrelated keys are not lost.
    """
    current = await load_config(sync)
    # Round-trip through validation so bad values never reach the store.
    merged = ResilienceConfig.model_validate(current.model_copy(update=changes).to_store())
    await sync.set(SETTINGS_KEY, merged.to_store())
    logger.debug("Settings: updated {}", sorted(changes))
    return merged


async def ensure_defaults(local: KeyValueStore, sync: KeyValueStore) -> None:
    """Install-time initialisation: write defaults for any absent key."""
    if await sync.get(SETTINGS_KEY) is None:
        await sync.set(SETTINGS_KEY, ResilienceConfig().to_store())
        logger.info("Settings: wrote defaults")

    for key, empty in ((WORKSPACES_KEY, []), (SNAPSHOTS_KEY, []), (TAB_ACTIVITY_KEY, {})):
        if await local.get(key) is None:
            await local.set(key, empty)
