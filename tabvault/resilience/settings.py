"""Process configuration loaded from TABVAULT_* environment variables.

These are deployment settings (where state lives, how to reach the host
browser).  User-facing preferences are a different layer: the
``ResilienceConfig`` document persisted in the synced store scope.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class TabvaultSettings(BaseSettings):
    """TabVault service settings.

    All fields are read from environment variables with the ``TABVAULT_``
    prefix.  For example, ``TABVAULT_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TABVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False
    """Emit one JSON object per line instead of the coloured console format."""

    log_file: str | None = None
    """Also write logs to this file, rotated daily and kept for a week."""

    # -- Persistent store ------------------------------------------------------
    data_root: str = "./data"
    """Root directory for the ``local`` and ``sync`` store scopes."""

    data_prefix: str | None = None
    """Optional namespace prefix: paths become ``{data_root}/{data_prefix}/{scope}/...``."""

    state_store: Literal["local", "memory"] = "local"
    """``memory`` keeps everything in-process (nothing survives a restart)."""

    # -- Host browser bridge ---------------------------------------------------
    bridge_url: str = "http://127.0.0.1:8766"
    bridge_timeout: float = 10.0

    # -- Server ----------------------------------------------------------------
    host: str = "127.0.0.1"
    port: int = 8765
    graceful_shutdown_timeout: int = 30
    """Seconds uvicorn waits for in-flight requests (a running cycle) on shutdown."""


@lru_cache(maxsize=1)
def _get_settings_cached() -> TabvaultSettings:
    return TabvaultSettings()


def get_settings() -> TabvaultSettings:
    """Process-wide settings, read once.  Tests reset with ``_get_settings_cached.cache_clear()``."""
    return _get_settings_cached()
