"""Tests for user settings (stored config) and process settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tabvault.resilience.managers.settings import ensure_defaults, load_config, update_config
from tabvault.resilience.models.api import AutoSaveSettingsUpdate, InactivitySettingsUpdate
from tabvault.resilience.models.config import ResilienceConfig
from tabvault.resilience.settings import TabvaultSettings, _get_settings_cached, get_settings
from tabvault.resilience.store.base import SETTINGS_KEY, SNAPSHOTS_KEY, TAB_ACTIVITY_KEY, WORKSPACES_KEY
from tabvault.resilience.store.memory import MemoryKeyValueStore

# ---------------------------------------------------------------------------
# Stored config
# ---------------------------------------------------------------------------


async def test_load_defaults_when_absent(sync: MemoryKeyValueStore) -> None:
    config = await load_config(sync)
    assert config.auto_save_enabled is True
    assert config.auto_save_interval == 60
    assert config.max_auto_save_snapshots == 10
    assert config.snapshot_max_age_ms == 24 * 60 * 60 * 1000
    assert config.inactive_timeout_ms == 60 * 60 * 1000
    assert config.protected_domains == []


async def test_update_preserves_foreign_keys(sync: MemoryKeyValueStore) -> None:
    await sync.set(SETTINGS_KEY, {"theme": "dark", "autoSaveInterval": 120})

    merged = await update_config(sync, {"auto_save_enabled": False})

    assert merged.auto_save_enabled is False
    stored = await sync.get(SETTINGS_KEY)
    assert stored["theme"] == "dark"
    assert stored["autoSaveInterval"] == 120
    assert stored["autoSaveEnabled"] is False


async def test_update_rejects_bad_values(sync: MemoryKeyValueStore) -> None:
    with pytest.raises(ValidationError):
        await update_config(sync, {"auto_save_interval": "often"})
    assert await sync.get(SETTINGS_KEY) is None


def test_snapshot_cap_has_floor() -> None:
    assert ResilienceConfig(max_auto_save_snapshots=0).snapshot_cap == 1


async def test_ensure_defaults(local: MemoryKeyValueStore, sync: MemoryKeyValueStore) -> None:
    await local.set(WORKSPACES_KEY, [{"id": "keep", "name": "Keep", "timestamp": 1}])

    await ensure_defaults(local, sync)

    assert (await sync.get(SETTINGS_KEY))["autoSaveEnabled"] is True
    assert await local.get(WORKSPACES_KEY) == [{"id": "keep", "name": "Keep", "timestamp": 1}]
    assert await local.get(SNAPSHOTS_KEY) == []
    assert await local.get(TAB_ACTIVITY_KEY) == {}


async def test_ensure_defaults_keeps_existing_settings(local: MemoryKeyValueStore, sync: MemoryKeyValueStore) -> None:
    await sync.set(SETTINGS_KEY, {"autoSaveEnabled": False})
    await ensure_defaults(local, sync)
    assert await sync.get(SETTINGS_KEY) == {"autoSaveEnabled": False}


# ---------------------------------------------------------------------------
# Partial update schemas
# ---------------------------------------------------------------------------


def test_auto_save_update_maps_only_set_fields() -> None:
    update = AutoSaveSettingsUpdate.model_validate({"interval": 30, "maxSnapshots": 5})
    assert update.to_config() == {"auto_save_interval": 30, "max_auto_save_snapshots": 5}


def test_inactivity_update_maps_fields() -> None:
    update = InactivitySettingsUpdate.model_validate({"enabled": True, "protectedDomains": ["*.corp.io"]})
    assert update.to_config() == {"auto_close_inactive_tabs": True, "protected_domains": ["*.corp.io"]}


def test_update_schema_validates() -> None:
    with pytest.raises(ValidationError):
        AutoSaveSettingsUpdate.model_validate({"interval": 0})


# ---------------------------------------------------------------------------
# Process settings
# ---------------------------------------------------------------------------


def test_process_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABVAULT_STATE_STORE", "memory")
    monkeypatch.setenv("TABVAULT_PORT", "9000")
    settings = TabvaultSettings()
    assert settings.state_store == "memory"
    assert settings.port == 9000
    assert settings.bridge_url == "http://127.0.0.1:8766"


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    _get_settings_cached.cache_clear()
    monkeypatch.setenv("TABVAULT_LOG_LEVEL", "DEBUG")
    try:
        assert get_settings() is get_settings()
        assert get_settings().log_level == "DEBUG"
    finally:
        _get_settings_cached.cache_clear()
