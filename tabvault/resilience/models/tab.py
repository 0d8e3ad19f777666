"""Live tab as reported by the tab platform."""

from __future__ import annotations

from tabvault.resilience.models.base import StoredModel
from tabvault.resilience.models.enums import TabStatus

INTERNAL_URL_PREFIXES = ("chrome://", "chrome-extension://", "moz-extension://")
"""Schemes that belong to the host browser and are never captured or suspended."""


def is_internal_url(url: str) -> bool:
    return url.startswith(INTERNAL_URL_PREFIXES)


class LiveTab(StoredModel):
    """Transient tab properties; a handle to a live tab, never persisted as-is."""

    id: int
    url: str = ""
    title: str = ""
    fav_icon_url: str | None = None
    pinned: bool = False
    audible: bool = False
    active: bool = False
    discarded: bool = False
    status: TabStatus = TabStatus.COMPLETE
    window_id: int | None = None
    index: int | None = None

    @property
    def is_internal(self) -> bool:
        return is_internal_url(self.url)

    @property
    def is_loading(self) -> bool:
        return self.status == TabStatus.LOADING
