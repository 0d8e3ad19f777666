"""HTTP bridge to the host browser.

The browser-side extension exposes a small HTTP bridge; this adapter
implements both ``TabPlatform`` and ``Notifier`` on top of it::

    GET  {base_url}/tabs                  -> [LiveTab, ...]
    POST {base_url}/tabs/{tab_id}/discard
    POST {base_url}/notifications         {kind, title, message}

Transport failures and non-2xx responses surface as ``PlatformError``.
"""

from __future__ import annotations

import httpx
from pydantic import TypeAdapter

from tabvault.resilience.errors import PlatformError
from tabvault.resilience.models.enums import NotificationKind
from tabvault.resilience.models.tab import LiveTab

_TABS_ADAPTER = TypeAdapter(list[LiveTab])


class HttpTabPlatform:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- TabPlatform -----------------------------------------------------------

    async def query_tabs(self) -> list[LiveTab]:
        try:
            resp = await self._client.get("/tabs")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            msg = f"Tab enumeration failed: {exc}"
            raise PlatformError(msg) from exc
        try:
            return _TABS_ADAPTER.validate_python(resp.json())
        except ValueError as exc:
            msg = f"Malformed tab list from bridge: {exc}"
            raise PlatformError(msg) from exc

    async def discard(self, tab_id: int) -> None:
        try:
            resp = await self._client.post(f"/tabs/{tab_id}/discard")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            msg = f"Discard failed for tab {tab_id}: {exc}"
            raise PlatformError(msg, tab_id=tab_id) from exc

    # -- Notifier --------------------------------------------------------------

    async def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        try:
            resp = await self._client.post(
                "/notifications",
                json={"kind": str(kind), "title": title, "message": message},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            msg = f"Notification failed: {exc}"
            raise PlatformError(msg) from exc
