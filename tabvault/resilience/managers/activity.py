"""Per-tab activity bookkeeping over the ``tabActivity`` key.

The map is keyed by the live tab id (stringified, since the stored document
is JSON).  Every mutation re-reads the map first: tab events and the
inactivity sweep interleave on the event loop and there is no lock.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from loguru import logger

from tabvault.resilience.models.activity import TabActivity
from tabvault.resilience.services.timers import now_ms
from tabvault.resilience.store.base import TAB_ACTIVITY_KEY

if TYPE_CHECKING:
    from tabvault.resilience.store.base import KeyValueStore


class ActivityTracker:
    def __init__(self, local: KeyValueStore, *, clock: Callable[[], int] = now_ms) -> None:
        self._local = local
        self._clock = clock

    async def _load_raw(self) -> dict:
        return await self._local.get(TAB_ACTIVITY_KEY) or {}

    async def get_all(self) -> dict[int, TabActivity]:
        """All readable records.  A malformed entry is logged and left out."""
        records: dict[int, TabActivity] = {}
        for tab_id, record in (await self._load_raw()).items():
            try:
                records[int(tab_id)] = TabActivity.model_validate(record)
            except ValueError as exc:
                logger.warning("Activity: skipping unreadable record for tab {}: {}", tab_id, exc)
        return records

    async def touch(self, tab_id: int) -> TabActivity:
        """Refresh ``last_accessed`` for a tab, creating the record on first sight.

        An unreadable stored record is replaced as if the tab were new.
        """
        now = self._clock()
        raw = await self._load_raw()
        existing = _parse(raw.get(str(tab_id)), tab_id)
        record = TabActivity.first_seen(now) if existing is None else existing.touched(now)
        raw[str(tab_id)] = record.to_store()
        await self._local.set(TAB_ACTIVITY_KEY, raw)
        return record

    async def forget(self, tab_id: int) -> None:
        raw = await self._load_raw()
        if raw.pop(str(tab_id), None) is not None:
            await self._local.set(TAB_ACTIVITY_KEY, raw)

    async def mark_suspended(self, tab_ids: Iterable[int]) -> list[int]:
        """Flag existing records as suspended.  Records are kept, not deleted."""
        now = self._clock()
        raw = await self._load_raw()
        marked: list[int] = []
        for tab_id in tab_ids:
            existing = _parse(raw.get(str(tab_id)), tab_id)
            if existing is None:
                continue
            raw[str(tab_id)] = existing.as_suspended(now).to_store()
            marked.append(tab_id)
        if marked:
            await self._local.set(TAB_ACTIVITY_KEY, raw)
            logger.debug("Activity: marked {} tabs suspended", len(marked))
        return marked


def _parse(record: Any, tab_id: int) -> TabActivity | None:
    if record is None:
        return None
    try:
        return TabActivity.model_validate(record)
    except ValueError as exc:
        logger.warning("Activity: discarding unreadable record for tab {}: {}", tab_id, exc)
        return None
