"""Snapshot store -- crash-safe persistence of workspace snapshots.

The canonical snapshot list lives under ``autoSaveSnapshots``, newest first.
Without transactions or locks, atomicity comes from ordering alone:

1. Load the current list and the configured caps.
2. Write the new snapshot to ``temp_snapshot_{id}``.
3. Read the temporary key back and verify the id.
4. Build ``[new, *old]``, drop entries past the maximum age, cut to the cap.
5. Replace the canonical list (the only mutation of it).
6. Read the canonical list back and verify its head id.
7. Remove the temporary key.

A failure in steps 1-6 removes the temporary key (best effort) and raises
``AtomicWriteError`` chained to the cause.  If it happens at step 5 or 6,
the list loaded in step 1 is written back first, so entries cut by the
cap are not lost.  A process killed mid-protocol can leave an orphaned
temporary key; ``cleanup`` purges those.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from loguru import logger

from tabvault.resilience.errors import AtomicWriteError, IntegrityError, ValidationError
from tabvault.resilience.managers.settings import load_config
from tabvault.resilience.models.snapshot import Snapshot
from tabvault.resilience.services.timers import now_ms
from tabvault.resilience.store.base import SNAPSHOTS_KEY, TEMP_SNAPSHOT_PREFIX

if TYPE_CHECKING:
    from tabvault.resilience.store.base import KeyValueStore

MAX_SNAPSHOT_TABS = 1000
MAX_SNAPSHOT_WORKSPACES = 100
REQUIRED_FIELDS = ("id", "timestamp", "sessionId", "version", "workspaces", "tabs", "metadata")


def temp_key_for(snapshot_id: str) -> str:
    return f"{TEMP_SNAPSHOT_PREFIX}{snapshot_id}"


# ---------------------------------------------------------------------------
# Validation gate
# ---------------------------------------------------------------------------


def _is_sequence(value: Any) -> bool:
    return isinstance(value, list | tuple)


def validate_snapshot(payload: Any) -> None:
    """Check a stored-form snapshot.  Raises ``ValidationError`` on the first problem."""
    if not isinstance(payload, Mapping):
        raise ValidationError("snapshot must be a mapping")

    for field in REQUIRED_FIELDS:
        if field not in payload:
            raise ValidationError(f"missing required field '{field}'")

    workspaces = payload["workspaces"]
    tabs = payload["tabs"]
    if not _is_sequence(workspaces):
        raise ValidationError("workspaces must be a sequence")
    if not _is_sequence(tabs):
        raise ValidationError("tabs must be a sequence")

    timestamp = payload["timestamp"]
    if isinstance(timestamp, bool) or not isinstance(timestamp, int) or timestamp <= 0:
        raise ValidationError("timestamp must be a positive integer")

    if len(tabs) > MAX_SNAPSHOT_TABS:
        raise ValidationError(f"{len(tabs)} tabs exceeds maximum of {MAX_SNAPSHOT_TABS}")
    if len(workspaces) > MAX_SNAPSHOT_WORKSPACES:
        raise ValidationError(f"{len(workspaces)} workspaces exceeds maximum of {MAX_SNAPSHOT_WORKSPACES}")

    for tab in tabs:
        url = tab.get("url") if isinstance(tab, Mapping) else None
        if not isinstance(url, str) or not url:
            raise ValidationError("tab missing valid URL")


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------


def apply_retention(entries: Sequence[Any], *, cap: int, cutoff: int, keep_head: bool = False) -> list[dict]:
    """Drop malformed entries, entries at or before ``cutoff`` and entries past ``cap``.

    With ``keep_head`` the first entry survives the age rule (a freshly
    written snapshot is always retained).
    """
    kept: list[dict] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            continue
        timestamp = entry.get("timestamp")
        fresh = isinstance(timestamp, int) and timestamp > cutoff
        if fresh or (keep_head and index == 0):
            kept.append(entry)
    return kept[:cap]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SnapshotStore:
    """Owns the write / trim / evict protocol for snapshots.

    Ids currently being written by this process are tracked so a concurrent
    cleanup never mistakes their temporary key for an orphan.
    """

    def __init__(
        self,
        local: KeyValueStore,
        sync: KeyValueStore,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._local = local
        self._sync = sync
        self._clock = clock
        self._staging: set[str] = set()

    # -- Read ------------------------------------------------------------------

    async def _load_raw(self) -> list:
        raw = await self._local.get(SNAPSHOTS_KEY)
        return raw if isinstance(raw, list) else []

    async def list_snapshots(self) -> list[Snapshot]:
        """Return stored snapshots, newest first.  Unreadable entries are skipped."""
        snapshots: list[Snapshot] = []
        for entry in await self._load_raw():
            try:
                snapshots.append(Snapshot.model_validate(entry))
            except ValueError:
                logger.warning("Snapshots: skipping unreadable entry {}", _entry_id(entry))
        return snapshots

    async def latest(self) -> Snapshot | None:
        snapshots = await self.list_snapshots()
        return snapshots[0] if snapshots else None

    async def get_snapshots(self, snapshot_ids: Iterable[str]) -> list[Snapshot]:
        """Return the requested snapshots in request order; unknown ids are skipped."""
        by_id = {s.id: s for s in await self.list_snapshots()}
        return [by_id[sid] for sid in snapshot_ids if sid in by_id]

    # -- Write -----------------------------------------------------------------

    async def save(self, snapshot: Snapshot | Mapping[str, Any]) -> None:
        """Validate and atomically persist a snapshot.

        Raises ``ValidationError`` (nothing written) or ``AtomicWriteError``
        (canonical list untouched).
        """
        payload = snapshot.to_store() if isinstance(snapshot, Snapshot) else dict(snapshot)
        validate_snapshot(payload)

        snapshot_id = str(payload["id"])
        self._staging.add(snapshot_id)
        try:
            count = await self._save_atomic(snapshot_id, payload)
        finally:
            self._staging.discard(snapshot_id)
        logger.info("Snapshot saved atomically: {} ({} retained)", snapshot_id, count)

    async def _save_atomic(self, snapshot_id: str, payload: dict[str, Any]) -> int:
        temp_key = temp_key_for(snapshot_id)
        existing: list = []
        canonical_touched = False
        try:
            existing = await self._load_raw()
            config = await load_config(self._sync)

            await self._local.set(temp_key, payload)
            staged = await self._local.get(temp_key)
            if not isinstance(staged, dict) or staged.get("id") != snapshot_id:
                raise IntegrityError(snapshot_id, "Temporary snapshot read-back mismatch")

            retained = apply_retention(
                [payload, *existing],
                cap=config.snapshot_cap,
                cutoff=self._clock() - config.snapshot_max_age_ms,
                keep_head=True,
            )
            canonical_touched = True
            await self._local.set(SNAPSHOTS_KEY, retained)

            committed = await self._local.get(SNAPSHOTS_KEY)
            head = committed[0] if isinstance(committed, list) and committed else None
            if not isinstance(head, dict) or head.get("id") != snapshot_id:
                raise IntegrityError(snapshot_id, "Canonical snapshot list read-back mismatch")
        except Exception as exc:
            try:
                await self._local.remove(temp_key)
            except Exception:
                logger.exception("Snapshots: failed to remove temporary key {}", temp_key)
            if canonical_touched:
                await self._restore_canonical(snapshot_id, existing)
            if isinstance(exc, AtomicWriteError):
                raise
            msg = f"Atomic snapshot save failed: {exc}"
            raise AtomicWriteError(snapshot_id, msg) from exc

        try:
            await self._local.remove(temp_key)
        except Exception:
            # Committed already; the orphaned key is purged by the next cleanup.
            logger.warning("Snapshots: could not remove temporary key {} after commit", temp_key)
        return len(retained)

    async def _restore_canonical(self, snapshot_id: str, previous: list) -> None:
        """Put back the list read in step 1 after a failed canonical write or read-back."""
        try:
            await self._local.set(SNAPSHOTS_KEY, previous)
        except Exception:
            logger.exception("Snapshots: could not restore the snapshot list after failed save {}", snapshot_id)
        else:
            logger.warning("Snapshots: restored the previous snapshot list after failed save {}", snapshot_id)

    # -- Cleanup ---------------------------------------------------------------

    async def cleanup_failed(self, snapshot_id: str) -> bool:
        """Purge every artifact written under ``snapshot_id``.

        Returns ``True`` if the canonical list held the id and was rewritten.
        """
        await self._local.remove(temp_key_for(snapshot_id))
        current = await self._load_raw()
        filtered = [entry for entry in current if isinstance(entry, dict) and entry.get("id") != snapshot_id]
        if len(filtered) == len(current):
            return False
        await self._local.set(SNAPSHOTS_KEY, filtered)
        logger.info("Snapshots: purged failed snapshot {}", snapshot_id)
        return True

    async def evict(self) -> int:
        """Drop snapshots past the maximum age or count in one replace.  Returns the number dropped."""
        config = await load_config(self._sync)
        current = await self._load_raw()
        retained = apply_retention(
            current,
            cap=config.snapshot_cap,
            cutoff=self._clock() - config.snapshot_max_age_ms,
        )
        dropped = len(current) - len(retained)
        if dropped:
            await self._local.set(SNAPSHOTS_KEY, retained)
            logger.info("Snapshots: evicted {} old snapshots", dropped)
        return dropped

    async def purge_orphans(self) -> list[str]:
        """Remove temporary snapshot keys not owned by an in-flight write."""
        purged: list[str] = []
        for key in await self._local.keys():
            if not key.startswith(TEMP_SNAPSHOT_PREFIX):
                continue
            if key[len(TEMP_SNAPSHOT_PREFIX) :] in self._staging:
                continue
            await self._local.remove(key)
            purged.append(key)
        if purged:
            logger.info("Snapshots: purged {} orphaned temporary keys", len(purged))
        return purged

    async def cleanup(self) -> int:
        """Periodic cleanup: age / count eviction plus orphaned temporary keys."""
        dropped = await self.evict()
        await self.purge_orphans()
        return dropped

    async def clear(self) -> None:
        """Clear all recovery data."""
        await self._local.set(SNAPSHOTS_KEY, [])
        await self.purge_orphans()
        logger.info("Snapshots: recovery data cleared")


def _entry_id(entry: Any) -> str:
    return str(entry.get("id")) if isinstance(entry, dict) else "<malformed>"
