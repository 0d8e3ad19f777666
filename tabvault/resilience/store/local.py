"""Local filesystem key-value store.

Stores one JSON document per key under a unified data root with optional
namespace prefix::

    {data_root}/{prefix}/{scope}/{key}.json

When prefix is None, the path collapses to::

    {data_root}/{scope}/{key}.json

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.

Writes are atomic: data is written to a temporary file in the same directory,
then renamed to the target path.  A single key therefore never holds a
partially-written value, even if the process is killed mid-write.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import tempfile
from functools import partial
from pathlib import Path
from typing import Any

from anyio import to_thread

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
_SUFFIX = ".json"


class LocalKeyValueStore:
    """Local filesystem implementation of the KeyValueStore protocol.

    Layout::

        {base}/{key}.json

    Where ``base`` is ``data_root / prefix / scope`` (prefix optional).
    """

    def __init__(self, data_root: str | Path, scope: str, prefix: str | None = None) -> None:
        base = Path(data_root)
        if prefix:
            base = base / prefix
        self._base = base / scope

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith("."):
            msg = f"Invalid store key: {key!r}"
            raise ValueError(msg)
        return self._base / f"{key}{_SUFFIX}"

    # -- Write -----------------------------------------------------------------

    async def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        data = json.dumps(value, ensure_ascii=False)
        await to_thread.run_sync(partial(_atomic_write, path, data))

    async def remove(self, key: str) -> None:
        path = self._path(key)
        await to_thread.run_sync(partial(_unlink, path))

    # -- Read ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        path = self._path(key)
        raw = await to_thread.run_sync(partial(_read_file, path))
        if raw is None:
            return None
        return json.loads(raw)

    async def keys(self) -> list[str]:
        return await to_thread.run_sync(partial(_list_keys, self._base))


# -- Sync helpers (run in thread pool) -----------------------------------------


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    Ensures readers never see a partially-written file.  The temp file is
    created in the same directory so ``os.replace`` is atomic on POSIX.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on any failure.
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _read_file(path: Path) -> str | None:
    """Read file contents.  Returns ``None`` if missing."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _unlink(path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        path.unlink()


def _list_keys(base: Path) -> list[str]:
    if not base.is_dir():
        return []
    return sorted(p.name[: -len(_SUFFIX)] for p in base.iterdir() if p.is_file() and p.name.endswith(_SUFFIX))
