"""In-memory key-value store.

Values are deep-copied on the way in and out so callers never alias stored
state, matching the whole-value replace semantics of the durable backends.
"""

from __future__ import annotations

import copy
from typing import Any


class MemoryKeyValueStore:
    """Process-local implementation of the KeyValueStore protocol."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._data)
