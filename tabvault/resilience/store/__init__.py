"""Key-value store implementations for durable state."""

from tabvault.resilience.store.base import KeyValueStore
from tabvault.resilience.store.local import LocalKeyValueStore
from tabvault.resilience.store.memory import MemoryKeyValueStore

__all__ = ["KeyValueStore", "LocalKeyValueStore", "MemoryKeyValueStore"]
