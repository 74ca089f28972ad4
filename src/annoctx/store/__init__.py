"""Store interface and the in-memory reference store."""

from annoctx.store.memory import MemoryStore
from annoctx.store.protocol import Listener, StoreProtocol, Unsubscribe

__all__ = ["Listener", "MemoryStore", "StoreProtocol", "Unsubscribe"]
