"""Memory store facade for Keepsake."""

from keepsake.core.memory_store.memory_store import MemoryStore

__all__ = [
    "MemoryStore",
]
