"""
Vector store implementations for Keepsake.

Provides abstract base and concrete implementations for vector storage.
"""

from keepsake.core.vector_store.base import SearchResult, VectorStore
from keepsake.core.vector_store.qdrant import QdrantStore

__all__ = [
    "VectorStore",
    "SearchResult",
    "QdrantStore",
]
