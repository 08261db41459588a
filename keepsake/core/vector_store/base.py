"""
Base interface for vector storage of memories.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from keepsake.models.memory import Memory


class SearchResult(BaseModel):
    """Vector search result with cosine distance (0 = identical)."""

    memory: Memory
    distance: float
    metadata: dict[str, Any] = {}


class VectorStore(ABC):
    """
    Abstract base class for vector storage implementations.

    Filters are plain dictionaries ANDed together:
        {"kind": "user_fact", "owner_id": 7}
    Values may be lists, meaning "any of".
    """

    vector_size: int

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the vector store (create collections/indices).

        Raises:
            DimensionMismatchError: If an existing collection has another vector size
            VectorStoreError: If initialization fails
        """
        pass

    @abstractmethod
    async def upsert_memory(self, memory: Memory) -> None:
        """
        Store or replace a memory with its embedding in a single write.

        Args:
            memory: Memory object with embedding

        Raises:
            ValidationError: If memory is invalid
            VectorStoreError: If upsert operation fails
        """
        pass

    @abstractmethod
    async def search_similar(
        self,
        vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """
        Search for nearest memories by cosine distance.

        Args:
            vector: Query embedding vector
            limit: Maximum results
            filters: Optional equality filters

        Returns:
            Results ordered by ascending distance
        """
        pass

    @abstractmethod
    async def scroll_memories(
        self,
        filters: dict[str, Any] | None = None,
        created_from: datetime | None = None,
        created_before: datetime | None = None,
        subject_keys: list[str] | None = None,
        with_vectors: bool = False,
    ) -> list[Memory]:
        """
        Fetch every memory matching the filters (unordered, full scan).

        Args:
            filters: Optional equality filters
            created_from: Inclusive lower bound on created_at
            created_before: Exclusive upper bound on created_at
            subject_keys: Case-folded names, any of which must appear in the subject
            with_vectors: Whether to load embeddings

        Returns:
            List of matching memories
        """
        pass

    @abstractmethod
    async def get_memory(self, memory_id: str) -> Memory | None:
        """
        Retrieve a memory by ID.

        Args:
            memory_id: Memory identifier

        Returns:
            Memory or None if not found
        """
        pass

    @abstractmethod
    async def delete_memory(self, memory_id: str) -> None:
        """
        Delete a memory from the store.

        Args:
            memory_id: Memory identifier
        """
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        """Delete every memory, keeping the collection."""
        pass

    @abstractmethod
    async def count_memories(self, filters: dict[str, Any] | None = None) -> int:
        """
        Count memories matching filters.

        Args:
            filters: Optional filter conditions

        Returns:
            Number of memories
        """
        pass

    @abstractmethod
    async def recreate(self) -> None:
        """Drop and recreate the collection with the configured vector size."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the vector store."""
        pass
