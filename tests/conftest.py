"""
Shared fixtures.

The Qdrant store runs on the embedded ":memory:" engine so distance-based
behaviour is exercised against real cosine search. Embeddings come from a
deterministic stub: tests register exact vectors for the texts they care
about, and every other text gets its own orthogonal axis.
"""

from collections.abc import AsyncGenerator

import pytest

from keepsake.core.embeddings.base import Embedder
from keepsake.core.memory_store.memory_store import MemoryStore
from keepsake.core.vector_store.qdrant import QdrantStore

STUB_DIMENSION = 32
# Axes reserved for registered vectors; automatic texts never use them
RESERVED_AXES = 4


class StubEmbedder(Embedder):
    """Deterministic embedder for tests."""

    def __init__(self, dimension: int = STUB_DIMENSION):
        self.dimension = dimension
        self.vectors: dict[str, list[float]] = {}
        self.calls: list[str] = []
        self._next_axis = 0

    def register(self, text: str, vector: list[float]) -> None:
        """Pin the embedding of a text (padded with zeros)."""
        self.vectors[text] = list(vector) + [0.0] * (self.dimension - len(vector))

    async def embed(self, text: str, **kwargs) -> list[float]:
        self.calls.append(text)
        if text not in self.vectors:
            axis = RESERVED_AXES + self._next_axis % (self.dimension - RESERVED_AXES)
            self._next_axis += 1
            vector = [0.0] * self.dimension
            vector[axis] = 1.0
            self.vectors[text] = vector
        return list(self.vectors[text])

    async def close(self):
        pass


@pytest.fixture
def embedder() -> StubEmbedder:
    return StubEmbedder()


@pytest.fixture
async def qdrant_store() -> AsyncGenerator[QdrantStore, None]:
    """Embedded in-memory Qdrant collection."""
    store = QdrantStore(location=":memory:", collection_name="test_memories", vector_size=STUB_DIMENSION)
    yield store
    await store.close()


@pytest.fixture
async def memory_store(qdrant_store, embedder) -> AsyncGenerator[MemoryStore, None]:
    """Initialized memory store with default dedup thresholds."""
    store = MemoryStore(vector_store=qdrant_store, embedder=embedder)
    await store.initialize()
    yield store
    await store.close()
