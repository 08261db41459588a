"""
Memory Store Facade - single entry point for memory persistence and retrieval.

Key responsibilities:
- Dedup-gated inserts (nearest neighbour of the same kind, per-kind threshold)
- Similarity search with kind/owner filters
- Recency, date-range and subject queries
- Atomic in-place updates that re-embed only when content changes
- Dimension migration when the embedder changes

The dedup probe is check-then-act: two concurrent inserts of near-identical
content can both pass it. Callers run one conversational turn at a time.
"""

from collections import Counter
from datetime import datetime
from typing import Any

from keepsake.config import DedupConfig
from keepsake.core.embeddings.base import Embedder
from keepsake.core.vector_store.base import SearchResult, VectorStore
from keepsake.models.memory import Memory, MemoryKind, MemoryPatch, split_subject
from keepsake.utils.exceptions import DimensionMismatchError, NotInitializedError
from keepsake.utils.id_generator import generate_memory_id
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class MemoryStore:
    """
    Facade over the vector store and the embedder.

    Services should use this instead of calling the vector store directly.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        dedup: DedupConfig | None = None,
        migrate_on_dimension_mismatch: bool = False,
    ):
        """
        Initialize MemoryStore facade.

        Args:
            vector_store: Vector database for semantic search
            embedder: Embedding provider used for content and queries
            dedup: Dedup thresholds (defaults: facts 0.10, entries 0.05)
            migrate_on_dimension_mismatch: Re-embed into a fresh collection
                instead of failing when the stored dimension differs
        """
        self.vector_store = vector_store
        self.embedder = embedder
        self.dedup = dedup or DedupConfig()
        self.migrate_on_dimension_mismatch = migrate_on_dimension_mismatch
        self._initialized = False

    async def initialize(self) -> None:
        """
        Prepare the underlying collection.

        Raises:
            DimensionMismatchError: If the collection disagrees with the
                embedder and migration is disabled
        """
        try:
            await self.vector_store.initialize()
        except DimensionMismatchError as e:
            if not self.migrate_on_dimension_mismatch:
                raise
            logger.bind(
                **e.context
            ).warning(f"Embedding dimension changed, migrating collection: {e.message}")
            await self._migrate()

        self._initialized = True
        logger.info("MemoryStore initialized")

    async def _migrate(self) -> None:
        """Read every row back, recreate the collection and re-embed."""
        rows = await self.vector_store.scroll_memories()
        await self.vector_store.recreate()
        if not rows:
            return

        vectors = await self.embedder.batch_embed([row.content for row in rows])
        for row, vector in zip(rows, vectors, strict=True):
            await self.vector_store.upsert_memory(row.model_copy(update={"embedding": vector}))

        logger.bind(
            count=len(rows), vector_size=self.vector_store.vector_size
        ).info(f"Re-embedded {len(rows)} memories")

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("MemoryStore not initialized; call initialize() first")

    def threshold_for(self, kind: MemoryKind) -> float:
        """Dedup distance threshold for a kind."""
        if kind == MemoryKind.USER_FACT:
            return self.dedup.fact_threshold
        return self.dedup.entry_threshold

    async def add(
        self,
        content: str,
        kind: MemoryKind | str,
        owner_id: int,
        tags: list[str] | None = None,
        media_ref: str | None = None,
        source_text: str | None = None,
        subject: str | None = None,
        created_at: datetime | None = None,
    ) -> str | None:
        """
        Insert a memory unless a near-duplicate of the same kind exists.

        Facts are probed within the same owner, other kinds across owners.

        Args:
            content: Memory text
            kind: Memory kind
            owner_id: Participant the memory was captured from
            tags: Short topic labels
            media_ref: Optional photo/video handle
            source_text: Optional verbatim excerpt
            subject: Optional comma-joined subject names
            created_at: Optional creation time (defaults to now)

        Returns:
            New memory ID, or None when the insert was skipped as a duplicate
        """
        self._require_initialized()
        kind = MemoryKind(kind)

        embedding = await self.embedder.embed(content)

        probe_filters: dict[str, Any] = {"kind": kind.value}
        if kind == MemoryKind.USER_FACT:
            probe_filters["owner_id"] = owner_id

        nearest = await self.vector_store.search_similar(embedding, limit=1, filters=probe_filters)
        threshold = self.threshold_for(kind)
        if nearest and nearest[0].distance < threshold:
            logger.bind(
                kind=kind.value,
                owner_id=owner_id,
                distance=nearest[0].distance,
                threshold=threshold,
                duplicate_of=nearest[0].memory.id,
            ).debug("Skipping near-duplicate memory")
            return None

        memory = Memory(
            id=generate_memory_id(),
            owner_id=owner_id,
            content=content,
            kind=kind,
            tags=tags or [],
            embedding=embedding,
            media_ref=media_ref,
            source_text=source_text,
            subject=subject,
            created_at=created_at or datetime.now(),
        )
        await self.vector_store.upsert_memory(memory)

        logger.bind(
            memory_id=memory.id, kind=kind.value, owner_id=owner_id
        ).info(f"Stored memory {memory.id}")
        return memory.id

    async def search_with_distance(
        self,
        query: str,
        limit: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """
        Semantic search returning each memory with its cosine distance.

        Args:
            query: Search text
            limit: Maximum results
            filters: Optional equality filters on kind and/or owner_id

        Returns:
            Results ordered by ascending distance
        """
        self._require_initialized()
        vector = await self.embedder.embed(query)
        return await self.vector_store.search_similar(vector, limit=limit, filters=filters)

    async def search(
        self,
        query: str,
        limit: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> list[Memory]:
        """Semantic search ranked by ascending cosine distance."""
        results = await self.search_with_distance(query, limit=limit, filters=filters)
        return [result.memory for result in results]

    async def recent(self, limit: int = 10) -> list[Memory]:
        """
        Newest memories first.

        Scans the whole collection and sorts in Python, so cost grows with
        the total memory count.
        """
        self._require_initialized()
        rows = await self.vector_store.scroll_memories()
        rows.sort(key=lambda row: row.created_at, reverse=True)
        return rows[:limit]

    async def by_date_range(
        self, start: datetime, end: datetime, limit: int = 50
    ) -> list[Memory]:
        """
        Memories created in [start, end), oldest first.

        Args:
            start: Inclusive lower bound
            end: Exclusive upper bound
            limit: Maximum results
        """
        self._require_initialized()
        rows = await self.vector_store.scroll_memories(created_from=start, created_before=end)
        rows.sort(key=lambda row: row.created_at)
        return rows[:limit]

    async def by_subject(self, names: list[str]) -> list[Memory]:
        """
        Memories whose subject names intersect the given names, case-insensitively.

        Returns:
            Matching memories, newest first
        """
        self._require_initialized()
        keys = sorted({key.casefold() for name in names for key in split_subject(name)})
        if not keys:
            return []

        rows = await self.vector_store.scroll_memories(subject_keys=keys)
        rows.sort(key=lambda row: row.created_at, reverse=True)
        return rows

    async def get(self, memory_id: str) -> Memory | None:
        """Fetch one memory by ID."""
        self._require_initialized()
        return await self.vector_store.get_memory(memory_id)

    async def update(self, memory_id: str, patch: MemoryPatch) -> Memory | None:
        """
        Replace a memory in place with the patched fields.

        Re-embeds only when content changes. created_at and owner_id are
        preserved. The write is a single upsert of the same point.

        Args:
            memory_id: Memory identifier
            patch: Fields to change; unset fields are left as is

        Returns:
            Updated memory, or None if the ID is unknown
        """
        self._require_initialized()
        existing = await self.vector_store.get_memory(memory_id)
        if existing is None:
            return None

        changes = patch.changes()
        merged = existing.model_dump()
        merged.update(changes)

        if "content" in changes and changes["content"] != existing.content:
            merged["embedding"] = await self.embedder.embed(changes["content"])

        updated = Memory.model_validate(merged)
        await self.vector_store.upsert_memory(updated)

        logger.bind(memory_id=memory_id, fields=sorted(changes)).info(f"Updated memory {memory_id}")
        return updated

    async def delete(self, memory_id: str) -> bool:
        """
        Delete a memory.

        Returns:
            True if it existed
        """
        self._require_initialized()
        if await self.vector_store.get_memory(memory_id) is None:
            return False
        await self.vector_store.delete_memory(memory_id)
        logger.bind(memory_id=memory_id).info(f"Deleted memory {memory_id}")
        return True

    async def delete_all(self) -> None:
        self._require_initialized()
        await self.vector_store.delete_all()
        logger.warning("Deleted all memories")

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        self._require_initialized()
        return await self.vector_store.count_memories(filters)

    async def export_all(self) -> list[Memory]:
        """Every memory, oldest first, without embeddings."""
        self._require_initialized()
        rows = await self.vector_store.scroll_memories()
        rows.sort(key=lambda row: row.created_at)
        return rows

    async def facts_for(self, owner_id: int, limit: int | None = None) -> list[Memory]:
        """User facts captured from one owner, newest first."""
        self._require_initialized()
        rows = await self.vector_store.scroll_memories(
            filters={"kind": MemoryKind.USER_FACT.value, "owner_id": owner_id}
        )
        rows.sort(key=lambda row: row.created_at, reverse=True)
        return rows[:limit] if limit is not None else rows

    async def all_facts(self) -> list[Memory]:
        """Every user fact across owners, newest first."""
        self._require_initialized()
        rows = await self.vector_store.scroll_memories(
            filters={"kind": MemoryKind.USER_FACT.value}
        )
        rows.sort(key=lambda row: row.created_at, reverse=True)
        return rows

    async def stats(self) -> dict[str, Any]:
        """
        Summary statistics.

        Returns:
            Dictionary with total count, per-kind counts and the oldest and
            newest creation times (None when empty)
        """
        self._require_initialized()
        rows = await self.vector_store.scroll_memories()
        by_kind = Counter(row.kind.value for row in rows)
        created = [row.created_at for row in rows]
        return {
            "total": len(rows),
            "by_kind": {kind.value: by_kind.get(kind.value, 0) for kind in MemoryKind},
            "oldest": min(created) if created else None,
            "newest": max(created) if created else None,
        }

    async def close(self) -> None:
        await self.vector_store.close()
        self._initialized = False
