"""
Qdrant vector store implementation for memories.

Runs against a Qdrant server or the embedded engine (":memory:" or a local path).
"""

from datetime import datetime
from typing import Any
from uuid import NAMESPACE_DNS, UUID, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    HnswConfigDiff,
    MatchAny,
    MatchValue,
    OptimizersConfigDiff,
    PayloadSchemaType,
    PointStruct,
    Range,
    ScalarQuantization,
    ScalarQuantizationConfig,
    ScalarType,
    VectorParams,
)

from keepsake.core.vector_store.base import SearchResult, VectorStore
from keepsake.models.memory import Memory, MemoryKind
from keepsake.utils.exceptions import DimensionMismatchError, ValidationError, VectorStoreError
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)

FILTERABLE_FIELDS = frozenset({"kind", "owner_id"})


class QdrantStore(VectorStore):
    """
    Qdrant vector store for memory embeddings.

    Features:
    - Cosine distance (distance = 1 - Qdrant similarity score)
    - Payload indices on kind, owner_id, created_at_ts and subject_keys
    - Single-point upsert, so replacing a memory is atomic
    - Paginated scrolls for the full-scan queries
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        collection_name: str = "memories",
        vector_size: int = 768,
        location: str | None = None,
        use_grpc: bool = False,
        use_quantization: bool = False,
        quantization_type: str = "int8",
        hnsw_m: int = 16,
        hnsw_ef_construct: int = 100,
        on_disk: bool = False,
        scroll_batch_size: int = 256,
        timeout: int = 30,
    ):
        """
        Initialize Qdrant store.

        Args:
            host: Qdrant host
            port: Qdrant port (6333 for HTTP, 6334 for gRPC)
            collection_name: Collection name
            vector_size: Embedding dimension
            location: ":memory:" or a directory for the embedded engine (overrides host)
            use_grpc: Use gRPC connection (faster)
            use_quantization: Use int8 quantization (memory efficient)
            quantization_type: Type of quantization (int8)
            hnsw_m: HNSW M parameter (connections per node)
            hnsw_ef_construct: HNSW ef_construct parameter
            on_disk: Store vectors on disk (reduces RAM usage)
            scroll_batch_size: Page size for full scans
            timeout: Request timeout in seconds
        """
        self.host = host
        self.port = port
        self.collection_name = collection_name
        self.vector_size = vector_size
        self.location = location
        self.use_grpc = use_grpc
        self.use_quantization = use_quantization
        self.quantization_type = quantization_type
        self.hnsw_m = hnsw_m
        self.hnsw_ef_construct = hnsw_ef_construct
        self.on_disk = on_disk
        self.scroll_batch_size = scroll_batch_size
        self.timeout = timeout
        self.client: AsyncQdrantClient | None = None

    def _to_uuid(self, id_str: str) -> str:
        """
        Convert string ID to UUID format consistently.

        Args:
            id_str: String identifier

        Returns:
            UUID string
        """
        try:
            UUID(id_str)
            return id_str
        except ValueError:
            return str(uuid5(NAMESPACE_DNS, id_str))

    async def connect(self) -> None:
        """
        Establish connection to Qdrant.

        Raises:
            VectorStoreError: If connection fails
        """
        if self.client is None:
            try:
                if self.location == ":memory:":
                    self.client = AsyncQdrantClient(location=":memory:")
                elif self.location:
                    self.client = AsyncQdrantClient(path=self.location)
                else:
                    self.client = AsyncQdrantClient(
                        host=self.host,
                        port=self.port,
                        prefer_grpc=self.use_grpc,
                        timeout=self.timeout,
                    )
            except Exception as e:
                logger.bind(
                    host=self.host, port=self.port, error=str(e)
                ).error(f"Failed to connect to Qdrant: {e}")
                raise VectorStoreError(f"Failed to connect to Qdrant: {e}") from e

    async def initialize(self) -> None:
        """
        Create the collection if missing and verify its vector size.

        Raises:
            DimensionMismatchError: If the existing collection has another size
            VectorStoreError: If initialization fails
        """
        await self.connect()

        try:
            exists = await self.client.collection_exists(self.collection_name)
            if not exists:
                await self._create_collection()
                return

            info = await self.client.get_collection(self.collection_name)
            existing_size = info.config.params.vectors.size
        except Exception as e:
            logger.bind(
                collection=self.collection_name, error=str(e)
            ).error(f"Failed to initialize Qdrant collection: {e}")
            raise VectorStoreError(f"Failed to initialize Qdrant collection: {e}") from e

        if existing_size != self.vector_size:
            raise DimensionMismatchError(
                f"Collection {self.collection_name} has vector size {existing_size}, "
                f"expected {self.vector_size}",
                context={"expected": self.vector_size, "actual": existing_size},
            )

    async def _create_collection(self) -> None:
        vectors_config = VectorParams(
            size=self.vector_size,
            distance=Distance.COSINE,
            hnsw_config=HnswConfigDiff(
                m=self.hnsw_m,
                ef_construct=self.hnsw_ef_construct,
                full_scan_threshold=10000,
            ),
            on_disk=self.on_disk,
        )

        if self.use_quantization:
            vectors_config.quantization_config = ScalarQuantization(
                scalar=ScalarQuantizationConfig(
                    type=ScalarType.INT8,
                    quantile=0.99,
                    always_ram=True,
                )
            )

        await self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=vectors_config,
            optimizers_config=OptimizersConfigDiff(
                indexing_threshold=20000,
                memmap_threshold=50000,
            ),
        )

        # Payload indices for the filtered queries
        for field_name, schema in (
            ("kind", PayloadSchemaType.KEYWORD),
            ("owner_id", PayloadSchemaType.INTEGER),
            ("created_at_ts", PayloadSchemaType.FLOAT),
            ("subject_keys", PayloadSchemaType.KEYWORD),
        ):
            await self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name=field_name,
                field_schema=schema,
            )

        logger.bind(
            collection=self.collection_name, vector_size=self.vector_size
        ).info(f"Created Qdrant collection {self.collection_name}")

    async def recreate(self) -> None:
        """Drop and recreate the collection."""
        await self.connect()
        try:
            if await self.client.collection_exists(self.collection_name):
                await self.client.delete_collection(self.collection_name)
            await self._create_collection()
        except Exception as e:
            logger.bind(
                collection=self.collection_name, error=str(e)
            ).error(f"Failed to recreate Qdrant collection: {e}")
            raise VectorStoreError(f"Failed to recreate Qdrant collection: {e}") from e

    def _memory_to_payload(self, memory: Memory) -> dict[str, Any]:
        """
        Convert Memory to Qdrant payload.

        Args:
            memory: Memory object

        Returns:
            Payload dictionary
        """
        return {
            "original_id": memory.id,
            "owner_id": memory.owner_id,
            "content": memory.content,
            "kind": memory.kind.value,
            "tags": list(memory.tags),
            "created_at": memory.created_at.isoformat(),
            "created_at_ts": memory.created_at.timestamp(),
            "media_ref": memory.media_ref,
            "source_text": memory.source_text,
            "subject": memory.subject,
            "subject_keys": memory.subject_keys,
        }

    def _payload_to_memory(self, payload: dict[str, Any], vector: list[float] | None) -> Memory:
        """
        Convert Qdrant payload to Memory.

        Args:
            payload: Qdrant payload
            vector: Embedding vector (None when not requested)

        Returns:
            Memory object
        """
        return Memory(
            id=payload["original_id"],
            owner_id=payload["owner_id"],
            content=payload["content"],
            kind=MemoryKind(payload["kind"]),
            tags=payload.get("tags") or [],
            embedding=list(vector) if vector else [],
            created_at=datetime.fromisoformat(payload["created_at"]),
            media_ref=payload.get("media_ref"),
            source_text=payload.get("source_text"),
            subject=payload.get("subject"),
        )

    def _build_filter(
        self,
        filters: dict[str, Any] | None = None,
        created_from: datetime | None = None,
        created_before: datetime | None = None,
        subject_keys: list[str] | None = None,
    ) -> Filter | None:
        """
        Translate equality filters and ranges into a Qdrant filter.

        Raises:
            ValidationError: If a filter key is not filterable
        """
        conditions = []

        for key, value in (filters or {}).items():
            if key not in FILTERABLE_FIELDS:
                raise ValidationError(f"Unsupported filter field: {key}")
            if isinstance(value, list | tuple | set):
                values = [v.value if isinstance(v, MemoryKind) else v for v in value]
                conditions.append(FieldCondition(key=key, match=MatchAny(any=values)))
            else:
                if isinstance(value, MemoryKind):
                    value = value.value
                conditions.append(FieldCondition(key=key, match=MatchValue(value=value)))

        if created_from is not None or created_before is not None:
            conditions.append(
                FieldCondition(
                    key="created_at_ts",
                    range=Range(
                        gte=created_from.timestamp() if created_from else None,
                        lt=created_before.timestamp() if created_before else None,
                    ),
                )
            )

        if subject_keys is not None:
            conditions.append(FieldCondition(key="subject_keys", match=MatchAny(any=subject_keys)))

        return Filter(must=conditions) if conditions else None

    async def upsert_memory(self, memory: Memory) -> None:
        """
        Store or replace a memory with its embedding.

        Args:
            memory: Memory object with embedding

        Raises:
            ValidationError: If memory is invalid
            VectorStoreError: If upsert operation fails
        """
        if not memory:
            raise ValidationError("Memory cannot be None")
        if not memory.id:
            raise ValidationError("Memory ID cannot be empty")
        if len(memory.embedding) != self.vector_size:
            raise ValidationError(
                f"Memory embedding has {len(memory.embedding)} dimensions, "
                f"expected {self.vector_size}"
            )

        await self.connect()

        point = PointStruct(
            id=self._to_uuid(memory.id),
            vector=memory.embedding,
            payload=self._memory_to_payload(memory),
        )

        try:
            await self.client.upsert(
                collection_name=self.collection_name,
                points=[point],
                wait=True,  # Wait for write to complete for consistency
            )
        except Exception as e:
            logger.bind(
                memory_id=memory.id, error=str(e)
            ).error(f"Failed to upsert memory {memory.id}: {e}")
            raise VectorStoreError(f"Failed to upsert memory: {e}") from e

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
            filters: Optional equality filters (kind, owner_id)

        Returns:
            Results ordered by ascending distance
        """
        query_filter = self._build_filter(filters)
        await self.connect()

        try:
            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=vector,
                limit=limit,
                query_filter=query_filter,
                with_payload=True,
                with_vectors=True,
            )
        except Exception as e:
            logger.bind(
                collection=self.collection_name, error=str(e)
            ).error(f"Vector search failed: {e}")
            raise VectorStoreError(f"Vector search failed: {e}") from e

        return [
            SearchResult(
                memory=self._payload_to_memory(point.payload, point.vector),
                distance=1.0 - point.score,
                metadata={"qdrant_id": str(point.id)},
            )
            for point in response.points
        ]

    async def scroll_memories(
        self,
        filters: dict[str, Any] | None = None,
        created_from: datetime | None = None,
        created_before: datetime | None = None,
        subject_keys: list[str] | None = None,
        with_vectors: bool = False,
    ) -> list[Memory]:
        """
        Fetch every matching memory, following scroll pages to the end.

        Qdrant scroll has no ordering guarantee; callers sort in Python.
        """
        scroll_filter = self._build_filter(filters, created_from, created_before, subject_keys)
        await self.connect()

        memories: list[Memory] = []
        offset = None
        try:
            while True:
                points, offset = await self.client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=scroll_filter,
                    limit=self.scroll_batch_size,
                    offset=offset,
                    with_payload=True,
                    with_vectors=with_vectors,
                )
                memories.extend(
                    self._payload_to_memory(point.payload, point.vector if with_vectors else None)
                    for point in points
                )
                if offset is None:
                    break
        except Exception as e:
            logger.bind(collection=self.collection_name, error=str(e)).error(f"Scroll failed: {e}")
            raise VectorStoreError(f"Scroll failed: {e}") from e

        return memories

    async def get_memory(self, memory_id: str) -> Memory | None:
        """
        Retrieve a memory by ID.

        Args:
            memory_id: Memory identifier

        Returns:
            Memory or None if not found

        Raises:
            ValidationError: If memory_id is invalid
            VectorStoreError: If retrieval operation fails
        """
        if not memory_id or not memory_id.strip():
            raise ValidationError("Memory ID cannot be empty")

        await self.connect()

        try:
            results = await self.client.retrieve(
                collection_name=self.collection_name,
                ids=[self._to_uuid(memory_id)],
                with_payload=True,
                with_vectors=True,
            )
        except Exception as e:
            logger.bind(
                memory_id=memory_id, error=str(e)
            ).error(f"Failed to retrieve memory {memory_id}: {e}")
            raise VectorStoreError(f"Failed to retrieve memory: {e}") from e

        if not results:
            return None

        point = results[0]
        return self._payload_to_memory(point.payload, point.vector)

    async def delete_memory(self, memory_id: str) -> None:
        """
        Delete a memory from the store.

        Args:
            memory_id: Memory identifier

        Raises:
            ValidationError: If memory_id is invalid
            VectorStoreError: If deletion operation fails
        """
        if not memory_id or not memory_id.strip():
            raise ValidationError("Memory ID cannot be empty")

        await self.connect()

        try:
            await self.client.delete(
                collection_name=self.collection_name,
                points_selector=[self._to_uuid(memory_id)],
                wait=True,  # Wait for delete to complete for consistency
            )
        except Exception as e:
            logger.bind(
                memory_id=memory_id, error=str(e)
            ).error(f"Failed to delete memory {memory_id}: {e}")
            raise VectorStoreError(f"Failed to delete memory: {e}") from e

    async def delete_all(self) -> None:
        """Delete every memory by recreating the collection."""
        await self.recreate()

    async def count_memories(self, filters: dict[str, Any] | None = None) -> int:
        """
        Count memories matching filters.

        Args:
            filters: Optional filter conditions

        Returns:
            Number of memories
        """
        count_filter = self._build_filter(filters)
        await self.connect()

        try:
            response = await self.client.count(
                collection_name=self.collection_name,
                count_filter=count_filter,
                exact=True,
            )
        except Exception as e:
            raise VectorStoreError(f"Failed to count memories: {e}") from e

        return response.count

    async def close(self) -> None:
        """Close the connection to Qdrant."""
        if self.client is not None:
            await self.client.close()
            self.client = None
