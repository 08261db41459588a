"""
Abstract base class for embedding providers.
Maps memory text to fixed-length vectors for similarity search.
"""

from abc import ABC, abstractmethod

from keepsake.utils.exceptions import EmbeddingError


class Embedder(ABC):
    """
    Abstract base for embedding providers.

    Responsibilities:
    - Generate vector embeddings for text
    - Batch processing for re-embedding during migrations
    - Consistent vector dimensions (the vector store is created for one size)
    """

    #: Known output size, or None until detected
    dimension: int | None = None

    @abstractmethod
    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding vector for text.

        Args:
            text: Text to embed
            **kwargs: Provider-specific parameters

        Returns:
            List of floats representing the embedding vector

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If embedding generation fails
        """
        pass

    async def batch_embed(
        self, texts: list[str], batch_size: int = 32, **kwargs
    ) -> list[list[float]]:
        """
        Generate embeddings for multiple texts.

        Default implementation processes sequentially.
        Override for provider-specific batch optimization.

        Args:
            texts: List of texts to embed
            batch_size: Number of texts per batch
            **kwargs: Provider-specific parameters

        Returns:
            List of embedding vectors (same order as input texts)
        """
        embeddings = []
        for text in texts:
            embedding = await self.embed(text, **kwargs)
            embeddings.append(embedding)
        return embeddings

    async def get_dimension(self) -> int:
        """
        Get the dimension of embeddings produced by this provider.

        Embeds a probe string once and caches the result.

        Returns:
            Embedding vector dimension
        """
        if self.dimension is None:
            probe = await self.embed("dimension probe")
            self.dimension = len(probe)
        return self.dimension

    def _check_dimension(self, vector: list[float]) -> list[float]:
        """Reject vectors whose length disagrees with a known dimension."""
        if self.dimension is not None and len(vector) != self.dimension:
            raise EmbeddingError(
                f"Embedding has {len(vector)} dimensions, expected {self.dimension}",
                context={"expected": self.dimension, "actual": len(vector)},
            )
        return vector

    @abstractmethod
    async def close(self):
        """
        Close any open connections.

        Optional to override if provider needs cleanup.
        """
        pass
