"""
Ollama embedder using native ollama-python SDK.
"""

import ollama

from keepsake.core.embeddings.base import Embedder
from keepsake.utils.exceptions import EmbeddingError, ValidationError
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaEmbedder(Embedder):
    """
    Ollama embedder for memory text.

    Uses the /api/embed endpoint, which accepts a single string or a list,
    so batches go out as one request.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 120.0,
        dimension: int | None = None,
    ):
        """
        Initialize Ollama embedder.

        Args:
            host: Ollama server URL
            model: Embedding model name (e.g., "nomic-embed-text", "mxbai-embed-large")
            timeout: Request timeout in seconds
            dimension: Expected vector size, if known up front
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self.dimension = dimension

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def _embed_inputs(self, inputs: str | list[str], **kwargs) -> list[list[float]]:
        try:
            response = await self.client.embed(model=self.model, input=inputs, **kwargs)
        except Exception as e:
            logger.bind(
                model=self.model, host=self.host, error=str(e)
            ).error(f"Ollama embedding error: {e}")
            raise EmbeddingError(f"Ollama embedding error: {e}") from e

        vectors = response["embeddings"] if response else None
        if not vectors:
            raise EmbeddingError("Ollama returned invalid embedding response")
        return [self._check_dimension(list(vector)) for vector in vectors]

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using Ollama.

        Args:
            text: Text to embed
            **kwargs: Additional options passed to Ollama

        Returns:
            Embedding vector as list of floats

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If Ollama embedding fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        vectors = await self._embed_inputs(text, **kwargs)
        return vectors[0]

    async def batch_embed(
        self, texts: list[str], batch_size: int = 32, **kwargs
    ) -> list[list[float]]:
        """
        Batch embed multiple texts, one request per batch.

        Args:
            texts: List of texts to embed
            batch_size: Number of texts per request
            **kwargs: Additional options

        Returns:
            List of embedding vectors
        """
        if any(not text or not text.strip() for text in texts):
            raise ValidationError("Texts cannot be empty")

        embeddings = []
        for i in range(0, len(texts), batch_size):
            embeddings.extend(await self._embed_inputs(texts[i : i + batch_size], **kwargs))
        return embeddings

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
