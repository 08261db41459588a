"""
OpenAI embedder using official SDK.
"""

from openai import AsyncOpenAI

from keepsake.core.embeddings.base import Embedder
from keepsake.utils.exceptions import EmbeddingError, ValidationError
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIEmbedder(Embedder):
    """
    OpenAI embedder for memory text.

    text-embedding-3 models accept a ``dimensions`` argument; when a
    dimension is configured it is sent so the output matches the collection.
    """

    # Native output sizes for OpenAI embedding models
    _MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        dimension: int | None = None,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model name (e.g., "text-embedding-3-small")
            organization: Optional organization ID
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
            dimension: Requested output size (text-embedding-3 only)
        """
        self.model = model
        self._requested_dimension = dimension
        self.dimension = dimension or self._MODEL_DIMENSIONS.get(model)

        self.client = AsyncOpenAI(
            api_key=api_key, organization=organization, base_url=base_url, timeout=timeout
        )

    def _request_params(self, **kwargs) -> dict:
        params = {"model": self.model, **kwargs}
        if self._requested_dimension and self.model.startswith("text-embedding-3"):
            params.setdefault("dimensions", self._requested_dimension)
        return params

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using OpenAI.

        Args:
            text: Text to embed
            **kwargs: Additional parameters (e.g., user)

        Returns:
            Embedding vector as list of floats

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If OpenAI API call fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            response = await self.client.embeddings.create(
                input=text, **self._request_params(**kwargs)
            )
        except Exception as e:
            logger.bind(
                model=self.model, error=str(e), error_type=type(e).__name__
            ).error(f"OpenAI embedding error: {e}")
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

        if not response.data:
            raise EmbeddingError("OpenAI returned empty embedding response")
        return self._check_dimension(response.data[0].embedding)

    async def batch_embed(
        self, texts: list[str], batch_size: int = 2048, **kwargs
    ) -> list[list[float]]:
        """
        Batch embed using OpenAI's native batch API.

        OpenAI supports up to 2048 inputs per request.

        Args:
            texts: List of texts to embed
            batch_size: Number of texts per request (max 2048)
            **kwargs: Additional parameters

        Returns:
            List of embedding vectors

        Raises:
            ValidationError: If texts list is invalid
            EmbeddingError: If batch embedding fails
        """
        if not texts:
            raise ValidationError("Texts list cannot be empty")

        embeddings = []
        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            try:
                response = await self.client.embeddings.create(
                    input=batch, **self._request_params(**kwargs)
                )
            except Exception as e:
                logger.bind(
                    model=self.model, num_texts=len(texts), error=str(e)
                ).error(f"OpenAI batch embedding error: {e}")
                raise EmbeddingError(f"OpenAI batch embedding error: {e}") from e

            if not response.data:
                raise EmbeddingError("OpenAI returned empty batch embedding response")
            embeddings.extend(self._check_dimension(item.embedding) for item in response.data)

        return embeddings

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
