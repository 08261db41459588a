"""
Factory for creating embedder providers.
"""

from keepsake.config import EmbedderConfig
from keepsake.core.embeddings.base import Embedder
from keepsake.core.embeddings.ollama import OllamaEmbedder
from keepsake.core.embeddings.openai import OpenAIEmbedder
from keepsake.core.factory.llm_factory import DEFAULT_OLLAMA_HOST
from keepsake.utils.exceptions import ConfigurationError


class EmbedderFactory:
    """Factory for creating embedder providers from configuration."""

    @staticmethod
    def create(config: EmbedderConfig) -> Embedder:
        """
        Create embedder from configuration.

        Args:
            config: Embedder configuration

        Returns:
            Embedder instance

        Raises:
            ConfigurationError: If provider is not supported or a key is missing
        """
        if config.provider == "ollama":
            return OllamaEmbedder(
                host=config.base_url or DEFAULT_OLLAMA_HOST,
                model=config.model,
                timeout=config.timeout,
                dimension=config.dimension,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required")
            return OpenAIEmbedder(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
                dimension=config.dimension,
            )
        else:
            raise ConfigurationError(f"Unsupported embedder provider: {config.provider}")

    @staticmethod
    async def get_dimension(embedder: Embedder, config: EmbedderConfig | None = None) -> int:
        """
        Get embedding dimension with fallback logic.

        Priority:
        1. From config if provided
        2. From the embedder (known size, or one probe embedding)

        Args:
            embedder: Embedder instance
            config: Optional embedder config with dimension hint

        Returns:
            Embedding dimension
        """
        if config and config.dimension:
            return config.dimension
        return await embedder.get_dimension()
