"""
Factory for creating LLM providers.
"""

from keepsake.config import LLMConfig
from keepsake.core.llm.base import LLMProvider
from keepsake.core.llm.ollama import OllamaLLM
from keepsake.core.llm.openai import OpenAILLM
from keepsake.utils.exceptions import ConfigurationError

DEFAULT_OLLAMA_HOST = "http://localhost:11434"


class LLMFactory:
    """Factory for creating LLM providers from configuration."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """
        Create LLM provider from configuration.

        Args:
            config: LLM configuration

        Returns:
            LLM provider instance

        Raises:
            ConfigurationError: If provider is not supported or a key is missing
        """
        if config.provider == "ollama":
            return OllamaLLM(
                host=config.base_url or DEFAULT_OLLAMA_HOST,
                model=config.model,
                timeout=config.timeout,
                keep_alive=config.keep_alive,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required")
            return OpenAILLM(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported LLM provider: {config.provider}")
