"""
OpenAI chat provider.

Extraction uses the plain text path and validates the JSON itself; the
structured path goes through the SDK's parse API.
"""

from typing import Any

from openai import AsyncOpenAI
from pydantic import BaseModel

from keepsake.core.llm.base import LLMProvider
from keepsake.utils.exceptions import LLMError, ValidationError
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAILLM(LLMProvider):
    """Chat completions against the OpenAI API or a compatible server."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 2,
    ):
        """
        Args:
            api_key: OpenAI API key
            model: Chat model name (e.g., "gpt-4o", "gpt-4o-mini")
            organization: Optional organization ID
            base_url: Optional OpenAI-compatible endpoint
            timeout: Request timeout in seconds
            max_retries: SDK-level retries on transient errors
        """
        self.model = model

        self.client = AsyncOpenAI(
            api_key=api_key,
            organization=organization,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    def _warn_if_truncated(self, choice: Any, max_tokens: int) -> None:
        # A truncated extraction reply is invalid JSON and will be discarded downstream
        if getattr(choice, "finish_reason", None) == "length":
            logger.bind(
                model=self.model, max_tokens=max_tokens
            ).warning("Completion stopped at max_tokens")

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        response_format: type[BaseModel] | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        **kwargs,
    ) -> BaseModel | str:
        """
        Generate a completion.

        Args:
            prompt: User message
            system: Optional system prompt
            response_format: Optional Pydantic model for the parse API
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Extra request parameters (e.g., stop)

        Returns:
            Parsed model if response_format is given, else the reply text

        Raises:
            ValidationError: If the prompt is empty or parsing yields nothing
            LLMError: If the API call fails or returns no content
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        params = {
            "model": self.model,
            "messages": self.build_messages(prompt, system),
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }

        try:
            if response_format:
                response = await self.client.chat.completions.parse(
                    **params, response_format=response_format
                )
            else:
                response = await self.client.chat.completions.create(**params)
        except Exception as e:
            logger.bind(
                model=self.model, error=str(e), error_type=type(e).__name__
            ).error(f"OpenAI API error: {e}")
            raise LLMError(f"OpenAI API error: {e}") from e

        choice = response.choices[0]
        self._warn_if_truncated(choice, max_tokens)

        if response_format:
            if not choice.message.parsed:
                raise ValidationError(
                    "OpenAI returned empty parsed response",
                    context={"format": response_format.__name__},
                )
            return choice.message.parsed

        if not choice.message.content:
            raise LLMError("OpenAI returned empty content", context={"model": self.model})
        return choice.message.content

    async def close(self):
        await self.client.close()
