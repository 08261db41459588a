"""
Ollama chat provider using the ollama-python SDK.
"""

import ollama
from pydantic import BaseModel

from keepsake.core.llm.base import LLMProvider
from keepsake.utils.exceptions import LLMError, ValidationError
from keepsake.utils.json_text import strip_code_fences
from keepsake.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaLLM(LLMProvider):
    """
    Chat completions against a local Ollama server.

    Structured calls pass the model's JSON schema as the ``format`` constraint;
    text calls are unconstrained so the extraction prompt owns the output shape.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        timeout: float = 120.0,
        keep_alive: str | None = None,
    ):
        """
        Args:
            host: Ollama server URL
            model: Chat model name (e.g., "llama3.1:8b", "mistral")
            timeout: Request timeout in seconds
            keep_alive: How long the server keeps the model loaded between
                turns (e.g., "10m"); server default when None
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self.keep_alive = keep_alive

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

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
            response_format: Optional Pydantic model for schema-constrained output
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Extra Ollama options under "options"

        Returns:
            Parsed model if response_format is given, else the reply text

        Raises:
            ValidationError: If the prompt is empty
            LLMError: If the Ollama call fails
            ValueError: If structured output does not match the model
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        options = {
            "temperature": temperature,
            "num_predict": max_tokens,
            **kwargs.get("options", {}),
        }
        output_format = response_format.model_json_schema() if response_format else None

        try:
            response = await self.client.chat(
                model=self.model,
                messages=self.build_messages(prompt, system),
                format=output_format,
                options=options,
                keep_alive=self.keep_alive,
            )
        except Exception as e:
            logger.bind(
                model=self.model, host=self.host, error=str(e)
            ).error(f"Ollama chat error: {e}")
            raise LLMError(f"Ollama chat error: {e}") from e

        if response.get("done_reason") == "length":
            logger.bind(
                model=self.model, max_tokens=max_tokens
            ).warning("Completion stopped at max_tokens")

        content = response["message"]["content"]
        if not response_format:
            return content

        try:
            return response_format.model_validate_json(strip_code_fences(content))
        except Exception as e:
            raise ValueError(
                f"Failed to parse structured output as {response_format.__name__}: {e}"
            ) from e

    async def close(self):
        """Nothing to release; the SDK client holds no persistent connection."""
