"""
Ollama LLM provider using native ollama-python SDK.
"""

import ollama

from blockgraph.core.llm.base import LLMProvider
from blockgraph.utils.exceptions import LLMError, OperationTimeoutError, ValidationError
from blockgraph.utils.logger import get_logger
from blockgraph.utils.timeouts import with_timeout

logger = get_logger(__name__)


class OllamaLLM(LLMProvider):
    """
    Ollama LLM provider for locally hosted chat models.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        timeout: float = 60.0,
    ):
        """
        Initialize Ollama LLM provider.

        Args:
            host: Ollama server URL
            model: Model name for text generation (e.g., "llama3.1", "mistral")
            timeout: Per-call time budget in seconds
        """
        self.host = host
        self.model = model
        self.timeout = timeout

        self.client = ollama.AsyncClient(host=host)

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
        **kwargs,
    ) -> str:
        """
        Generate completion using Ollama chat.

        Args:
            prompt: User message
            system_prompt: Optional system message
            max_tokens: Maximum tokens to generate (num_predict)
            temperature: Sampling temperature
            **kwargs: ``options`` are merged into the Ollama options
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        options = {
            "temperature": temperature,
            "num_predict": max_tokens,
            **kwargs.get("options", {}),
        }

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await with_timeout(
                self.client.chat(model=self.model, messages=messages, options=options),
                self.timeout,
                "ollama.complete",
            )
            content = response["message"]["content"]
        except OperationTimeoutError:
            raise
        except Exception as e:
            logger.error(
                "Ollama chat error",
                extra={"model": self.model, "host": self.host, "error": str(e)},
            )
            raise LLMError(f"Ollama chat error: {e}", context={"model": self.model}) from e

        if not content or not content.strip():
            raise LLMError("Ollama returned empty content", context={"model": self.model})

        return content.strip()

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
