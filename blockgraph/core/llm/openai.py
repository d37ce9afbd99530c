"""
OpenAI LLM provider using official SDK.
"""

from openai import AsyncOpenAI

from blockgraph.core.llm.base import LLMProvider
from blockgraph.utils.exceptions import LLMError, OperationTimeoutError, ValidationError
from blockgraph.utils.logger import get_logger
from blockgraph.utils.timeouts import with_timeout

logger = get_logger(__name__)


class OpenAILLM(LLMProvider):
    """
    OpenAI chat completion provider used for note answers.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
    ):
        """
        Initialize OpenAI LLM provider.

        Args:
            api_key: OpenAI API key
            model: Model name (e.g., "gpt-4", "gpt-4o-mini")
            organization: Optional organization ID
            base_url: Optional custom base URL
            timeout: Per-call time budget in seconds
        """
        self.model = model
        self.timeout = timeout

        self.client = AsyncOpenAI(
            api_key=api_key, organization=organization, base_url=base_url, timeout=timeout
        )

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
        **kwargs,
    ) -> str:
        """
        Generate completion using OpenAI chat completions.

        Raises:
            ValidationError: If the prompt is empty
            LLMError: If OpenAI API call fails or returns empty content
            OperationTimeoutError: If the call exceeds the time budget
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        params = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }

        try:
            response = await with_timeout(
                self.client.chat.completions.create(**params), self.timeout, "openai.complete"
            )

            content = response.choices[0].message.content if response.choices else None
            if not content:
                raise LLMError("OpenAI returned empty content", context={"model": self.model})

            return content
        except (LLMError, OperationTimeoutError):
            raise
        except Exception as e:
            logger.error(
                "OpenAI API error",
                extra={"model": self.model, "error": str(e), "error_type": type(e).__name__},
            )
            raise LLMError(f"OpenAI API error: {e}", context={"model": self.model}) from e

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
