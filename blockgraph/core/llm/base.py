"""
Abstract base class for LLM providers.
Generates grounded answers from a system prompt and a user message.
"""

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """
    Abstract base for LLM text generation providers.

    Responsibilities:
    - Chat completion with an optional system prompt
    - Plain-text responses (answers are rendered as a paragraph)
    """

    model: str

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
        **kwargs,
    ) -> str:
        """
        Generate completion from prompt.

        Args:
            prompt: The user message
            system_prompt: Optional instructions sent as the system message
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0 = deterministic, 1.0 = creative)
            **kwargs: Provider-specific parameters

        Returns:
            Generated text

        Raises:
            ValidationError: If the prompt is empty
            LLMError: If the provider fails or returns no content
            OperationTimeoutError: If the provider does not answer in time
        """

    @abstractmethod
    async def close(self):
        """Close any open connections."""
