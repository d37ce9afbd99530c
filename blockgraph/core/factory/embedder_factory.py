"""
Factory for creating embedder providers.
"""

from blockgraph.config import EmbedderConfig
from blockgraph.core.embeddings.base import Embedder
from blockgraph.core.embeddings.ollama import OllamaEmbedder
from blockgraph.core.embeddings.openai import OpenAIEmbedder
from blockgraph.utils.exceptions import ConfigurationError


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
            ConfigurationError: If the provider is unsupported or the API key is missing
        """
        if config.provider == "ollama":
            return OllamaEmbedder(
                host=config.base_url or "http://localhost:11434",
                model=config.model,
                timeout=config.timeout,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError(
                    "OpenAI API key is required for embeddings",
                    context={"provider": config.provider},
                )
            return OpenAIEmbedder(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported embedder provider: {config.provider}")

    @staticmethod
    async def get_dimension(embedder: Embedder, config: EmbedderConfig | None = None) -> int:
        """
        Get embedding dimension, preferring the configured hint over a test embedding.
        """
        if config and config.dimension:
            return config.dimension

        return await embedder.get_dimension()
