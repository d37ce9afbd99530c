"""
Abstract base class for embedding providers.
Turns block plain text and search queries into vectors.
"""

from abc import ABC, abstractmethod


class Embedder(ABC):
    """
    Abstract base for embedding providers.

    Responsibilities:
    - Generate a fixed-length vector for a text
    - Batch processing for bulk import
    - Consistent vector dimensions across calls
    """

    model: str

    @abstractmethod
    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding vector for text.

        Empty text is passed through; the provider decides what vector it yields.

        Args:
            text: Text to embed
            **kwargs: Provider-specific parameters

        Returns:
            List of floats representing the embedding vector

        Raises:
            EmbeddingError: If embedding generation fails
            OperationTimeoutError: If the provider does not answer in time
        """

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Generate embeddings for multiple texts.

        Default implementation processes sequentially.
        Override for provider-specific batch optimization.

        Args:
            texts: List of texts to embed
            **kwargs: Provider-specific parameters

        Returns:
            List of embedding vectors (same order as input texts)
        """
        embeddings = []
        for text in texts:
            embeddings.append(await self.embed(text, **kwargs))
        return embeddings

    async def get_dimension(self) -> int:
        """
        Get the dimension of embeddings produced by this provider.

        Default implementation embeds a test string.
        """
        test_embedding = await self.embed("test")
        return len(test_embedding)

    @abstractmethod
    async def close(self):
        """Close any open connections."""
