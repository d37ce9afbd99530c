"""
Ollama embedder using native ollama-python SDK.
"""

import ollama

from blockgraph.core.embeddings.base import Embedder
from blockgraph.utils.exceptions import EmbeddingError, OperationTimeoutError
from blockgraph.utils.logger import get_logger
from blockgraph.utils.timeouts import with_timeout

logger = get_logger(__name__)


class OllamaEmbedder(Embedder):
    """
    Ollama embedder for local embedding models (nomic-embed-text, mxbai-embed-large, ...).
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
    ):
        self.host = host
        self.model = model
        self.timeout = timeout
        self._dimension = None

        self.client = ollama.AsyncClient(host=host)

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using Ollama.

        Raises:
            EmbeddingError: If Ollama embedding fails
            OperationTimeoutError: If the call exceeds the time budget
        """
        try:
            response = await with_timeout(
                self.client.embeddings(model=self.model, prompt=text, **kwargs),
                self.timeout,
                "ollama.embed",
            )

            if not response or "embedding" not in response:
                raise EmbeddingError("Ollama returned invalid embedding response")

            return list(response["embedding"])
        except (EmbeddingError, OperationTimeoutError):
            raise
        except Exception as e:
            logger.error(
                "Ollama embedding error",
                extra={"model": self.model, "host": self.host, "error": str(e)},
            )
            raise EmbeddingError(
                f"Ollama embedding error: {e}", context={"model": self.model}
            ) from e

    async def get_dimension(self) -> int:
        """Embedding dimension, cached after the first probe."""
        if self._dimension is None:
            self._dimension = await super().get_dimension()
        return self._dimension

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
