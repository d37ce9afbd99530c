"""
OpenAI embedder using official SDK.
"""

from openai import AsyncOpenAI

from blockgraph.core.embeddings.base import Embedder
from blockgraph.utils.exceptions import EmbeddingError, OperationTimeoutError
from blockgraph.utils.logger import get_logger
from blockgraph.utils.timeouts import with_timeout

logger = get_logger(__name__)


class OpenAIEmbedder(Embedder):
    """
    OpenAI embedder for generating text embeddings.

    Supports models like text-embedding-3-small, text-embedding-3-large, etc.
    """

    # Known dimensions for OpenAI embedding models
    _MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model name (e.g., "text-embedding-3-small")
            organization: Optional organization ID
            base_url: Optional custom base URL
            timeout: Per-call time budget in seconds
        """
        self.model = model
        self.timeout = timeout

        self.client = AsyncOpenAI(
            api_key=api_key, organization=organization, base_url=base_url, timeout=timeout
        )

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using OpenAI.

        Raises:
            EmbeddingError: If OpenAI API call fails
            OperationTimeoutError: If the call exceeds the time budget
        """
        try:
            response = await with_timeout(
                self.client.embeddings.create(
                    model=self.model, input=text, encoding_format="float", **kwargs
                ),
                self.timeout,
                "openai.embed",
            )

            if not response.data:
                raise EmbeddingError("OpenAI returned empty embedding response")

            return response.data[0].embedding
        except (EmbeddingError, OperationTimeoutError):
            raise
        except Exception as e:
            logger.error(
                "OpenAI embedding error",
                extra={"model": self.model, "error": str(e), "error_type": type(e).__name__},
            )
            raise EmbeddingError(
                f"OpenAI embedding error: {e}", context={"model": self.model}
            ) from e

    async def batch_embed(
        self, texts: list[str], batch_size: int = 2048, **kwargs
    ) -> list[list[float]]:
        """
        Batch embed using OpenAI's native batch API (max 2048 inputs per request).
        """
        if not texts:
            return []

        embeddings = []
        try:
            for i in range(0, len(texts), batch_size):
                batch = texts[i : i + batch_size]
                response = await with_timeout(
                    self.client.embeddings.create(
                        model=self.model, input=batch, encoding_format="float", **kwargs
                    ),
                    self.timeout,
                    "openai.batch_embed",
                )

                if not response.data:
                    raise EmbeddingError("OpenAI returned empty batch embedding response")

                embeddings.extend(item.embedding for item in response.data)

            return embeddings
        except (EmbeddingError, OperationTimeoutError):
            raise
        except Exception as e:
            logger.error(
                "OpenAI batch embedding error",
                extra={"model": self.model, "num_texts": len(texts), "error": str(e)},
            )
            raise EmbeddingError(f"OpenAI batch embedding error: {e}") from e

    async def get_dimension(self) -> int:
        """Known dimension for OpenAI models, test embedding otherwise."""
        if self.model in self._MODEL_DIMENSIONS:
            return self._MODEL_DIMENSIONS[self.model]

        return await super().get_dimension()

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
