"""
Tests for the OpenAI and Ollama embedders.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from blockgraph.core.embeddings.ollama import OllamaEmbedder
from blockgraph.core.embeddings.openai import OpenAIEmbedder
from blockgraph.utils.exceptions import EmbeddingError, OperationTimeoutError


@pytest.fixture
def openai_embedder():
    """Create OpenAI embedder for testing."""
    return OpenAIEmbedder(api_key="test-key", model="text-embedding-3-small", timeout=5.0)


@pytest.fixture
def ollama_embedder():
    """Create Ollama embedder for testing."""
    return OllamaEmbedder(host="http://localhost:11434", model="nomic-embed-text", timeout=5.0)


def embedding_response(*vectors):
    response = MagicMock()
    response.data = [MagicMock(embedding=list(vector)) for vector in vectors]
    return response


@pytest.mark.unit
@pytest.mark.asyncio
class TestOpenAIEmbedder:
    """Test OpenAI embedder."""

    async def test_initialization(self, openai_embedder):
        assert openai_embedder.model == "text-embedding-3-small"
        assert openai_embedder.timeout == 5.0
        assert openai_embedder.client is not None

    async def test_embed(self, openai_embedder):
        with patch.object(
            openai_embedder.client.embeddings, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = embedding_response([0.1, 0.2, 0.3])

            result = await openai_embedder.embed("hello")

            assert result == [0.1, 0.2, 0.3]
            mock_create.assert_called_once_with(
                model="text-embedding-3-small", input="hello", encoding_format="float"
            )

    async def test_embed_empty_response(self, openai_embedder):
        with patch.object(
            openai_embedder.client.embeddings, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = embedding_response()

            with pytest.raises(EmbeddingError, match="empty embedding"):
                await openai_embedder.embed("hello")

    async def test_embed_wraps_provider_errors(self, openai_embedder):
        with patch.object(
            openai_embedder.client.embeddings, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.side_effect = RuntimeError("rate limited")

            with pytest.raises(EmbeddingError, match="rate limited") as exc_info:
                await openai_embedder.embed("hello")

            assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_embed_timeout(self, openai_embedder):
        openai_embedder.timeout = 0.01

        async def slow(**kwargs):
            await asyncio.sleep(1)

        with patch.object(openai_embedder.client.embeddings, "create", side_effect=slow):
            with pytest.raises(OperationTimeoutError):
                await openai_embedder.embed("hello")

    async def test_batch_embed(self, openai_embedder):
        with patch.object(
            openai_embedder.client.embeddings, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.side_effect = [
                embedding_response([1.0], [2.0]),
                embedding_response([3.0]),
            ]

            result = await openai_embedder.batch_embed(["a", "b", "c"], batch_size=2)

            assert result == [[1.0], [2.0], [3.0]]
            assert mock_create.call_count == 2

    async def test_batch_embed_empty(self, openai_embedder):
        assert await openai_embedder.batch_embed([]) == []

    async def test_known_dimension(self, openai_embedder):
        assert await openai_embedder.get_dimension() == 1536

    async def test_close(self, openai_embedder):
        with patch.object(openai_embedder.client, "close", new_callable=AsyncMock) as mock_close:
            await openai_embedder.close()
            mock_close.assert_called_once()


@pytest.mark.unit
@pytest.mark.asyncio
class TestOllamaEmbedder:
    """Test Ollama embedder."""

    async def test_initialization(self, ollama_embedder):
        assert ollama_embedder.host == "http://localhost:11434"
        assert ollama_embedder.model == "nomic-embed-text"
        assert ollama_embedder._dimension is None

    async def test_embed(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock:
            mock.return_value = {"embedding": [0.1, 0.2, 0.3, 0.4, 0.5]}

            result = await ollama_embedder.embed("test text")

            assert result == [0.1, 0.2, 0.3, 0.4, 0.5]
            mock.assert_called_once_with(model="nomic-embed-text", prompt="test text")

    async def test_embed_invalid_response(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock:
            mock.return_value = {}

            with pytest.raises(EmbeddingError, match="invalid embedding response"):
                await ollama_embedder.embed("test")

    async def test_embed_connection_error(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock:
            mock.side_effect = ConnectionError("refused")

            with pytest.raises(EmbeddingError, match="refused"):
                await ollama_embedder.embed("test")

    async def test_dimension_is_cached(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock:
            mock.return_value = {"embedding": [0.0, 1.0, 0.0]}

            assert await ollama_embedder.get_dimension() == 3
            assert await ollama_embedder.get_dimension() == 3
            mock.assert_called_once()
