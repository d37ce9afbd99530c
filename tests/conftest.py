"""
Shared fixtures for BlockGraph tests.

Fixtures use function scope to avoid event loop issues; every test gets a
fresh in-memory graph store and fresh fakes for the embedding and language
model providers.
"""

import json
import re
from collections.abc import AsyncGenerator

import pytest

from blockgraph.config import Config, ImportConfig, LinkingConfig
from blockgraph.core.embeddings.base import Embedder
from blockgraph.core.graph_store.memory_store import InMemoryGraphStore
from blockgraph.core.llm.base import LLMProvider
from blockgraph.services.engine import BlockGraphEngine

TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


class FakeEmbedder(Embedder):
    """
    Deterministic bag-of-words embedder.

    Every distinct token gets its own axis; the last axis is a constant bias
    so no text embeds to a zero vector.
    """

    def __init__(self, dimension: int = 512):
        self.dimension = dimension
        self.vocabulary: dict[str, int] = {}
        self.calls: list[str] = []
        self.fail_with: Exception | None = None

    async def embed(self, text: str, **kwargs) -> list[float]:
        self.calls.append(text)
        if self.fail_with is not None:
            raise self.fail_with

        vector = [0.0] * self.dimension
        for token in TOKEN_PATTERN.findall(text.lower()):
            index = self.vocabulary.setdefault(token, len(self.vocabulary))
            vector[index] += 1.0
        vector[-1] = 1.0
        return vector

    async def get_dimension(self) -> int:
        return self.dimension

    async def close(self):
        pass


class FakeLLM(LLMProvider):
    """Language model double that records prompts."""

    def __init__(self, answer: str = "Python is great [Python Notes]."):
        self.answer = answer
        self.calls: list[dict] = []
        self.fail_with: Exception | None = None

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
        **kwargs,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.fail_with is not None:
            raise self.fail_with
        return self.answer

    async def close(self):
        pass


def make_document(*paragraphs: str) -> str:
    """Serialize paragraphs as an editor document."""
    return json.dumps(
        {
            "root": {
                "type": "root",
                "children": [
                    {"type": "paragraph", "children": [{"type": "text", "text": text}]}
                    for text in paragraphs
                ],
            }
        }
    )


@pytest.fixture
def document():
    """Factory for serialized editor documents."""
    return make_document


@pytest.fixture
def test_config() -> Config:
    """Configuration without pacing delays."""
    return Config(
        graph_backend="memory",
        linking=LinkingConfig(pair_delay=0),
        importer=ImportConfig(requests_per_period=1000, period_seconds=1, batch_size=2),
    )


@pytest.fixture
def memory_store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
async def engine(memory_store, fake_embedder, fake_llm, test_config) -> AsyncGenerator:
    """Engine wired to the in-memory store and fakes."""
    engine = BlockGraphEngine(
        embedder=fake_embedder,
        graph_store=memory_store,
        llm=fake_llm,
        config=test_config,
    )
    await engine.initialize()
    yield engine
    await engine.close()
