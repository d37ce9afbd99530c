"""
Embedder abstraction layer for block embeddings.

Supported providers:
- OpenAI (official SDK)
- Ollama (native SDK)
"""
from blockgraph.core.embeddings.base import Embedder
from blockgraph.core.embeddings.ollama import OllamaEmbedder
from blockgraph.core.embeddings.openai import OpenAIEmbedder

__all__ = [
    "Embedder",
    "OllamaEmbedder",
    "OpenAIEmbedder",
]
