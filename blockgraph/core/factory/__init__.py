"""
Factory modules for creating BlockGraph components from configuration.
"""

from blockgraph.core.factory.embedder_factory import EmbedderFactory
from blockgraph.core.factory.graph_factory import GraphStoreFactory
from blockgraph.core.factory.llm_factory import LLMFactory

__all__ = [
    "LLMFactory",
    "EmbedderFactory",
    "GraphStoreFactory",
]
