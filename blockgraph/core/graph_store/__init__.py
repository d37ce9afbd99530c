"""
Graph store implementations for BlockGraph.

Provides abstract base and concrete implementations for graph storage.

Available backends:
- Neo4jGraphStore: Production graph database
- InMemoryGraphStore: Dictionary-backed store for local development and tests
"""

from blockgraph.core.graph_store.base import GraphStore
from blockgraph.core.graph_store.memory_store import InMemoryGraphStore
from blockgraph.core.graph_store.neo4j_store import Neo4jGraphStore

__all__ = [
    "GraphStore",
    "InMemoryGraphStore",
    "Neo4jGraphStore",
]
