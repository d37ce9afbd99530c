"""
Factory for creating graph store backends.
"""

from blockgraph.config import Config
from blockgraph.core.graph_store.base import GraphStore
from blockgraph.core.graph_store.memory_store import InMemoryGraphStore
from blockgraph.core.graph_store.neo4j_store import Neo4jGraphStore
from blockgraph.utils.exceptions import ConfigurationError


class GraphStoreFactory:
    """Factory for creating graph store backends from configuration."""

    @staticmethod
    def create(config: Config) -> GraphStore:
        """
        Create graph store from configuration.

        Args:
            config: Main configuration object

        Returns:
            Graph store instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.graph_backend == "neo4j":
            return Neo4jGraphStore(
                uri=config.neo4j.uri,
                username=config.neo4j.username,
                password=config.neo4j.password,
                database=config.neo4j.database,
                max_connection_pool_size=config.neo4j.max_connection_pool_size,
                connection_timeout=config.neo4j.connection_timeout,
                query_timeout=config.neo4j.query_timeout,
                max_retries=config.neo4j.max_retries,
                retry_delay=config.neo4j.retry_delay,
            )
        elif config.graph_backend == "memory":
            return InMemoryGraphStore()
        else:
            raise ConfigurationError(f"Unsupported graph backend: {config.graph_backend}")
