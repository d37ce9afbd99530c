"""
BlockGraph Engine - wires providers, stores and services together.

Brings together:
- Embedder & LLM providers
- Graph Store
- Smart Link Engine & Search Engine
- Block / Project repositories and the Logseq importer
- Background task runner and bulk import rate limiter
"""

from blockgraph.config import Config
from blockgraph.core.embeddings.base import Embedder
from blockgraph.core.graph_store.base import GraphStore
from blockgraph.core.llm.base import LLMProvider
from blockgraph.core.tokenizer import Tokenizer
from blockgraph.services.background import BackgroundTaskRunner
from blockgraph.services.block_repository import BlockRepository
from blockgraph.services.logseq_import import LogseqImporter
from blockgraph.services.project_repository import ProjectRepository
from blockgraph.services.rate_limiter import RateLimiter
from blockgraph.services.search_engine import SearchEngine
from blockgraph.services.smart_links import SmartLinkEngine
from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)


class BlockGraphEngine:
    """
    Process-wide service container.

    One engine owns the graph store connection, the provider clients, the
    background runner and the rate limiter; request handlers only use the
    services it exposes.
    """

    def __init__(
        self,
        embedder: Embedder,
        graph_store: GraphStore,
        llm: LLMProvider | None = None,
        config: Config | None = None,
    ):
        """
        Initialize BlockGraph Engine.

        Args:
            embedder: Embedder for block and query text
            graph_store: Graph database (Neo4j or in-memory)
            llm: LLM provider for answers (optional)
            config: Configuration object
        """
        self.config = config or Config()
        self.embedder = embedder
        self.graph_store = graph_store
        self.llm = llm

        self.background = BackgroundTaskRunner()
        self.rate_limiter = RateLimiter.from_config(self.config.importer)

        self.smart_links = SmartLinkEngine(graph_store, self.config.linking)
        self.search_engine = SearchEngine(graph_store, embedder, llm=llm, config=self.config)

        self.blocks = BlockRepository(
            graph_store=graph_store,
            embedder=embedder,
            smart_links=self.smart_links,
            search_engine=self.search_engine,
            background=self.background,
            tokenizer=Tokenizer(self.config.tokenizer),
            rate_limiter=self.rate_limiter,
            config=self.config,
        )
        self.projects = ProjectRepository(graph_store)
        self.importer = LogseqImporter(self.blocks)

    async def initialize(self) -> None:
        """Create graph constraints and indexes."""
        logger.info("Initializing BlockGraph engine", extra={"backend": self.config.graph_backend})
        await self.graph_store.initialize()
        logger.info("BlockGraph engine ready")

    async def health_check(self) -> bool:
        return await self.graph_store.health_check()

    async def close(self) -> None:
        """Stop background work and close all connections."""
        logger.info("Shutting down BlockGraph engine", extra={"pending": self.background.pending})

        await self.background.shutdown()

        await self.graph_store.close()

        if self.llm is not None:
            await self.llm.close()
        await self.embedder.close()

        logger.info("BlockGraph engine shutdown complete")
