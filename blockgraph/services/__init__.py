"""
Services for BlockGraph.

High-level business logic services:
- BlockGraphEngine: Wires stores, providers and services together
- BlockRepository: Note CRUD, embedding and bulk import
- ProjectRepository: Project CRUD
- SmartLinkEngine: Similarity graph, recommendations and telemetry
- SearchEngine: Blended search and cited answers
- LogseqImporter: Logseq export conversion
- BackgroundTaskRunner / RateLimiter: Fire-and-forget work and import pacing
"""

from blockgraph.services.background import BackgroundTaskRunner
from blockgraph.services.block_repository import BlockRepository
from blockgraph.services.engine import BlockGraphEngine
from blockgraph.services.logseq_import import LogseqImporter, transform_logseq
from blockgraph.services.project_repository import ProjectRepository
from blockgraph.services.rate_limiter import RateLimiter
from blockgraph.services.search_engine import SearchEngine, classify_query
from blockgraph.services.smart_links import SmartLinkEngine

__all__ = [
    "BlockGraphEngine",
    "BlockRepository",
    "ProjectRepository",
    "SmartLinkEngine",
    "SearchEngine",
    "classify_query",
    "LogseqImporter",
    "transform_logseq",
    "BackgroundTaskRunner",
    "RateLimiter",
]
