"""
Data models for BlockGraph.

Core models:
- Block, BlockInput, BlockUpdate: Notes and their mutations
- ScoredBlock, RelatedBlock: Blocks annotated with similarity
- SimilarityTier, SimilarityEdge, LinkTraceResult: Similarity graph
- Project: Block grouping
- TimeMetadata, BlockActivity, ...: Interaction telemetry
- BlockSearchResult, AnswerResult, QueryType: Search and answers
"""

from blockgraph.models.block import (
    Block,
    BlockInput,
    BlockType,
    BlockUpdate,
    GeoLocation,
    RelatedBlock,
    ScoredBlock,
)
from blockgraph.models.project import Project, ProjectInput, ProjectUpdate
from blockgraph.models.relationships import (
    SIMILARITY_RELATIONSHIPS,
    LinkTraceResult,
    SimilarityEdge,
    SimilarityTier,
)
from blockgraph.models.search import (
    AnswerResult,
    BlockSearchResult,
    BlockSource,
    QueryType,
    SearchResponse,
)
from blockgraph.models.telemetry import (
    ActionType,
    ActivityChange,
    ActivityMetrics,
    ActivityPatterns,
    BlockActivity,
    BlockEditStats,
    ChangeType,
    DaySegment,
    Season,
    TimeMetadata,
    TimeSnapshot,
)

__all__ = [
    # Block models
    "Block",
    "BlockInput",
    "BlockType",
    "BlockUpdate",
    "GeoLocation",
    "ScoredBlock",
    "RelatedBlock",
    # Project models
    "Project",
    "ProjectInput",
    "ProjectUpdate",
    # Relationship models
    "SimilarityTier",
    "SimilarityEdge",
    "LinkTraceResult",
    "SIMILARITY_RELATIONSHIPS",
    # Search models
    "QueryType",
    "BlockSearchResult",
    "BlockSource",
    "AnswerResult",
    "SearchResponse",
    # Telemetry models
    "ActionType",
    "DaySegment",
    "Season",
    "ChangeType",
    "TimeSnapshot",
    "TimeMetadata",
    "ActivityMetrics",
    "ActivityPatterns",
    "ActivityChange",
    "BlockEditStats",
    "BlockActivity",
]
