"""
Similarity tiers and link computation results.
"""

from enum import Enum

from pydantic import BaseModel, Field


class SimilarityTier(str, Enum):
    """
    Relationship strength between two blocks, strongest first.

    Each tier applies when similarity is strictly greater than its threshold.
    """

    LINKED = "LINKED"
    SIMILAR = "SIMILAR"
    MAYBE_SIMILAR = "MAYBE_SIMILAR"
    POSSIBLY_SIMILAR = "POSSIBLY_SIMILAR"

    @property
    def threshold(self) -> float:
        return TIER_THRESHOLDS[self]

    @classmethod
    def for_similarity(cls, similarity: float) -> "SimilarityTier | None":
        """
        Map a similarity score to a tier; first match wins.

        Args:
            similarity: Cosine similarity score

        Returns:
            Matching tier, or None when the score is at or below 0.2
        """
        for tier in cls:
            if similarity > tier.threshold:
                return tier
        return None


TIER_THRESHOLDS: dict[SimilarityTier, float] = {
    SimilarityTier.LINKED: 0.8,
    SimilarityTier.SIMILAR: 0.6,
    SimilarityTier.MAYBE_SIMILAR: 0.4,
    SimilarityTier.POSSIBLY_SIMILAR: 0.2,
}

SIMILARITY_RELATIONSHIPS: list[str] = [tier.value for tier in SimilarityTier]


class SimilarityEdge(BaseModel):
    """Directed similarity edge as stored in the graph."""

    model_config = {"extra": "ignore"}

    source_id: str
    target_id: str
    tier: SimilarityTier
    similarity: float


class LinkTraceResult(BaseModel):
    """Summary of one trace_block_links pass."""

    block_id: str
    compared: int = 0
    skipped: int = 0
    edges: list[SimilarityEdge] = Field(default_factory=list)

    def count(self, tier: SimilarityTier) -> int:
        return sum(1 for edge in self.edges if edge.tier == tier)
