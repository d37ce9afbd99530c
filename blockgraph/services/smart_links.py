"""
Smart Link Engine - similarity graph maintenance and recommendations.

Computes pairwise cosine similarity between a block and the rest of its
owner's blocks, keeps exactly one tier edge per ordered pair, and records
interaction telemetry (time, context, activity, navigation, feedback).

Link recomputation and telemetry are scheduled in the background by the
block repository; the methods here raise normally and leave swallowing of
errors to the task runner.
"""

import asyncio
import math
from datetime import datetime

from blockgraph.config import LinkingConfig
from blockgraph.core.graph_store.base import GraphStore
from blockgraph.core.similarity import batch_cosine_similarity
from blockgraph.core.text import extract_plain_text
from blockgraph.core.time_metadata import time_snapshot
from blockgraph.models.block import Block, GeoLocation, RelatedBlock
from blockgraph.models.relationships import LinkTraceResult, SimilarityEdge, SimilarityTier
from blockgraph.models.telemetry import (
    ActionType,
    ActivityChange,
    ActivityMetrics,
    ActivityPatterns,
    BlockActivity,
    ChangeType,
    TimeMetadata,
)
from blockgraph.utils.exceptions import NotFoundError, ValidationError
from blockgraph.utils.id_generator import (
    generate_activity_id,
    generate_context_id,
    generate_feedback_id,
    generate_interaction_id,
)
from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)

# Content length change (characters) beyond which an edit is major
MAJOR_EDIT_DELTA = 100


def classify_activity(updated: Block, original: Block) -> ActivityChange | None:
    """
    Classify the edit between two versions of a block.

    Content is compared on its extracted plain text, so formatting-only
    changes to the editor document do not count as content edits.

    Returns:
        ActivityChange, or None when neither title nor text changed
    """
    original_text = extract_plain_text(original.content)
    updated_text = extract_plain_text(updated.content)

    metrics = ActivityMetrics(
        title_length_delta=len(updated.title or "") - len(original.title or ""),
        content_length_delta=len(updated_text) - len(original_text),
        total_length=len(updated_text),
    )

    change_types = []
    if updated.title != original.title:
        change_types.append(ChangeType.TITLE_EDIT)
    if updated_text != original_text:
        change_types.append(ChangeType.CONTENT_EDIT)
        if metrics.content_length_delta > MAJOR_EDIT_DELTA:
            change_types.append(ChangeType.MAJOR_EXPANSION)
        elif metrics.content_length_delta < -MAJOR_EDIT_DELTA:
            change_types.append(ChangeType.MAJOR_REDUCTION)
        else:
            change_types.append(ChangeType.MINOR_EDIT)

    if not change_types:
        return None

    return ActivityChange(
        change_types=change_types,
        metrics=metrics,
        patterns=ActivityPatterns(
            is_expansion=len(updated_text) > len(original_text),
            is_refinement=len(updated_text) <= len(original_text),
        ),
    )


def valid_coordinates(location: GeoLocation | dict | None) -> tuple[float, float] | None:
    """Return (lat, lng) only when both are finite numbers."""
    if location is None:
        return None
    if isinstance(location, dict):
        lat, lng = location.get("lat"), location.get("lng")
    else:
        lat, lng = location.lat, location.lng

    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        if not math.isfinite(value):
            return None
    return float(lat), float(lng)


class SmartLinkEngine:
    """
    Maintains the tiered similarity graph between an owner's blocks.

    Features:
    - Pairwise cosine similarity with strict tier thresholds
    - Idempotent edge merge (one tier per ordered pair)
    - Related-block and home-feed recommendations
    - Best-effort interaction telemetry
    """

    def __init__(self, graph_store: GraphStore, config: LinkingConfig | None = None):
        """
        Initialize Smart Link Engine.

        Args:
            graph_store: Graph storage backend
            config: Linking configuration (pair delay, recommendation limits)
        """
        self.graph_store = graph_store
        self.config = config or LinkingConfig()

    # ═══════════════════════════════════════════════════════════
    # SIMILARITY GRAPH
    # ═══════════════════════════════════════════════════════════

    async def trace_block_links(self, block_id: str, user_id: str) -> LinkTraceResult:
        """
        Recompute similarity edges from ``block_id`` to every other block of the owner.

        Edges are only created or re-tiered; a pair whose similarity fell to
        0.2 or below keeps its previous edge.

        Args:
            block_id: Block whose edges are recomputed
            user_id: Owner of the block

        Returns:
            LinkTraceResult with the edges written

        Raises:
            NotFoundError: If the block does not exist for this owner
            SimilarityError: If an embedding has zero magnitude or a different length
        """
        target = await self.graph_store.get_block(block_id, user_id, include_embeddings=True)
        if target is None:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})

        result = LinkTraceResult(block_id=block_id)

        if not target.has_embeddings():
            logger.debug("Block has no embeddings, skipping links", extra={"block_id": block_id})
            return result

        blocks = await self.graph_store.list_blocks(user_id, include_embeddings=True)
        others = [block for block in blocks if block.id != block_id]

        comparable = [block for block in others if block.has_embeddings()]
        result.skipped = len(others) - len(comparable)

        similarities = batch_cosine_similarity(
            target.embeddings, [block.embeddings for block in comparable]
        )

        for other, similarity in zip(comparable, similarities, strict=True):
            result.compared += 1

            tier = SimilarityTier.for_similarity(similarity)
            if tier is not None:
                edge = SimilarityEdge(
                    source_id=block_id,
                    target_id=other.id,
                    tier=tier,
                    similarity=similarity,
                )
                await self.graph_store.merge_similarity_edge(user_id, edge)
                result.edges.append(edge)

            if self.config.pair_delay > 0:
                await asyncio.sleep(self.config.pair_delay)

        logger.info(
            "Traced block links",
            extra={
                "block_id": block_id,
                "compared": result.compared,
                "skipped": result.skipped,
                "edges": {tier.value: result.count(tier) for tier in SimilarityTier},
            },
        )
        return result

    async def get_related_block_recommendations(
        self, block_id: str, user_id: str, limit: int | None = None
    ) -> list[RelatedBlock]:
        """
        Blocks linked to ``block_id`` by any tier, strongest first.

        Raises:
            NotFoundError: If the block does not exist for this owner
        """
        block = await self.graph_store.get_block(block_id, user_id)
        if block is None:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})

        return await self.graph_store.get_related_blocks(
            block_id, user_id, limit=limit or self.config.recommendation_limit
        )

    async def get_home_feed_recommendations(
        self, user_id: str, limit: int | None = None
    ) -> list[Block]:
        """Owner's recently interacted blocks, most recent interaction first."""
        return await self.graph_store.get_home_feed(
            user_id, limit=limit or self.config.home_feed_limit
        )

    # ═══════════════════════════════════════════════════════════
    # TELEMETRY
    # ═══════════════════════════════════════════════════════════

    async def trace_time(
        self,
        block_id: str,
        user_id: str,
        action: ActionType = ActionType.VIEW,
        moment: datetime | None = None,
    ) -> TimeMetadata:
        """
        Record when a block was created, updated or viewed.

        Returns:
            The block's updated interaction statistics
        """
        metadata = await self.graph_store.record_time_interaction(
            block_id,
            user_id,
            interaction_id=generate_interaction_id(),
            action=ActionType(action),
            snapshot=time_snapshot(moment),
        )
        if metadata is None:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})
        return metadata

    async def trace_context(
        self,
        block_id: str,
        user_id: str,
        device: str | None = None,
        location: GeoLocation | dict | None = None,
    ) -> None:
        """Record the device and, when valid, the coordinates of an interaction."""
        coordinates = valid_coordinates(location)
        latitude, longitude = coordinates if coordinates else (None, None)

        recorded = await self.graph_store.record_context(
            block_id,
            user_id,
            context_id=generate_context_id(),
            device_type=device or "unknown",
            latitude=latitude,
            longitude=longitude,
        )
        if not recorded:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})

    async def trace_activity(
        self, updated: Block, original: Block, user_id: str
    ) -> BlockActivity | None:
        """
        Record an edit and refresh the block's edit statistics.

        Returns:
            Recorded activity, or None when nothing changed (nothing is written)
        """
        change = classify_activity(updated, original)
        if change is None:
            logger.debug("No changes detected", extra={"block_id": updated.id})
            return None

        activity = await self.graph_store.record_activity(
            updated.id, user_id, activity_id=generate_activity_id(), change=change
        )
        if activity is None:
            raise NotFoundError(f"Block not found: {updated.id}", context={"block_id": updated.id})

        logger.debug(
            "Traced activity",
            extra={
                "block_id": updated.id,
                "change_types": [change_type.value for change_type in change.change_types],
            },
        )
        return activity

    async def trace_previous_blocks(
        self, block_id: str, user_id: str, previous_block_id: str
    ) -> None:
        """Record that the owner navigated from ``previous_block_id`` to ``block_id``."""
        if block_id == previous_block_id:
            raise ValidationError("A block cannot precede itself", context={"block_id": block_id})

        linked = await self.graph_store.record_previous(block_id, previous_block_id, user_id)
        if not linked:
            raise NotFoundError(
                "Block not found",
                context={"block_id": block_id, "previous_block_id": previous_block_id},
            )

    async def trace_user_feedback(
        self, block_id: str, user_id: str, recommendation: str, helpful: bool
    ) -> None:
        """Record whether a recommendation shown on ``block_id`` was helpful."""
        recorded = await self.graph_store.record_feedback(
            block_id,
            user_id,
            feedback_id=generate_feedback_id(),
            recommendation=recommendation,
            helpful=bool(helpful),
        )
        if not recorded:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})
