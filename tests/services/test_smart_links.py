"""
Tests for the smart link engine.
"""

import math
from datetime import datetime

import pytest

from blockgraph.config import LinkingConfig
from blockgraph.models import ActionType, Block, ChangeType, GeoLocation, SimilarityTier
from blockgraph.services.smart_links import SmartLinkEngine, classify_activity, valid_coordinates
from blockgraph.utils.exceptions import NotFoundError, SimilarityError, ValidationError


@pytest.fixture
def smart_links(memory_store):
    return SmartLinkEngine(memory_store, LinkingConfig(pair_delay=0))


@pytest.fixture
def add_block(memory_store):
    async def add(block_id, embeddings=None, user_id="user_1", **fields):
        return await memory_store.create_block(
            Block(id=block_id, user_id=user_id, embeddings=embeddings, **fields)
        )

    return add


@pytest.mark.unit
@pytest.mark.asyncio
class TestTraceBlockLinks:
    """Test similarity edge computation."""

    async def test_tiers(self, smart_links, memory_store, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_same", [2.0, 0.0])
        await add_block("blk_angle", [3.0, 4.0])
        await add_block("blk_orthogonal", [0.0, 1.0])

        result = await smart_links.trace_block_links("blk_a", "user_1")

        tiers = {edge.target_id: edge.tier for edge in result.edges}
        assert tiers == {
            "blk_same": SimilarityTier.LINKED,
            "blk_angle": SimilarityTier.MAYBE_SIMILAR,
        }
        assert result.compared == 3
        assert result.count(SimilarityTier.LINKED) == 1

    async def test_threshold_is_strict(self, smart_links, add_block):
        # cos = 0.6 exactly, which is not above the SIMILAR threshold
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_b", [3.0, 4.0])

        result = await smart_links.trace_block_links("blk_a", "user_1")

        assert result.edges[0].tier == SimilarityTier.MAYBE_SIMILAR
        assert result.edges[0].similarity == pytest.approx(0.6)

    async def test_idempotent(self, smart_links, memory_store, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_b", [1.0, 0.1])

        await smart_links.trace_block_links("blk_a", "user_1")
        await smart_links.trace_block_links("blk_a", "user_1")

        edges = await memory_store.get_similarity_edges("blk_a", "user_1")
        assert len(edges) == 1

    async def test_scores_symmetric(self, smart_links, add_block):
        await add_block("blk_a", [1.0, 2.0, 0.5])
        await add_block("blk_b", [0.3, 1.0, 2.0])

        forward = await smart_links.trace_block_links("blk_a", "user_1")
        backward = await smart_links.trace_block_links("blk_b", "user_1")

        assert forward.edges[0].similarity == pytest.approx(backward.edges[0].similarity)

    async def test_stale_edge_kept(self, smart_links, memory_store, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_b", [1.0, 0.0])
        await smart_links.trace_block_links("blk_a", "user_1")

        await memory_store.update_block(Block(id="blk_b", user_id="user_1", embeddings=[0.0, 1.0]))
        result = await smart_links.trace_block_links("blk_a", "user_1")

        edges = await memory_store.get_similarity_edges("blk_a", "user_1")
        assert result.edges == []
        assert [edge.tier for edge in edges] == [SimilarityTier.LINKED]

    async def test_skips_blocks_without_embeddings(self, smart_links, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_b")

        result = await smart_links.trace_block_links("blk_a", "user_1")

        assert result.compared == 0
        assert result.skipped == 1

    async def test_target_without_embeddings(self, smart_links, add_block):
        await add_block("blk_a")
        await add_block("blk_b", [1.0, 0.0])

        result = await smart_links.trace_block_links("blk_a", "user_1")

        assert result.compared == 0
        assert result.edges == []

    async def test_only_owner_blocks(self, smart_links, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_other", [1.0, 0.0], user_id="user_2")

        result = await smart_links.trace_block_links("blk_a", "user_1")

        assert result.compared == 0

    async def test_zero_vector_raises(self, smart_links, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_zero", [0.0, 0.0])

        with pytest.raises(SimilarityError):
            await smart_links.trace_block_links("blk_a", "user_1")

    async def test_missing_block(self, smart_links):
        with pytest.raises(NotFoundError):
            await smart_links.trace_block_links("blk_missing", "user_1")


@pytest.mark.unit
@pytest.mark.asyncio
class TestRecommendations:
    """Test related-block and home feed recommendations."""

    async def test_related_strongest_first(self, smart_links, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_close", [1.0, 0.1])
        await add_block("blk_far", [1.0, 1.0])
        await smart_links.trace_block_links("blk_a", "user_1")

        related = await smart_links.get_related_block_recommendations("blk_a", "user_1")

        assert [r.id for r in related] == ["blk_close", "blk_far"]
        assert all(r.id != "blk_a" for r in related)
        assert related[0].relationship == "LINKED"

    async def test_related_deduped_across_directions(self, smart_links, add_block):
        await add_block("blk_a", [1.0, 0.0])
        await add_block("blk_b", [1.0, 0.2])
        await smart_links.trace_block_links("blk_a", "user_1")
        await smart_links.trace_block_links("blk_b", "user_1")

        related = await smart_links.get_related_block_recommendations("blk_a", "user_1")

        assert [r.id for r in related] == ["blk_b"]

    async def test_related_limit(self, smart_links, add_block):
        await add_block("blk_a", [1.0, 0.0])
        for index in range(4):
            await add_block(f"blk_{index}", [1.0, 0.1 * index])
        await smart_links.trace_block_links("blk_a", "user_1")

        related = await smart_links.get_related_block_recommendations("blk_a", "user_1", limit=2)

        assert len(related) == 2

    async def test_related_missing_block(self, smart_links):
        with pytest.raises(NotFoundError):
            await smart_links.get_related_block_recommendations("blk_missing", "user_1")

    async def test_home_feed(self, smart_links, add_block):
        await add_block("blk_a")
        await add_block("blk_b")
        await smart_links.trace_time("blk_a", "user_1", ActionType.VIEW)

        feed = await smart_links.get_home_feed_recommendations("user_1")

        assert [b.id for b in feed] == ["blk_a"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestTelemetry:
    """Test interaction telemetry."""

    async def test_trace_time(self, smart_links, add_block):
        await add_block("blk_a")

        # Saturday 2024-06-15 07:30
        metadata = await smart_links.trace_time(
            "blk_a", "user_1", ActionType.CREATE, moment=datetime(2024, 6, 15, 7, 30)
        )

        assert metadata.total_interactions == 1
        assert metadata.common_hours[7] == 1
        assert metadata.common_days[6] == 1
        assert metadata.common_segments["EARLY_MORNING"] == 1

    async def test_trace_time_missing_block(self, smart_links):
        with pytest.raises(NotFoundError):
            await smart_links.trace_time("blk_missing", "user_1")

    async def test_trace_context_drops_invalid_location(self, smart_links, memory_store, add_block):
        await add_block("blk_a")

        await smart_links.trace_context("blk_a", "user_1", "mobile", {"lat": "north", "lng": 2})
        await smart_links.trace_context("blk_a", "user_1", None, GeoLocation(lat=48.8, lng=2.3))

        contexts = memory_store._contexts["blk_a"]
        assert "latitude" not in contexts[0]
        assert contexts[1]["device_type"] == "unknown"
        assert contexts[1]["latitude"] == 48.8

    async def test_trace_activity(self, smart_links, add_block, document):
        original = await add_block("blk_a", content=document("short"), title="Title")
        updated = original.model_copy(update={"content": document("short and longer")})

        activity = await smart_links.trace_activity(updated, original, "user_1")

        assert ChangeType.CONTENT_EDIT in activity.change.change_types
        assert activity.change.patterns.is_expansion is True
        assert activity.block_stats.total_edits == 1

    async def test_trace_activity_no_change(self, smart_links, add_block):
        original = await add_block("blk_a", title="Same")

        assert await smart_links.trace_activity(original, original, "user_1") is None

    async def test_trace_previous(self, smart_links, add_block):
        await add_block("blk_a")
        await add_block("blk_b")

        await smart_links.trace_previous_blocks("blk_b", "user_1", "blk_a")

        with pytest.raises(ValidationError):
            await smart_links.trace_previous_blocks("blk_a", "user_1", "blk_a")
        with pytest.raises(NotFoundError):
            await smart_links.trace_previous_blocks("blk_a", "user_1", "blk_missing")

    async def test_trace_feedback(self, smart_links, memory_store, add_block):
        await add_block("blk_a")

        await smart_links.trace_user_feedback("blk_a", "user_1", "LINKED", helpful=1)

        assert memory_store._feedback["blk_a"][0]["was_helpful"] is True


@pytest.mark.unit
class TestClassifyActivity:
    """Test edit classification."""

    def test_title_only(self, document):
        original = Block(id="blk_1", title="Old", content=document("text"))
        updated = original.model_copy(update={"title": "New title"})

        change = classify_activity(updated, original)

        assert change.change_types == [ChangeType.TITLE_EDIT]
        assert change.metrics.title_length_delta == 6

    def test_major_expansion(self, document):
        original = Block(id="blk_1", content=document("a"))
        updated = Block(id="blk_1", content=document("a" + "b" * 150))

        change = classify_activity(updated, original)

        assert change.change_types == [ChangeType.CONTENT_EDIT, ChangeType.MAJOR_EXPANSION]
        assert change.patterns.is_expansion is True

    def test_major_reduction(self, document):
        original = Block(id="blk_1", content=document("x" * 200))
        updated = Block(id="blk_1", content=document("x"))

        change = classify_activity(updated, original)

        assert ChangeType.MAJOR_REDUCTION in change.change_types
        assert change.patterns.is_refinement is True

    def test_formatting_only_is_no_change(self, document):
        original = Block(id="blk_1", content=document("same"))
        updated = original.model_copy(
            update={"content": original.content.replace('"paragraph"', '"heading"')}
        )

        assert classify_activity(updated, original) is None


@pytest.mark.unit
class TestValidCoordinates:
    def test_valid(self):
        assert valid_coordinates({"lat": 1, "lng": 2.5}) == (1.0, 2.5)

    def test_invalid(self):
        assert valid_coordinates(None) is None
        assert valid_coordinates({"lat": 1}) is None
        assert valid_coordinates({"lat": True, "lng": 1}) is None
        assert valid_coordinates(GeoLocation(lat=math.nan, lng=1.0)) is None
