"""
In-memory graph store.

Keeps the same ownership scoping and edge semantics as the Neo4j store in
plain dictionaries. Used for local development and tests; nothing survives
a restart.
"""

import asyncio
from datetime import datetime
from itertools import count

from blockgraph.core.graph_store.base import GraphStore
from blockgraph.models.block import Block, RelatedBlock
from blockgraph.models.project import Project
from blockgraph.models.relationships import SimilarityEdge
from blockgraph.models.telemetry import (
    ActionType,
    ActivityChange,
    BlockActivity,
    BlockEditStats,
    TimeMetadata,
    TimeSnapshot,
)
from blockgraph.utils.exceptions import ValidationError
from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryGraphStore(GraphStore):
    """
    Dictionary-backed graph store.

    Features:
    - Same owner scoping as Cypher queries
    - Exactly one tier edge per ordered block pair
    - Telemetry nodes kept per block and removed with it
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._sequence = count()

        self._users: set[str] = set()
        self._blocks: dict[str, Block] = {}
        self._block_order: dict[str, int] = {}
        self._projects: dict[str, Project] = {}

        # (source_id, target_id) -> edge
        self._edges: dict[tuple[str, str], SimilarityEdge] = {}
        self._edge_checked_at: dict[tuple[str, str], datetime] = {}
        self._previous: dict[tuple[str, str], datetime] = {}

        # block_id -> telemetry nodes
        self._time_interactions: dict[str, list[dict]] = {}
        self._contexts: dict[str, list[dict]] = {}
        self._activities: dict[str, list[dict]] = {}
        self._feedback: dict[str, list[dict]] = {}

        self._time_stats: dict[str, TimeMetadata] = {}
        self._edit_stats: dict[str, BlockEditStats] = {}

    async def initialize(self) -> None:
        logger.info("In-memory graph store initialized")

    # ═══════════════════════════════════════════════════════════
    # BLOCK OPERATIONS
    # ═══════════════════════════════════════════════════════════

    def _owned_block(self, block_id: str, user_id: str) -> Block | None:
        block = self._blocks.get(block_id)
        if block is None or block.user_id != user_id:
            return None
        return block

    def _owned_project(self, project_id: str | None, user_id: str) -> Project | None:
        if not project_id:
            return None
        project = self._projects.get(project_id)
        if project is None or project.user_id != user_id:
            return None
        return project

    def _view(self, block: Block, include_embeddings: bool) -> Block:
        return block.model_copy(deep=True) if include_embeddings else block.without_embeddings()

    def _touch(self, block_id: str) -> None:
        self._block_order[block_id] = next(self._sequence)

    async def create_block(self, block: Block) -> Block | None:
        if not block.user_id:
            raise ValidationError("Block owner cannot be empty")

        async with self._lock:
            if block.project_id and self._owned_project(block.project_id, block.user_id) is None:
                return None

            now = datetime.now()
            stored = block.model_copy(
                deep=True,
                update={"project_id": block.project_id or None, "created_at": now, "updated_at": now},
            )
            self._users.add(block.user_id)
            self._blocks[stored.id] = stored
            self._touch(stored.id)
            return self._view(stored, include_embeddings=True)

    async def create_blocks(self, user_id: str, blocks: list[Block]) -> list[Block]:
        created = []
        for block in blocks:
            project_id = block.project_id
            if project_id and self._owned_project(project_id, user_id) is None:
                project_id = None
            stored = await self.create_block(
                block.model_copy(update={"user_id": user_id, "project_id": project_id})
            )
            created.append(stored)
        return created

    async def get_block(
        self, block_id: str, user_id: str, include_embeddings: bool = False
    ) -> Block | None:
        block = self._owned_block(block_id, user_id)
        if block is None:
            return None
        return self._view(block, include_embeddings)

    async def list_blocks(
        self,
        user_id: str,
        include_embeddings: bool = False,
        project_id: str | None = None,
    ) -> list[Block]:
        blocks = [
            block
            for block in self._blocks.values()
            if block.user_id == user_id and (not project_id or block.project_id == project_id)
        ]
        blocks.sort(key=lambda b: (b.updated_at, self._block_order[b.id]), reverse=True)
        return [self._view(block, include_embeddings) for block in blocks]

    async def update_block(self, block: Block, reassign_project: bool = False) -> Block | None:
        async with self._lock:
            current = self._owned_block(block.id, block.user_id)
            if current is None:
                return None

            project_id = current.project_id
            if reassign_project:
                project = self._owned_project(block.project_id, block.user_id)
                project_id = project.id if project else None

            stored = current.model_copy(
                update={
                    "title": block.title,
                    "content": block.content,
                    "plain_text": block.plain_text,
                    "type": block.type,
                    "embeddings": list(block.embeddings) if block.embeddings else None,
                    "project_id": project_id,
                    "updated_at": datetime.now(),
                }
            )
            self._blocks[block.id] = stored
            self._touch(block.id)
            return self._view(stored, include_embeddings=True)

    async def delete_block(self, block_id: str, user_id: str) -> bool:
        async with self._lock:
            if self._owned_block(block_id, user_id) is None:
                return False

            del self._blocks[block_id]
            self._block_order.pop(block_id, None)
            for pair in [pair for pair in self._edges if block_id in pair]:
                del self._edges[pair]
                self._edge_checked_at.pop(pair, None)
            for pair in [pair for pair in self._previous if block_id in pair]:
                del self._previous[pair]
            for nodes in (
                self._time_interactions,
                self._contexts,
                self._activities,
                self._feedback,
                self._time_stats,
                self._edit_stats,
            ):
                nodes.pop(block_id, None)
            return True

    async def find_exact_matches(
        self, user_id: str, query: str, project_id: str | None = None
    ) -> tuple[list[Block], list[Block]]:
        title_matches = []
        content_matches = []
        for block in await self.list_blocks(user_id, project_id=project_id):
            if query in (block.title or "").lower():
                title_matches.append(block)
            elif query in (block.plain_text or "").lower():
                content_matches.append(block)
        return title_matches, content_matches

    # ═══════════════════════════════════════════════════════════
    # SIMILARITY GRAPH
    # ═══════════════════════════════════════════════════════════

    async def merge_similarity_edge(self, user_id: str, edge: SimilarityEdge) -> None:
        async with self._lock:
            if (
                self._owned_block(edge.source_id, user_id) is None
                or self._owned_block(edge.target_id, user_id) is None
            ):
                return

            pair = (edge.source_id, edge.target_id)
            self._edges[pair] = edge.model_copy()
            self._edge_checked_at[pair] = datetime.now()

    async def get_similarity_edges(self, block_id: str, user_id: str) -> list[SimilarityEdge]:
        if self._owned_block(block_id, user_id) is None:
            return []
        return [
            edge.model_copy() for pair, edge in self._edges.items() if block_id in pair
        ]

    async def get_related_blocks(
        self, block_id: str, user_id: str, limit: int = 5
    ) -> list[RelatedBlock]:
        if self._owned_block(block_id, user_id) is None:
            return []

        best: dict[str, SimilarityEdge] = {}
        for (source_id, target_id), edge in self._edges.items():
            if block_id not in (source_id, target_id):
                continue
            other_id = target_id if source_id == block_id else source_id
            if other_id == block_id or self._owned_block(other_id, user_id) is None:
                continue
            if other_id not in best or edge.similarity > best[other_id].similarity:
                best[other_id] = edge

        ranked = sorted(best.items(), key=lambda item: item[1].similarity, reverse=True)
        return [
            RelatedBlock(
                **self._blocks[other_id].without_embeddings().model_dump(),
                similarity=edge.similarity,
                relationship=edge.tier.value,
            )
            for other_id, edge in ranked[:limit]
        ]

    async def get_home_feed(self, user_id: str, limit: int = 10) -> list[Block]:
        interacted = [
            (stats.last_interaction, block_id)
            for block_id, stats in self._time_stats.items()
            if stats.total_interactions > 0 and self._owned_block(block_id, user_id) is not None
        ]
        interacted.sort(reverse=True)
        return [self._blocks[block_id].without_embeddings() for _, block_id in interacted[:limit]]

    # ═══════════════════════════════════════════════════════════
    # TELEMETRY
    # ═══════════════════════════════════════════════════════════

    async def record_time_interaction(
        self,
        block_id: str,
        user_id: str,
        interaction_id: str,
        action: ActionType,
        snapshot: TimeSnapshot,
    ) -> TimeMetadata | None:
        async with self._lock:
            if self._owned_block(block_id, user_id) is None:
                return None

            now = datetime.now()
            interactions = self._time_interactions.setdefault(block_id, [])
            interactions.append(
                {
                    "id": interaction_id,
                    "timestamp": now,
                    "action_type": ActionType(action).value,
                    **snapshot.model_dump(mode="json"),
                }
            )

            stats = TimeMetadata(last_interaction=now, total_interactions=len(interactions))
            for interaction in interactions:
                stats.common_hours[interaction["hour"]] += 1
                stats.common_days[interaction["day_of_week"]] += 1
                stats.common_segments[interaction["day_segment"]] += 1

            self._time_stats[block_id] = stats
            return stats.model_copy(deep=True)

    async def record_context(
        self,
        block_id: str,
        user_id: str,
        context_id: str,
        device_type: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> bool:
        if self._owned_block(block_id, user_id) is None:
            return False

        node = {"id": context_id, "timestamp": datetime.now(), "device_type": device_type}
        if latitude is not None and longitude is not None:
            node.update(latitude=latitude, longitude=longitude)
        self._contexts.setdefault(block_id, []).append(node)
        return True

    async def record_activity(
        self, block_id: str, user_id: str, activity_id: str, change: ActivityChange
    ) -> BlockActivity | None:
        async with self._lock:
            block = self._owned_block(block_id, user_id)
            if block is None:
                return None

            now = datetime.now()
            activities = self._activities.setdefault(block_id, [])
            activities.append({"id": activity_id, "timestamp": now, "change": change})

            age_days = (now - block.created_at).days
            edit_sizes = [abs(a["change"].metrics.content_length_delta) for a in activities]
            stats = BlockEditStats(
                total_edits=len(activities),
                last_edit_timestamp=now,
                edit_frequency=len(activities) / max(age_days, 1),
                average_edit_size=sum(edit_sizes) / len(edit_sizes),
            )
            self._edit_stats[block_id] = stats

            return BlockActivity(id=activity_id, timestamp=now, change=change, block_stats=stats)

    async def record_previous(self, block_id: str, previous_block_id: str, user_id: str) -> bool:
        if (
            self._owned_block(block_id, user_id) is None
            or self._owned_block(previous_block_id, user_id) is None
        ):
            return False

        self._previous[(block_id, previous_block_id)] = datetime.now()
        return True

    async def record_feedback(
        self,
        block_id: str,
        user_id: str,
        feedback_id: str,
        recommendation: str,
        helpful: bool,
    ) -> bool:
        if self._owned_block(block_id, user_id) is None:
            return False

        self._feedback.setdefault(block_id, []).append(
            {
                "id": feedback_id,
                "timestamp": datetime.now(),
                "recommendation_type": recommendation,
                "was_helpful": helpful,
            }
        )
        return True

    # ═══════════════════════════════════════════════════════════
    # PROJECTS
    # ═══════════════════════════════════════════════════════════

    async def create_project(self, project: Project) -> Project:
        now = datetime.now()
        stored = project.model_copy(update={"created_at": now, "updated_at": now})
        self._users.add(project.user_id)
        self._projects[stored.id] = stored
        return stored.model_copy()

    async def get_project(self, project_id: str, user_id: str) -> Project | None:
        project = self._owned_project(project_id, user_id)
        return project.model_copy() if project else None

    async def list_projects(self, user_id: str) -> list[Project]:
        projects = [p for p in self._projects.values() if p.user_id == user_id]
        projects.sort(key=lambda p: p.updated_at, reverse=True)
        return [p.model_copy() for p in projects]

    async def update_project(self, project_id: str, user_id: str, updates: dict) -> Project | None:
        project = self._owned_project(project_id, user_id)
        if project is None:
            return None

        stored = project.model_copy(update={**updates, "updated_at": datetime.now()})
        self._projects[project_id] = stored
        return stored.model_copy()

    async def delete_project(self, project_id: str, user_id: str) -> bool:
        if self._owned_project(project_id, user_id) is None:
            return False

        del self._projects[project_id]
        for block_id, block in self._blocks.items():
            if block.project_id == project_id:
                self._blocks[block_id] = block.model_copy(update={"project_id": None})
        return True

    async def close(self) -> None:
        pass
