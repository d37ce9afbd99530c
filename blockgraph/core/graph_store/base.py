"""
Base interface for graph storage.

Every block, project and telemetry query is scoped by the owner's
(:User)-[:OWNS]-> edge. Implementations map raw records into the typed
models before returning them.
"""

from abc import ABC, abstractmethod

from blockgraph.models.block import Block, RelatedBlock
from blockgraph.models.project import Project
from blockgraph.models.relationships import SimilarityEdge
from blockgraph.models.telemetry import (
    ActionType,
    ActivityChange,
    BlockActivity,
    TimeMetadata,
    TimeSnapshot,
)


class GraphStore(ABC):
    """Abstract base class for graph storage implementations."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the graph store (constraints and indexes)."""

    async def health_check(self) -> bool:
        """Return True if the store answers queries."""
        return True

    # ═══════════════════════════════════════════════════════════
    # BLOCK OPERATIONS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def create_block(self, block: Block) -> Block | None:
        """
        Create a block owned by ``block.user_id`` in a single write.

        The owner is merged on first write. When ``block.project_id`` is set
        the block joins that project, which must be owned by the same user.

        Returns:
            Stored block, or None if the project does not exist for the owner
        """

    @abstractmethod
    async def create_blocks(self, user_id: str, blocks: list[Block]) -> list[Block]:
        """
        Create many blocks for one owner in a single batched write.

        Returns:
            Stored blocks in input order
        """

    @abstractmethod
    async def get_block(
        self, block_id: str, user_id: str, include_embeddings: bool = False
    ) -> Block | None:
        """
        Retrieve a block owned by ``user_id``.

        Returns:
            Block or None if not found for this owner
        """

    @abstractmethod
    async def list_blocks(
        self,
        user_id: str,
        include_embeddings: bool = False,
        project_id: str | None = None,
    ) -> list[Block]:
        """
        All blocks owned by ``user_id``, most recently updated first.

        Args:
            user_id: Owner
            include_embeddings: Return embedding vectors (withheld by default)
            project_id: Restrict to blocks in this project
        """

    @abstractmethod
    async def update_block(self, block: Block, reassign_project: bool = False) -> Block | None:
        """
        Overwrite the stored fields of an existing block.

        Args:
            block: Block carrying the merged fields and fresh plain text/embeddings
            reassign_project: Replace project membership with ``block.project_id``
                (None or empty string detaches)

        Returns:
            Updated block, or None if not found for this owner
        """

    @abstractmethod
    async def delete_block(self, block_id: str, user_id: str) -> bool:
        """
        Delete a block, its edges and its telemetry nodes.

        Returns:
            True if a block was deleted
        """

    @abstractmethod
    async def find_exact_matches(
        self, user_id: str, query: str, project_id: str | None = None
    ) -> tuple[list[Block], list[Block]]:
        """
        Case-insensitive containment scan over the owner's blocks.

        Args:
            user_id: Owner
            query: Lower-cased, trimmed query
            project_id: Optional project filter

        Returns:
            (title_matches, content_matches); a title match is never a content match
        """

    # ═══════════════════════════════════════════════════════════
    # SIMILARITY GRAPH
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def merge_similarity_edge(self, user_id: str, edge: SimilarityEdge) -> None:
        """
        Upsert the directed tier edge source -> target.

        Any edge of another tier for the same ordered pair is removed; the
        similarity score and check time are overwritten.
        """

    @abstractmethod
    async def get_similarity_edges(self, block_id: str, user_id: str) -> list[SimilarityEdge]:
        """All tier edges incident to a block, in either direction."""

    @abstractmethod
    async def get_related_blocks(
        self, block_id: str, user_id: str, limit: int = 5
    ) -> list[RelatedBlock]:
        """
        Blocks connected to ``block_id`` by any tier edge, either direction.

        Returns:
            Distinct neighbors owned by ``user_id``, by similarity descending
        """

    @abstractmethod
    async def get_home_feed(self, user_id: str, limit: int = 10) -> list[Block]:
        """Owner's blocks with recorded interactions, most recent interaction first."""

    # ═══════════════════════════════════════════════════════════
    # TELEMETRY
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def record_time_interaction(
        self,
        block_id: str,
        user_id: str,
        interaction_id: str,
        action: ActionType,
        snapshot: TimeSnapshot,
    ) -> TimeMetadata | None:
        """
        Append a TimeInteraction node and refresh the block's running statistics.

        Returns:
            Updated statistics, or None if the block is not found
        """

    @abstractmethod
    async def record_context(
        self,
        block_id: str,
        user_id: str,
        context_id: str,
        device_type: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> bool:
        """Append a Context node. Returns False if the block is not found."""

    @abstractmethod
    async def record_activity(
        self, block_id: str, user_id: str, activity_id: str, change: ActivityChange
    ) -> BlockActivity | None:
        """
        Append an Activity node and refresh the block's edit statistics.

        Returns:
            Recorded activity, or None if the block is not found
        """

    @abstractmethod
    async def record_previous(self, block_id: str, previous_block_id: str, user_id: str) -> bool:
        """Merge a PREVIOUS edge between two of the owner's blocks."""

    @abstractmethod
    async def record_feedback(
        self,
        block_id: str,
        user_id: str,
        feedback_id: str,
        recommendation: str,
        helpful: bool,
    ) -> bool:
        """Append a Feedback node. Returns False if the block is not found."""

    # ═══════════════════════════════════════════════════════════
    # PROJECTS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def create_project(self, project: Project) -> Project:
        """Create a project owned by ``project.user_id``."""

    @abstractmethod
    async def get_project(self, project_id: str, user_id: str) -> Project | None:
        """Retrieve a project owned by ``user_id``."""

    @abstractmethod
    async def list_projects(self, user_id: str) -> list[Project]:
        """Owner's projects, most recently updated first."""

    @abstractmethod
    async def update_project(self, project_id: str, user_id: str, updates: dict) -> Project | None:
        """Apply field updates. Returns None if not found for this owner."""

    @abstractmethod
    async def delete_project(self, project_id: str, user_id: str) -> bool:
        """Delete a project; its blocks are kept and lose their membership."""

    @abstractmethod
    async def close(self) -> None:
        """Close connections."""
