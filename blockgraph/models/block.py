"""
Block model - the primary note entity.

A Block holds a user's rich-text note. The serialized editor document is
stored verbatim in ``content``; ``plain_text`` and ``embeddings`` are derived
from the title and content and are always regenerated together.

Storage Architecture:
- Graph Store: (:User)-[:OWNS]->(:Block) with all fields as node properties
- Optional (:Block)-[:IN_PROJECT]->(:Project) membership
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class BlockType(str, Enum):
    """Kinds of block content."""

    TEXT = "text"
    IMAGE = "image"
    CODE = "code"
    MATH = "math"


class GeoLocation(BaseModel):
    """Coarse location reported by the client."""

    model_config = {"extra": "ignore"}

    lat: float | None = None
    lng: float | None = None


class Block(BaseModel):
    """A note stored in the graph."""

    model_config = {"extra": "ignore"}

    # Core identity
    id: str = Field(..., description="Unique block ID (blk_xxx)")
    user_id: str | None = Field(default=None, description="Owner user ID")

    # Content
    title: str = Field(default="", description="Block title")
    content: str = Field(default="", description="Serialized rich-text document")
    plain_text: str = Field(default="", description="Flattened title + content text")
    type: BlockType = Field(default=BlockType.TEXT, description="Block content type")
    embeddings: list[float] | None = Field(
        default=None, description="Embedding of plain_text (None until first embed)"
    )

    # Grouping
    project_id: str | None = Field(default=None, description="Owning project, if any")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    def has_embeddings(self) -> bool:
        """True if the block carries a non-empty embedding vector."""
        return bool(self.embeddings)

    def without_embeddings(self) -> "Block":
        """Copy of this block with the embedding vector withheld."""
        return self.model_copy(update={"embeddings": None})


class ScoredBlock(Block):
    """Block annotated with a similarity score (search results)."""

    similarity: float = Field(..., description="Similarity to the query (1.0 for exact matches)")


class RelatedBlock(ScoredBlock):
    """Block reached through a similarity edge (recommendations)."""

    relationship: str = Field(..., description="Similarity tier of the connecting edge")


class BlockInput(BaseModel):
    """Input for creating a block."""

    model_config = {"extra": "ignore"}

    title: str = ""
    content: str = ""
    type: BlockType = BlockType.TEXT
    project_id: str | None = None
    device: str | None = None
    location: GeoLocation | None = None


class BlockUpdate(BaseModel):
    """
    Partial block update.

    Only fields explicitly set are merged into the stored block. An empty
    ``project_id`` detaches the block from its project.
    """

    model_config = {"extra": "ignore"}

    title: str | None = None
    content: str | None = None
    type: BlockType | None = None
    project_id: str | None = None

    def provided(self) -> dict:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)
