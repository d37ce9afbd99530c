"""
Search and answer result models.
"""

from enum import Enum

from pydantic import BaseModel, Field

from blockgraph.models.block import ScoredBlock


class QueryType(str, Enum):
    """Intent of a search box query."""

    QUESTION = "question"
    SEARCH = "search"


class BlockSearchResult(BaseModel):
    """
    Search results split into three buckets.

    Title and content matches are mutually exclusive; similarity matches
    never contain a block from either exact-match bucket.
    """

    title_matches: list[ScoredBlock] = Field(default_factory=list)
    content_matches: list[ScoredBlock] = Field(default_factory=list)
    similarity_matches: list[ScoredBlock] = Field(default_factory=list)

    def all_blocks(self) -> list[ScoredBlock]:
        """Flatten the buckets (content, title, similarity order)."""
        return [*self.content_matches, *self.title_matches, *self.similarity_matches]

    def is_empty(self) -> bool:
        return not (self.title_matches or self.content_matches or self.similarity_matches)


class BlockSource(BaseModel):
    """Citation target of a generated answer."""

    id: str
    title: str


class AnswerResult(BaseModel):
    """Generated answer with the blocks it was grounded on."""

    answer: str
    sources: list[BlockSource] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Full response to a search box query."""

    type: QueryType
    blocks: BlockSearchResult
    answer: str | None = None
    sources: list[BlockSource] | None = None
