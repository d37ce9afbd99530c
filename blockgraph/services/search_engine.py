"""
Search & Answer Engine.

Blends exact containment matches with embedding similarity, classifies the
search box query, and generates a cited answer from the matching blocks.
"""

from collections.abc import Iterable
from typing import Any

from blockgraph.config import Config
from blockgraph.core.embeddings.base import Embedder
from blockgraph.core.graph_store.base import GraphStore
from blockgraph.core.llm.base import LLMProvider
from blockgraph.core.similarity import cosine_similarity, has_magnitude
from blockgraph.models.block import Block, ScoredBlock
from blockgraph.models.search import (
    AnswerResult,
    BlockSearchResult,
    BlockSource,
    QueryType,
    SearchResponse,
)
from blockgraph.utils.exceptions import (
    AnswerGenerationError,
    BlockGraphError,
    ConfigurationError,
    EmbeddingError,
    SimilarityError,
    ValidationError,
)
from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)

ANSWER_SYSTEM_PROMPT = (
    "You are a knowledgeable assistant providing accurate information from your notes.\n"
    "You may also provide advice or recommendations based on the notes.\n"
    "For each fact you mention, YOU MUST cite the source using [Title] at the end of the "
    "sentence.\n"
    "You are populating as a plain text paragraph, so do not use markdown or html or any "
    "other distracting formatting.\n"
    'Write in a natural, engaging style without mentioning "the context" or "the provided '
    'information" or "the notes" or anything similar.\n'
    "If you can't find any relevant information to answer the question, simply say "
    '"I don\'t have enough information to answer that question."\n'
    "Keep responses concise and informative."
)


def classify_query(query: str) -> QueryType:
    """
    Classify a search box query.

    A query whose trimmed text ends with "?" is a question; anything else is
    a search. A "?" anywhere else does not count.
    """
    return QueryType.QUESTION if query.strip().endswith("?") else QueryType.SEARCH


def _flatten(items: Iterable[Any]) -> list[Any]:
    flat = []
    for item in items:
        if isinstance(item, list | tuple):
            flat.extend(_flatten(item))
        elif item is not None:
            flat.append(item)
    return flat


def _field(item: Any, name: str, alias: str | None = None) -> Any:
    if isinstance(item, dict):
        value = item.get(name)
        if value is None and alias:
            value = item.get(alias)
        return value
    return getattr(item, name, None)


def build_answer_context(blocks: list[Any]) -> str:
    """Title/content pairs separated by blank lines."""
    return "\n\n".join(
        f"Title: {_field(block, 'title')}\nContent: {_field(block, 'plain_text', 'plainText') or ''}"
        for block in blocks
    )


class SearchEngine:
    """
    Search and question answering over an owner's blocks.

    Features:
    - Trailing "?" query classification
    - Exact title/content containment (similarity 1.0)
    - Embedding similarity for everything not matched exactly
    - Cited answers from a language model
    """

    def __init__(
        self,
        graph_store: GraphStore,
        embedder: Embedder,
        llm: LLMProvider | None = None,
        config: Config | None = None,
    ):
        """
        Initialize Search Engine.

        Args:
            graph_store: Graph storage backend
            embedder: Embedder for query vectors
            llm: LLM provider for answers (optional for search-only use)
            config: Configuration (search thresholds, answer parameters)
        """
        self.graph_store = graph_store
        self.embedder = embedder
        self.llm = llm
        self.config = config or Config()

    def classify_query(self, query: str) -> QueryType:
        return classify_query(query)

    async def search_blocks(
        self,
        query: str,
        user_id: str,
        threshold: float | None = None,
        project_id: str | None = None,
    ) -> BlockSearchResult:
        """
        Search the owner's blocks.

        1. Exact pass on the lower-cased, trimmed query: title containment wins
           over content containment; both score 1.0.
        2. Embedding pass on the raw query over all other blocks: keep scores
           strictly above ``threshold``, best first, capped.

        Args:
            query: Search box text
            user_id: Owner
            threshold: Minimum similarity (default from config, 0.25)
            project_id: Restrict to a project

        Returns:
            BlockSearchResult with three disjoint buckets

        Raises:
            ValidationError: If the query or owner is empty
            EmbeddingError: If the query cannot be embedded
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Search query cannot be empty")
        if not user_id:
            raise ValidationError("Owner cannot be empty")

        if threshold is None:
            threshold = self.config.search.similarity_threshold

        normalized = query.lower().strip()
        title_blocks, content_blocks = await self.graph_store.find_exact_matches(
            user_id, normalized, project_id=project_id
        )

        title_matches = [self._scored(block, 1.0) for block in title_blocks]
        content_matches = [self._scored(block, 1.0) for block in content_blocks]
        exact_ids = {block.id for block in title_blocks} | {block.id for block in content_blocks}

        query_embedding = await self._embed_query(query)

        candidates = await self.graph_store.list_blocks(
            user_id, include_embeddings=True, project_id=project_id
        )

        similarity_matches = []
        for block in candidates:
            if block.id in exact_ids or not block.has_embeddings():
                continue
            try:
                similarity = cosine_similarity(query_embedding, block.embeddings)
            except SimilarityError as e:
                logger.warning(
                    "Skipping block with unusable embedding",
                    extra={"block_id": block.id, "error": e.message},
                )
                continue
            if similarity > threshold:
                similarity_matches.append(self._scored(block, similarity))

        similarity_matches.sort(key=lambda match: match.similarity, reverse=True)
        similarity_matches = similarity_matches[: self.config.search.max_similarity_matches]

        logger.info(
            "Searched blocks",
            extra={
                "user_id": user_id,
                "title_matches": len(title_matches),
                "content_matches": len(content_matches),
                "similarity_matches": len(similarity_matches),
            },
        )

        return BlockSearchResult(
            title_matches=title_matches,
            content_matches=content_matches,
            similarity_matches=similarity_matches,
        )

    async def generate_answer(self, question: str, relevant_blocks: list[Any]) -> AnswerResult:
        """
        Generate a cited answer from candidate blocks.

        Candidates may be blocks, dicts or nested lists of either. Entries
        without a title are dropped and duplicates (by id) removed.

        Returns:
            AnswerResult whose sources are the candidates reduced to id/title

        Raises:
            AnswerGenerationError: If the model fails or returns an empty answer
        """
        if self.llm is None:
            raise ConfigurationError("No LLM provider configured for answers")

        blocks = []
        seen = set()
        for block in _flatten(relevant_blocks):
            block_id = _field(block, "id")
            if not _field(block, "title") or block_id in seen:
                continue
            seen.add(block_id)
            blocks.append(block)

        context = build_answer_context(blocks)
        prompt = f"Context:\n{context}\n\nQuestion: {question}"

        try:
            answer = await self.llm.complete(
                prompt,
                system_prompt=ANSWER_SYSTEM_PROMPT,
                max_tokens=self.config.llm.max_tokens,
                temperature=self.config.llm.temperature,
            )
        except Exception as e:
            logger.error(
                "Failed to generate answer",
                extra={"error": str(e), "error_type": type(e).__name__, "sources": len(blocks)},
            )
            raise AnswerGenerationError(f"Failed to generate answer from context: {e}") from e

        if not answer or not answer.strip():
            raise AnswerGenerationError("No answer generated")

        return AnswerResult(
            answer=answer.strip(),
            sources=[
                BlockSource(id=_field(block, "id"), title=_field(block, "title"))
                for block in blocks
            ],
        )

    async def ask(
        self, query: str, user_id: str, project_id: str | None = None
    ) -> SearchResponse:
        """
        Handle a search box query end to end.

        Questions with at least one matching block get a generated answer;
        everything else is answered with the search buckets only.
        """
        query_type = self.classify_query(query)
        blocks = await self.search_blocks(query, user_id, project_id=project_id)

        candidates = blocks.all_blocks()
        if query_type == QueryType.QUESTION and candidates:
            result = await self.generate_answer(query, candidates)
            return SearchResponse(
                type=QueryType.QUESTION,
                blocks=blocks,
                answer=result.answer,
                sources=result.sources,
            )

        return SearchResponse(type=QueryType.SEARCH, blocks=blocks)

    async def _embed_query(self, query: str) -> list[float]:
        try:
            embedding = await self.embedder.embed(query)
        except BlockGraphError:
            raise
        except Exception as e:
            logger.error("Failed to embed search query", extra={"error": str(e)})
            raise EmbeddingError(f"Failed to embed search query: {e}") from e

        if not has_magnitude(embedding):
            logger.error("Search query embedding has zero magnitude", extra={"query": query})
            raise EmbeddingError("Search query embedding has zero magnitude")
        return embedding

    @staticmethod
    def _scored(block: Block, similarity: float) -> ScoredBlock:
        return ScoredBlock(**block.without_embeddings().model_dump(), similarity=similarity)
