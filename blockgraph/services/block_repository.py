"""
Block Repository - note CRUD over the graph store.

Every create and update recomputes plain text and embeddings from the
merged title and content, writes the block in a single graph operation and
then schedules link recomputation and telemetry in the background.
"""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from blockgraph.config import Config
from blockgraph.core.embeddings.base import Embedder
from blockgraph.core.graph_store.base import GraphStore
from blockgraph.core.text import build_plain_text
from blockgraph.core.tokenizer import Tokenizer
from blockgraph.models.block import Block, BlockInput, BlockType, BlockUpdate, GeoLocation
from blockgraph.models.search import BlockSearchResult
from blockgraph.models.telemetry import ActionType
from blockgraph.services.background import BackgroundTaskRunner
from blockgraph.services.rate_limiter import RateLimiter
from blockgraph.services.search_engine import SearchEngine
from blockgraph.services.smart_links import SmartLinkEngine
from blockgraph.utils.exceptions import (
    BlockGraphError,
    EmbeddingError,
    NotFoundError,
    ValidationError,
)
from blockgraph.utils.id_generator import generate_block_id
from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)


def _validate_owner(owner: str) -> None:
    if not isinstance(owner, str) or not owner.strip():
        raise ValidationError("Owner cannot be empty")


def _validate_type(block_type: Any) -> BlockType:
    try:
        return BlockType(block_type)
    except ValueError as e:
        raise ValidationError(
            f"Unknown block type: {block_type}", context={"type": str(block_type)}
        ) from e


def _parse(model: type[BaseModel], data: dict) -> BaseModel:
    try:
        return model(**data)
    except ModelValidationError as e:
        raise ValidationError(
            f"Invalid {model.__name__}", context={"errors": e.errors(include_url=False)}
        ) from e


def _validate_content(content: Any) -> str:
    if not isinstance(content, str):
        raise ValidationError(
            "Block content must be a serialized document string",
            context={"content_type": type(content).__name__},
        )
    return content


class BlockRepository:
    """
    Note repository.

    Features:
    - Embed on create and on every update
    - Owner-scoped reads, listing and deletion
    - Rate-limited bulk import with staggered link recomputation
    - Background link tracing and telemetry that never fail the request
    """

    def __init__(
        self,
        graph_store: GraphStore,
        embedder: Embedder,
        smart_links: SmartLinkEngine,
        search_engine: SearchEngine,
        background: BackgroundTaskRunner | None = None,
        tokenizer: Tokenizer | None = None,
        rate_limiter: RateLimiter | None = None,
        config: Config | None = None,
    ):
        """
        Initialize Block Repository.

        Args:
            graph_store: Graph storage backend
            embedder: Embedder for block plain text
            smart_links: Link engine used by the background tasks
            search_engine: Search engine that ``search`` delegates to
            background: Runner for fire-and-forget tasks
            tokenizer: Token counter guarding the embedding input size
            rate_limiter: Process-wide limiter for bulk embedding
            config: Configuration
        """
        self.config = config or Config()
        self.graph_store = graph_store
        self.embedder = embedder
        self.smart_links = smart_links
        self.search_engine = search_engine
        self.background = background or BackgroundTaskRunner()
        self.tokenizer = tokenizer or Tokenizer(self.config.tokenizer)
        self.rate_limiter = rate_limiter or RateLimiter.from_config(self.config.importer)

    # ═══════════════════════════════════════════════════════════
    # CRUD
    # ═══════════════════════════════════════════════════════════

    async def create(
        self,
        title: str,
        content: str,
        type: BlockType | str,
        owner: str,
        device: str | None = None,
        location: GeoLocation | dict | None = None,
        project_id: str | None = None,
    ) -> Block:
        """
        Create a block.

        The embedding is computed before anything is written, so an
        embedding failure leaves the graph untouched.

        Raises:
            ValidationError: Empty owner, unknown type or non-string content
            NotFoundError: If ``project_id`` is not one of the owner's projects
            EmbeddingError: If the embedding provider fails
            PersistenceError: If the graph write fails
        """
        _validate_owner(owner)
        block_type = _validate_type(type)
        content = _validate_content(content)
        title = title or ""

        plain_text = build_plain_text(title, content)
        embeddings = await self._embed(plain_text)

        block = Block(
            id=generate_block_id(),
            user_id=owner,
            title=title,
            content=content,
            plain_text=plain_text,
            type=block_type,
            embeddings=embeddings,
            project_id=project_id or None,
        )

        created = await self.graph_store.create_block(block)
        if created is None:
            raise NotFoundError(
                f"Project not found: {project_id}", context={"project_id": project_id}
            )

        logger.info(
            "Created block",
            extra={"block_id": created.id, "user_id": owner, "embedded": embeddings is not None},
        )

        self._schedule_links(created.id, owner)
        self._schedule_time(created.id, owner, ActionType.CREATE)
        self._schedule_context(created.id, owner, device, location)

        return created.without_embeddings()

    async def update(
        self,
        block_id: str,
        owner: str,
        updates: BlockUpdate | dict,
        device: str | None = None,
        location: GeoLocation | dict | None = None,
    ) -> Block:
        """
        Merge ``updates`` into a block and re-embed it.

        Plain text and embeddings are always recomputed from the merged title
        and content, even when only one of them changed. A ``project_id`` of
        "" (or None, when explicitly provided) detaches the block.

        Raises:
            NotFoundError: If the block, or a target project, does not exist for this owner
            ValidationError: Empty owner, unknown type or non-string content
            EmbeddingError: If the embedding provider fails
        """
        _validate_owner(owner)
        if isinstance(updates, dict):
            updates = _parse(BlockUpdate, updates)
        provided = updates.provided()

        original = await self.graph_store.get_block(block_id, owner)
        if original is None:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})

        title = provided.get("title")
        if title is None:
            title = original.title
        content = provided.get("content")
        content = original.content if content is None else _validate_content(content)
        block_type = (
            _validate_type(provided["type"]) if provided.get("type") is not None else original.type
        )

        reassign_project = "project_id" in provided
        project_id = provided.get("project_id") or None
        if reassign_project and project_id:
            project = await self.graph_store.get_project(project_id, owner)
            if project is None:
                raise NotFoundError(
                    f"Project not found: {project_id}", context={"project_id": project_id}
                )

        plain_text = build_plain_text(title, content)
        embeddings = await self._embed(plain_text)

        merged = original.model_copy(
            update={
                "title": title,
                "content": content,
                "type": block_type,
                "plain_text": plain_text,
                "embeddings": embeddings,
                "project_id": project_id if reassign_project else original.project_id,
            }
        )

        updated = await self.graph_store.update_block(merged, reassign_project=reassign_project)
        if updated is None:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})

        logger.info(
            "Updated block",
            extra={"block_id": block_id, "user_id": owner, "fields": sorted(provided)},
        )

        self._schedule_links(block_id, owner)
        self._schedule_time(block_id, owner, ActionType.UPDATE)
        self._schedule_context(block_id, owner, device, location)
        self.background.submit(
            "trace_activity",
            self.smart_links.trace_activity(updated, original, owner),
            block_id=block_id,
            user_id=owner,
        )

        return updated.without_embeddings()

    async def get(
        self,
        block_id: str,
        owner: str,
        device: str | None = None,
        location: GeoLocation | dict | None = None,
        include_embeddings: bool = False,
    ) -> Block:
        """
        Read one of the owner's blocks and record a view.

        Raises:
            NotFoundError: If the block does not exist for this owner
        """
        _validate_owner(owner)
        block = await self.graph_store.get_block(
            block_id, owner, include_embeddings=include_embeddings
        )
        if block is None:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})

        self._schedule_time(block_id, owner, ActionType.VIEW)
        if device is not None or location is not None:
            self._schedule_context(block_id, owner, device, location)

        return block

    async def list(
        self, owner: str, include_embeddings: bool = False, project_id: str | None = None
    ) -> list[Block]:
        """Owner's blocks, most recently updated first."""
        _validate_owner(owner)
        return await self.graph_store.list_blocks(
            owner, include_embeddings=include_embeddings, project_id=project_id
        )

    async def search(
        self,
        query: str,
        owner: str,
        threshold: float | None = None,
        project_id: str | None = None,
    ) -> BlockSearchResult:
        return await self.search_engine.search_blocks(
            query, owner, threshold=threshold, project_id=project_id
        )

    async def delete(self, block_id: str, owner: str) -> None:
        """
        Delete a block with its edges and telemetry.

        Raises:
            NotFoundError: If the block does not exist for this owner
        """
        _validate_owner(owner)
        deleted = await self.graph_store.delete_block(block_id, owner)
        if not deleted:
            raise NotFoundError(f"Block not found: {block_id}", context={"block_id": block_id})
        logger.info("Deleted block", extra={"block_id": block_id, "user_id": owner})

    # ═══════════════════════════════════════════════════════════
    # BULK IMPORT
    # ═══════════════════════════════════════════════════════════

    async def create_many(self, inputs: list[BlockInput | dict], owner: str) -> list[Block]:
        """
        Create many blocks in batches.

        Embeddings within a batch are computed concurrently through the rate
        limiter; each batch is written in one graph operation. Link
        recomputation is scheduled for every block of a batch as soon as it
        is written, staggered by the limiter spacing.

        Raises:
            ValidationError: If the owner or any input is invalid (nothing is written)
            EmbeddingError: If an embedding fails (earlier batches stay written)
        """
        _validate_owner(owner)

        prepared = []
        for item in inputs:
            if isinstance(item, dict):
                item = _parse(BlockInput, item)
            content = _validate_content(item.content)
            title = item.title or ""
            prepared.append(
                Block(
                    id=generate_block_id(),
                    user_id=owner,
                    title=title,
                    content=content,
                    plain_text=build_plain_text(title, content),
                    type=_validate_type(item.type),
                    project_id=item.project_id or None,
                )
            )

        batch_size = self.config.importer.batch_size
        spacing = self.rate_limiter.spacing
        created: list[Block] = []

        for start in range(0, len(prepared), batch_size):
            batch = prepared[start : start + batch_size]

            results = await asyncio.gather(
                *(self.rate_limiter.run(self._embed, block.plain_text) for block in batch),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            batch = [
                block.model_copy(update={"embeddings": vector})
                for block, vector in zip(batch, results, strict=True)
            ]

            written = await self.graph_store.create_blocks(owner, batch)
            for block in written:
                self._schedule_links(block.id, owner, delay=spacing * len(created))
                created.append(block)

            logger.info(
                "Imported batch",
                extra={"user_id": owner, "batch_start": start, "batch_size": len(written)},
            )

        logger.info("Bulk import finished", extra={"user_id": owner, "created": len(created)})
        return [block.without_embeddings() for block in created]

    # ═══════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════

    async def _embed(self, plain_text: str) -> list[float] | None:
        """
        Embed plain text, or return None when it exceeds the token limit.
        """
        if not self.tokenizer.fits_embedding_limit(plain_text):
            logger.warning(
                "Plain text exceeds embedding token limit, storing without embeddings",
                extra={
                    "characters": len(plain_text),
                    "limit": self.config.tokenizer.embedding_token_limit,
                },
            )
            return None

        try:
            return await self.embedder.embed(plain_text)
        except BlockGraphError:
            raise
        except Exception as e:
            logger.error("Failed to embed block", extra={"error": str(e)})
            raise EmbeddingError(f"Failed to embed block: {e}") from e

    def _schedule_links(self, block_id: str, owner: str, delay: float = 0) -> None:
        self.background.submit(
            "trace_block_links",
            self.smart_links.trace_block_links(block_id, owner),
            delay=delay,
            block_id=block_id,
            user_id=owner,
        )

    def _schedule_time(self, block_id: str, owner: str, action: ActionType) -> None:
        self.background.submit(
            f"trace_time_{action.value.lower()}",
            self.smart_links.trace_time(block_id, owner, action),
            block_id=block_id,
            user_id=owner,
        )

    def _schedule_context(
        self,
        block_id: str,
        owner: str,
        device: str | None,
        location: GeoLocation | dict | None,
    ) -> None:
        self.background.submit(
            "trace_context",
            self.smart_links.trace_context(block_id, owner, device=device, location=location),
            block_id=block_id,
            user_id=owner,
        )


