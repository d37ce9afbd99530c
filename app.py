"""
BlockGraph FastAPI Application

A REST API server for the BlockGraph note engine.
Provides endpoints for blocks, search and answers, recommendations,
interaction metrics, projects and Logseq import.
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from blockgraph import __version__
from blockgraph.config import Config
from blockgraph.core.factory import EmbedderFactory, GraphStoreFactory, LLMFactory
from blockgraph.models.block import Block, BlockType, GeoLocation, RelatedBlock
from blockgraph.models.project import Project, ProjectInput, ProjectUpdate
from blockgraph.models.search import SearchResponse
from blockgraph.models.telemetry import ActionType
from blockgraph.services.engine import BlockGraphEngine
from blockgraph.utils.exceptions import (
    BlockGraphError,
    NotFoundError,
    OperationTimeoutError,
    StoreUnavailableError,
    ValidationError,
)
from blockgraph.utils.logger import get_logger, setup_logging

# Global engine instance
engine: BlockGraphEngine | None = None
logger = get_logger(__name__)


# Pydantic models for API
class CreateBlockRequest(BaseModel):
    """Request model for creating a block."""

    title: str = Field(default="", description="Block title")
    content: str = Field(default="", description="Serialized editor document")
    type: BlockType = Field(default=BlockType.TEXT)
    project_id: str | None = None
    device: str | None = None
    location: GeoLocation | None = None


class UpdateBlockRequest(BaseModel):
    """Request model for updating a block; only provided fields are changed."""

    title: str | None = None
    content: str | None = None
    type: BlockType | None = None
    project_id: str | None = None
    device: str | None = None
    location: GeoLocation | None = None


class ContextMetricRequest(BaseModel):
    """Request model for a context metric."""

    device: str | None = None
    location: GeoLocation | None = None


class ImportResponse(BaseModel):
    """Response model for a Logseq import."""

    success: bool
    imported_count: int
    blocks: list[Block]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    engine_initialized: bool
    graph_store: str
    graph_store_healthy: bool
    embedding_model: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global engine

    # Load configuration: env vars override config.yaml
    config = Config.from_env_or_yaml("config.yaml")

    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info(
        "Starting BlockGraph server",
        extra={
            "llm": f"{config.llm.provider}/{config.llm.model}",
            "embedder": f"{config.embedder.provider}/{config.embedder.model}",
            "graph": config.graph_backend,
        },
    )

    llm = LLMFactory.create(config.llm)
    embedder = EmbedderFactory.create(config.embedder)
    graph_store = GraphStoreFactory.create(config)

    engine = BlockGraphEngine(
        embedder=embedder,
        graph_store=graph_store,
        llm=llm,
        config=config,
    )

    await engine.initialize()
    logger.info("BlockGraph engine initialized")

    yield

    logger.info("Shutting down BlockGraph server")
    await engine.close()
    engine = None
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="BlockGraph API",
    description="Note-taking backend with semantic linking, search and cited answers",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ═══════════════════════════════════════════════════════════
# ERROR HANDLING
# ═══════════════════════════════════════════════════════════


def status_for(error: BlockGraphError) -> int:
    """HTTP status for a BlockGraph error."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, StoreUnavailableError):
        return 503
    if isinstance(error, OperationTimeoutError):
        return 504
    return 500


@app.exception_handler(BlockGraphError)
async def blockgraph_error_handler(request: Request, exc: BlockGraphError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={
                "path": request.url.path,
                "error": exc.code,
                "details": exc.message,
                "error_type": type(exc).__name__,
            },
        )
    return JSONResponse(
        status_code=status_code, content={"error": exc.code, "details": exc.message}
    )


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    codes = {401: "unauthorized", 503: "unavailable"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": codes.get(exc.status_code, "http_error"), "details": exc.detail},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": ValidationError.code, "details": f"Invalid request: {fields}"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error",
        extra={"path": request.url.path, "error": str(exc), "error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=500, content={"error": "internal_error", "details": "Internal server error"}
    )


# ═══════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════


def get_engine() -> BlockGraphEngine:
    if not engine:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


def get_owner(x_user_id: str | None = Header(default=None)) -> str:
    """Owner identity is supplied by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    if not engine:
        return HealthResponse(
            status="initializing",
            engine_initialized=False,
            graph_store="",
            graph_store_healthy=False,
            embedding_model="",
        )

    healthy = await engine.health_check()
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        engine_initialized=True,
        graph_store=engine.config.graph_backend,
        graph_store_healthy=healthy,
        embedding_model=f"{engine.config.embedder.provider}/{engine.config.embedder.model}",
    )


# ═══════════════════════════════════════════════════════════
# BLOCKS
# ═══════════════════════════════════════════════════════════


@app.get("/blocks", response_model=list[Block])
async def list_blocks(
    project_id: str | None = Query(default=None, alias="projectId"),
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """List the owner's blocks, most recently updated first."""
    return await engine.blocks.list(owner, project_id=project_id)


@app.post("/blocks", response_model=Block)
async def create_block(
    request: CreateBlockRequest,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """
    Create a block.

    The block is embedded before it is stored. Similarity links, the time
    trace and the context trace are computed in the background.
    """
    return await engine.blocks.create(
        title=request.title,
        content=request.content,
        type=request.type,
        owner=owner,
        device=request.device,
        location=request.location,
        project_id=request.project_id,
    )


@app.get("/blocks/search", response_model=SearchResponse)
async def search_blocks(
    query: str = Query(..., description="Search text; a trailing '?' asks a question"),
    project_id: str | None = Query(default=None, alias="projectId"),
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """
    Search blocks, answering questions with a cited answer.

    Returns title, content and similarity match buckets; questions that
    match at least one block also get ``answer`` and ``sources``.
    """
    return await engine.search_engine.ask(query, owner, project_id=project_id)


@app.post("/blocks/import", response_model=ImportResponse)
async def import_blocks(
    payload: dict[str, Any],
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Import a Logseq JSON export."""
    blocks = await engine.importer.import_json(payload, owner)
    return ImportResponse(success=True, imported_count=len(blocks), blocks=blocks)


@app.get("/blocks/recommended/{block_id}", response_model=list[RelatedBlock])
async def recommended_blocks(
    block_id: str,
    limit: int | None = Query(default=None, ge=1, le=50),
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Blocks linked to this one by the similarity graph, strongest first."""
    return await engine.smart_links.get_related_block_recommendations(
        block_id, owner, limit=limit
    )


@app.get("/blocks/{block_id}", response_model=Block)
async def get_block(
    block_id: str,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Retrieve a block. A view is recorded in the background."""
    return await engine.blocks.get(block_id, owner)


@app.patch("/blocks/{block_id}", response_model=Block)
async def update_block(
    block_id: str,
    request: UpdateBlockRequest,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """
    Update a block.

    Only fields present in the body are changed. The block is re-embedded
    and its links recomputed in the background.
    """
    updates = request.model_dump(exclude_unset=True, exclude={"device", "location"})
    return await engine.blocks.update(
        block_id, owner, updates, device=request.device, location=request.location
    )


@app.delete("/blocks/{block_id}")
async def delete_block(
    block_id: str,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Delete a block together with its links and telemetry."""
    await engine.blocks.delete(block_id, owner)
    return {"success": True}


# ═══════════════════════════════════════════════════════════
# METRICS
# ═══════════════════════════════════════════════════════════


@app.post("/metrics/time/{block_id}")
async def record_time_metric(
    block_id: str,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Record a view of a block."""
    metadata = await engine.smart_links.trace_time(block_id, owner, ActionType.VIEW)
    return {"success": True, "time_metadata": metadata}


@app.post("/metrics/context/{block_id}")
async def record_context_metric(
    block_id: str,
    request: ContextMetricRequest,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Record the device and location of an interaction."""
    await engine.smart_links.trace_context(
        block_id, owner, device=request.device, location=request.location
    )
    return {"success": True}


# ═══════════════════════════════════════════════════════════
# PROJECTS
# ═══════════════════════════════════════════════════════════


@app.get("/projects", response_model=list[Project])
async def list_projects(
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    return await engine.projects.list(owner)


@app.post("/projects", response_model=Project)
async def create_project(
    request: ProjectInput,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    return await engine.projects.create_from_input(request, owner)


@app.get("/projects/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    return await engine.projects.get(project_id, owner)


@app.patch("/projects/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    request: ProjectUpdate,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Rename a project or change its description."""
    return await engine.projects.update(project_id, owner, request)


@app.delete("/projects/{project_id}")
async def delete_project(
    project_id: str,
    owner: str = Depends(get_owner),
    engine: BlockGraphEngine = Depends(get_engine),
):
    """Delete a project. Its blocks are kept."""
    await engine.projects.delete(project_id, owner)
    return {"success": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
