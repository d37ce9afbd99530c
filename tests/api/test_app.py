"""
Tests for the HTTP layer.

The engine dependency is replaced by a mock, so these tests cover routing,
owner handling, request parsing and the error body mapping.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

import app as app_module
from app import app, get_engine
from blockgraph.config import Config
from blockgraph.models import (
    Block,
    BlockSearchResult,
    BlockSource,
    Project,
    QueryType,
    RelatedBlock,
    ScoredBlock,
    SearchResponse,
    TimeMetadata,
)
from blockgraph.utils.exceptions import (
    EmbeddingError,
    NotFoundError,
    OperationTimeoutError,
    StoreUnavailableError,
    ValidationError,
)

OWNER = {"X-User-Id": "user_1"}


@pytest.fixture
def mock_engine():
    """Engine double exposing the services the routes use."""
    engine = MagicMock()
    engine.config = Config(graph_backend="memory")
    engine.health_check = AsyncMock(return_value=True)
    engine.blocks = AsyncMock()
    engine.projects = AsyncMock()
    engine.importer = AsyncMock()
    engine.search_engine = AsyncMock()
    engine.smart_links = AsyncMock()
    return engine


@pytest.fixture
def client(mock_engine):
    app.dependency_overrides[get_engine] = lambda: mock_engine
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.mark.unit
class TestHealth:
    def test_not_initialized(self, client, monkeypatch):
        monkeypatch.setattr(app_module, "engine", None)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "initializing"

    def test_healthy(self, client, mock_engine, monkeypatch):
        monkeypatch.setattr(app_module, "engine", mock_engine)

        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["graph_store"] == "memory"
        assert data["graph_store_healthy"] is True

    def test_degraded(self, client, mock_engine, monkeypatch):
        mock_engine.health_check.return_value = False
        monkeypatch.setattr(app_module, "engine", mock_engine)

        assert client.get("/health").json()["status"] == "degraded"


@pytest.mark.unit
class TestOwner:
    def test_missing_owner(self, client):
        response = client.get("/blocks")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_blank_owner(self, client):
        assert client.get("/blocks", headers={"X-User-Id": "  "}).status_code == 401

    def test_engine_not_initialized(self, monkeypatch):
        monkeypatch.setattr(app_module, "engine", None)
        client = TestClient(app)

        response = client.get("/blocks", headers=OWNER)

        assert response.status_code == 503
        assert response.json()["error"] == "unavailable"


@pytest.mark.unit
class TestBlocks:
    def test_create(self, client, mock_engine):
        mock_engine.blocks.create.return_value = Block(id="blk_1", user_id="user_1", title="T")

        response = client.post(
            "/blocks",
            json={"title": "T", "content": "{}", "type": "code", "device": "mobile"},
            headers=OWNER,
        )

        assert response.status_code == 200
        assert response.json()["id"] == "blk_1"
        kwargs = mock_engine.blocks.create.call_args.kwargs
        assert kwargs["owner"] == "user_1"
        assert kwargs["type"] == "code"
        assert kwargs["device"] == "mobile"

    def test_create_invalid_type(self, client):
        response = client.post("/blocks", json={"type": "video"}, headers=OWNER)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert "type" in response.json()["details"]

    def test_list_by_project(self, client, mock_engine):
        mock_engine.blocks.list.return_value = []

        response = client.get("/blocks?projectId=prj_1", headers=OWNER)

        assert response.status_code == 200
        mock_engine.blocks.list.assert_called_once_with("user_1", project_id="prj_1")

    def test_get_not_found(self, client, mock_engine):
        mock_engine.blocks.get.side_effect = NotFoundError("Block not found: blk_x")

        response = client.get("/blocks/blk_x", headers=OWNER)

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "details": "Block not found: blk_x"}

    def test_update_passes_only_provided_fields(self, client, mock_engine):
        mock_engine.blocks.update.return_value = Block(id="blk_1", title="New")

        response = client.patch(
            "/blocks/blk_1", json={"title": "New", "device": "desktop"}, headers=OWNER
        )

        assert response.status_code == 200
        args, kwargs = mock_engine.blocks.update.call_args
        assert args == ("blk_1", "user_1", {"title": "New"})
        assert kwargs["device"] == "desktop"

    def test_update_detach_project(self, client, mock_engine):
        mock_engine.blocks.update.return_value = Block(id="blk_1")

        client.patch("/blocks/blk_1", json={"project_id": None}, headers=OWNER)

        assert mock_engine.blocks.update.call_args.args[2] == {"project_id": None}

    def test_delete(self, client, mock_engine):
        response = client.delete("/blocks/blk_1", headers=OWNER)

        assert response.json() == {"success": True}
        mock_engine.blocks.delete.assert_called_once_with("blk_1", "user_1")

    def test_recommended(self, client, mock_engine):
        mock_engine.smart_links.get_related_block_recommendations.return_value = [
            RelatedBlock(id="blk_2", similarity=0.9, relationship="LINKED")
        ]

        response = client.get("/blocks/recommended/blk_1?limit=3", headers=OWNER)

        assert response.json()[0]["relationship"] == "LINKED"
        mock_engine.smart_links.get_related_block_recommendations.assert_called_once_with(
            "blk_1", "user_1", limit=3
        )

    def test_import(self, client, mock_engine):
        mock_engine.importer.import_json.return_value = [Block(id="blk_1", title="Journal")]

        response = client.post("/blocks/import", json={"blocks": []}, headers=OWNER)

        assert response.json()["imported_count"] == 1
        assert response.json()["success"] is True


@pytest.mark.unit
class TestSearch:
    def test_question(self, client, mock_engine):
        mock_engine.search_engine.ask.return_value = SearchResponse(
            type=QueryType.QUESTION,
            blocks=BlockSearchResult(similarity_matches=[ScoredBlock(id="blk_1", similarity=0.7)]),
            answer="Python is great [Python Notes].",
            sources=[BlockSource(id="blk_1", title="Python Notes")],
        )

        response = client.get("/blocks/search", params={"query": "What is Python?"}, headers=OWNER)

        data = response.json()
        assert data["type"] == "question"
        assert data["sources"] == [{"id": "blk_1", "title": "Python Notes"}]
        mock_engine.search_engine.ask.assert_called_once_with(
            "What is Python?", "user_1", project_id=None
        )

    def test_missing_query(self, client):
        assert client.get("/blocks/search", headers=OWNER).status_code == 400

    def test_empty_query(self, client, mock_engine):
        mock_engine.search_engine.ask.side_effect = ValidationError("Search query cannot be empty")

        response = client.get("/blocks/search", params={"query": " "}, headers=OWNER)

        assert response.status_code == 400


@pytest.mark.unit
class TestErrorMapping:
    @pytest.mark.parametrize(
        "error,status",
        [
            (StoreUnavailableError("Neo4j unavailable"), 503),
            (OperationTimeoutError("neo4j.query timed out"), 504),
            (EmbeddingError("provider down"), 500),
        ],
    )
    def test_status(self, client, mock_engine, error, status):
        mock_engine.blocks.list.side_effect = error

        response = client.get("/blocks", headers=OWNER)

        assert response.status_code == status
        assert response.json()["error"] == error.code

    def test_unexpected_error(self, client, mock_engine):
        mock_engine.blocks.list.side_effect = RuntimeError("boom")

        response = client.get("/blocks", headers=OWNER)

        assert response.status_code == 500
        assert response.json() == {"error": "internal_error", "details": "Internal server error"}


@pytest.mark.unit
class TestMetricsAndProjects:
    def test_time_metric(self, client, mock_engine):
        mock_engine.smart_links.trace_time.return_value = TimeMetadata(total_interactions=3)

        response = client.post("/metrics/time/blk_1", headers=OWNER)

        assert response.json()["time_metadata"]["total_interactions"] == 3

    def test_context_metric(self, client, mock_engine):
        response = client.post(
            "/metrics/context/blk_1",
            json={"device": "mobile", "location": {"lat": 1.5, "lng": 2.5}},
            headers=OWNER,
        )

        assert response.json() == {"success": True}
        kwargs = mock_engine.smart_links.trace_context.call_args.kwargs
        assert kwargs["device"] == "mobile"
        assert kwargs["location"].lat == 1.5

    def test_create_project(self, client, mock_engine):
        mock_engine.projects.create_from_input.return_value = Project(
            id="prj_1", user_id="user_1", name="Work"
        )

        response = client.post("/projects", json={"name": "Work"}, headers=OWNER)

        assert response.json()["id"] == "prj_1"

    def test_create_project_requires_name(self, client):
        assert client.post("/projects", json={"name": ""}, headers=OWNER).status_code == 400

    def test_delete_project_not_found(self, client, mock_engine):
        mock_engine.projects.delete.side_effect = NotFoundError("Project not found: prj_1")

        assert client.delete("/projects/prj_1", headers=OWNER).status_code == 404
