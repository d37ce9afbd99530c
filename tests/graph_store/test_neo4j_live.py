"""
End-to-end tests against a running Neo4j instance.

Skipped unless Neo4j answers at NEO4J_URI (default bolt://localhost:7687).
"""

import os
import uuid

import pytest

from blockgraph.core.graph_store.neo4j_store import Neo4jGraphStore
from blockgraph.services.engine import BlockGraphEngine


@pytest.fixture
async def live_store():
    store = Neo4jGraphStore(
        uri=os.getenv("NEO4J_URI", "bolt://localhost:7687"),
        username=os.getenv("NEO4J_USERNAME", "neo4j"),
        password=os.getenv("NEO4J_PASSWORD", "password"),
        connection_timeout=1.0,
        query_timeout=5.0,
        max_retries=0,
    )
    if not await store.health_check():
        await store.close()
        pytest.skip("Neo4j is not reachable")

    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def live_engine(live_store, fake_embedder, fake_llm, test_config):
    engine = BlockGraphEngine(fake_embedder, live_store, llm=fake_llm, config=test_config)
    owner = f"test_{uuid.uuid4().hex}"
    yield engine, owner

    await engine.background.drain()
    for block in await engine.blocks.list(owner):
        await engine.blocks.delete(block.id, owner)
    await live_store.execute_write("MATCH (u:User {id: $id}) DETACH DELETE u", {"id": owner})


@pytest.mark.neo4j
@pytest.mark.integration
@pytest.mark.asyncio
class TestNeo4jScenario:
    """Create, link, search and delete against Neo4j."""

    async def test_create_link_search_delete(self, live_engine, live_store, document):
        engine, owner = live_engine

        first = await engine.blocks.create("Python Notes", document("python tips"), "text", owner)
        second = await engine.blocks.create("Python", document("python tricks"), "text", owner)
        await engine.background.drain()

        related = await engine.smart_links.get_related_block_recommendations(first.id, owner)
        assert [r.id for r in related] == [second.id]

        response = await engine.search_engine.ask("python", owner)
        assert {b.id for b in response.blocks.title_matches} == {first.id, second.id}

        await engine.blocks.delete(second.id, owner)
        assert await live_store.get_similarity_edges(first.id, owner) == []

    async def test_update_reassigns_project(self, live_engine, document):
        engine, owner = live_engine
        project = await engine.projects.create("Work", owner)
        block = await engine.blocks.create("Note", document("body"), "text", owner)

        moved = await engine.blocks.update(block.id, owner, {"project_id": project.id})
        detached = await engine.blocks.update(block.id, owner, {"project_id": ""})

        assert moved.project_id == project.id
        assert detached.project_id is None
        await engine.projects.delete(project.id, owner)
