"""
Neo4j graph store implementation.

All access goes through two primitives, ``execute_query`` (read) and
``execute_write`` (write), which run parameterized Cypher in managed
transactions and return keyed records. The typed methods map those records
into models at this boundary.
"""

import asyncio
from datetime import datetime
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase
from neo4j.exceptions import Neo4jError, ServiceUnavailable, SessionExpired, TransientError

from blockgraph.core.graph_store.base import GraphStore
from blockgraph.models.block import Block, BlockType, RelatedBlock
from blockgraph.models.project import Project
from blockgraph.models.relationships import SIMILARITY_RELATIONSHIPS, SimilarityEdge, SimilarityTier
from blockgraph.models.telemetry import (
    ActionType,
    ActivityChange,
    BlockActivity,
    BlockEditStats,
    DaySegment,
    TimeMetadata,
    TimeSnapshot,
)
from blockgraph.utils.exceptions import (
    OperationTimeoutError,
    PersistenceError,
    StoreUnavailableError,
    ValidationError,
)
from blockgraph.utils.logger import get_logger
from blockgraph.utils.timeouts import with_timeout

logger = get_logger(__name__)

TIER_PATTERN = "|".join(SIMILARITY_RELATIONSHIPS)
TELEMETRY_PATTERN = "TIME_INTERACTION|CONTEXT|ACTIVITY|FEEDBACK"

# Block property <-> TimeMetadata.common_segments key
SEGMENT_PROPERTIES = {
    DaySegment.EARLY_MORNING: "segmentEarlyMorning",
    DaySegment.MORNING: "segmentMorning",
    DaySegment.MIDDAY: "segmentMidday",
    DaySegment.AFTERNOON: "segmentAfternoon",
    DaySegment.EVENING: "segmentEvening",
    DaySegment.NIGHT: "segmentNight",
}

PROJECT_MAP = "p {.id, .name, .description, .createdAt, .updatedAt}"


def _block_map(var: str = "b") -> str:
    """Cypher map projection for a block; embeddings only when $includeEmbeddings."""
    return (
        f"{var} {{.id, .title, .content, .plainText, .type, .createdAt, .updatedAt, "
        f"embeddings: CASE WHEN $includeEmbeddings THEN {var}.embeddings ELSE null END, "
        f"projectId: head([({var})-[:IN_PROJECT]->(proj:Project) | proj.id])}}"
    )


def _to_datetime(value: Any) -> datetime | None:
    """Convert a neo4j temporal value (or ISO string) into a datetime."""
    if value is None:
        return None
    if hasattr(value, "to_native"):
        return value.to_native()
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


class Neo4jGraphStore(GraphStore):
    """
    Neo4j-based graph store for blocks, projects and the similarity graph.

    Features:
    - Connection pool shared by the whole process
    - Per-query timeout
    - Exponential backoff on transient failures
    """

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        username: str = "neo4j",
        password: str = "password",
        database: str = "neo4j",
        max_connection_pool_size: int = 50,
        connection_timeout: float = 5.0,
        query_timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
    ):
        """
        Initialize Neo4j graph store.

        Args:
            uri: Neo4j connection URI
            username: Username
            password: Password
            database: Database name
            max_connection_pool_size: Driver connection pool size
            connection_timeout: Seconds to wait for a connection
            query_timeout: Time budget per query in seconds
            max_retries: Retries for transient failures
            retry_delay: Base delay for exponential backoff in seconds
        """
        self.uri = uri
        self.username = username
        self.password = password
        self.database = database
        self.max_connection_pool_size = max_connection_pool_size
        self.connection_timeout = connection_timeout
        self.query_timeout = query_timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.driver: AsyncDriver | None = None

    async def connect(self) -> None:
        """
        Create the driver (connection pool) if needed.

        Raises:
            StoreUnavailableError: If the driver cannot be created
        """
        if self.driver is None:
            try:
                self.driver = AsyncGraphDatabase.driver(
                    self.uri,
                    auth=(self.username, self.password),
                    max_connection_pool_size=self.max_connection_pool_size,
                    connection_timeout=self.connection_timeout,
                )
            except Exception as e:
                logger.error(
                    "Failed to connect to Neo4j",
                    extra={"uri": self.uri, "error": str(e)},
                )
                raise StoreUnavailableError(
                    f"Failed to connect to Neo4j: {e}", context={"uri": self.uri}
                ) from e

    async def initialize(self) -> None:
        """Create constraints and indexes."""
        statements = [
            "CREATE CONSTRAINT block_id IF NOT EXISTS FOR (b:Block) REQUIRE b.id IS UNIQUE",
            "CREATE CONSTRAINT user_id IF NOT EXISTS FOR (u:User) REQUIRE u.id IS UNIQUE",
            "CREATE CONSTRAINT project_id IF NOT EXISTS FOR (p:Project) REQUIRE p.id IS UNIQUE",
            "CREATE INDEX block_updated IF NOT EXISTS FOR (b:Block) ON (b.updatedAt)",
        ]
        for statement in statements:
            await self.execute_write(statement)

        logger.info("Neo4j schema initialized", extra={"database": self.database})

    async def health_check(self) -> bool:
        try:
            records = await self.execute_query("RETURN 1 AS ok")
        except (PersistenceError, OperationTimeoutError) as e:
            logger.warning("Neo4j health check failed", extra={"error": str(e)})
            return False
        return bool(records) and records[0].get("ok") == 1

    # ═══════════════════════════════════════════════════════════
    # QUERY PRIMITIVES
    # ═══════════════════════════════════════════════════════════

    async def execute_query(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Run a read query and return its records as dicts."""
        return await self._run(query, params or {}, write=False)

    async def execute_write(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Run a write query and return its records as dicts."""
        return await self._run(query, params or {}, write=True)

    async def _execute(self, query: str, params: dict[str, Any], write: bool) -> list[dict]:
        async def work(tx):
            result = await tx.run(query, params)
            return await result.data()

        async with self.driver.session(database=self.database) as session:
            if write:
                return await session.execute_write(work)
            return await session.execute_read(work)

    async def _run(self, query: str, params: dict[str, Any], write: bool) -> list[dict]:
        """
        Execute with timeout and exponential backoff on transient failures.

        Raises:
            OperationTimeoutError: If a single attempt exceeds query_timeout
            StoreUnavailableError: If Neo4j stays unreachable after all retries
            PersistenceError: For any other driver failure
        """
        await self.connect()
        operation = "neo4j.write" if write else "neo4j.query"

        attempt = 0
        while True:
            try:
                return await with_timeout(
                    self._execute(query, params, write), self.query_timeout, operation
                )
            except OperationTimeoutError:
                logger.error("Neo4j query timed out", extra={"operation": operation})
                raise
            except (ServiceUnavailable, SessionExpired, TransientError) as e:
                if attempt >= self.max_retries:
                    logger.error(
                        "Neo4j operation failed after retries",
                        extra={
                            "operation": operation,
                            "attempts": attempt + 1,
                            "error": str(e),
                            "error_type": type(e).__name__,
                        },
                    )
                    if isinstance(e, TransientError):
                        raise PersistenceError(f"Neo4j transient failure: {e}") from e
                    raise StoreUnavailableError(f"Neo4j unavailable: {e}") from e

                delay = self.retry_delay * (2**attempt)
                logger.warning(
                    "Neo4j operation failed, retrying",
                    extra={
                        "operation": operation,
                        "attempt": attempt + 1,
                        "delay": delay,
                        "error_type": type(e).__name__,
                    },
                )
                await asyncio.sleep(delay)
                attempt += 1
            except Neo4jError as e:
                logger.error(
                    "Neo4j query failed",
                    extra={"operation": operation, "error": str(e), "code": e.code},
                )
                raise PersistenceError(f"Neo4j query failed: {e}") from e
            except Exception as e:
                logger.error(
                    "Unexpected Neo4j error",
                    extra={"operation": operation, "error": str(e), "error_type": type(e).__name__},
                )
                raise PersistenceError(f"Neo4j operation failed: {e}") from e

    # ═══════════════════════════════════════════════════════════
    # BLOCK OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def create_block(self, block: Block) -> Block | None:
        if not block.user_id:
            raise ValidationError("Block owner cannot be empty")

        records = await self.execute_write(
            f"""
            MERGE (u:User {{id: $userId}})
            WITH u
            OPTIONAL MATCH (u)-[:OWNS]->(p:Project {{id: $projectId}})
            WITH u, p
            WHERE $projectId IS NULL OR p IS NOT NULL
            CREATE (b:Block {{
                id: $id,
                title: $title,
                content: $content,
                plainText: $plainText,
                embeddings: $embeddings,
                type: $type,
                createdAt: datetime(),
                updatedAt: datetime()
            }})
            CREATE (u)-[:OWNS]->(b)
            FOREACH (_ IN CASE WHEN p IS NULL THEN [] ELSE [1] END | CREATE (b)-[:IN_PROJECT]->(p))
            RETURN {_block_map()} AS block
            """,
            {
                **self._block_params(block),
                "userId": block.user_id,
                "projectId": block.project_id or None,
                "includeEmbeddings": True,
            },
        )

        if not records:
            return None

        logger.debug("Created block", extra={"block_id": block.id, "user_id": block.user_id})
        return self._record_to_block(records[0]["block"], block.user_id)

    async def create_blocks(self, user_id: str, blocks: list[Block]) -> list[Block]:
        if not blocks:
            return []

        records = await self.execute_write(
            f"""
            MERGE (u:User {{id: $userId}})
            WITH u
            UNWIND $blocks AS item
            OPTIONAL MATCH (u)-[:OWNS]->(p:Project {{id: item.projectId}})
            CREATE (b:Block {{
                id: item.id,
                title: item.title,
                content: item.content,
                plainText: item.plainText,
                embeddings: item.embeddings,
                type: item.type,
                createdAt: datetime(),
                updatedAt: datetime()
            }})
            CREATE (u)-[:OWNS]->(b)
            FOREACH (_ IN CASE WHEN p IS NULL THEN [] ELSE [1] END | CREATE (b)-[:IN_PROJECT]->(p))
            RETURN {_block_map()} AS block
            """,
            {
                "userId": user_id,
                "blocks": [
                    {**self._block_params(block), "projectId": block.project_id or None}
                    for block in blocks
                ],
                "includeEmbeddings": True,
            },
        )

        return [self._record_to_block(record["block"], user_id) for record in records]

    async def get_block(
        self, block_id: str, user_id: str, include_embeddings: bool = False
    ) -> Block | None:
        records = await self.execute_query(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(b:Block {{id: $id}})
            RETURN {_block_map()} AS block
            """,
            {"id": block_id, "userId": user_id, "includeEmbeddings": include_embeddings},
        )

        if not records:
            return None
        return self._record_to_block(records[0]["block"], user_id)

    async def list_blocks(
        self,
        user_id: str,
        include_embeddings: bool = False,
        project_id: str | None = None,
    ) -> list[Block]:
        records = await self.execute_query(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(b:Block)
            WHERE $projectId IS NULL OR (b)-[:IN_PROJECT]->(:Project {{id: $projectId}})
            RETURN {_block_map()} AS block
            ORDER BY b.updatedAt DESC
            """,
            {
                "userId": user_id,
                "projectId": project_id or None,
                "includeEmbeddings": include_embeddings,
            },
        )

        return [self._record_to_block(record["block"], user_id) for record in records]

    async def update_block(self, block: Block, reassign_project: bool = False) -> Block | None:
        query = """
            MATCH (:User {id: $userId})-[:OWNS]->(b:Block {id: $id})
            SET b.title = $title,
                b.content = $content,
                b.plainText = $plainText,
                b.type = $type,
                b.embeddings = $embeddings,
                b.updatedAt = datetime()
            """

        if reassign_project:
            query += """
            WITH b
            OPTIONAL MATCH (b)-[old:IN_PROJECT]->(:Project)
            DELETE old
            WITH DISTINCT b
            OPTIONAL MATCH (:User {id: $userId})-[:OWNS]->(p:Project {id: $projectId})
            FOREACH (_ IN CASE WHEN p IS NULL THEN [] ELSE [1] END | CREATE (b)-[:IN_PROJECT]->(p))
            """

        query += f"""
            WITH b
            RETURN {_block_map()} AS block
            """

        records = await self.execute_write(
            query,
            {
                **self._block_params(block),
                "userId": block.user_id,
                "projectId": block.project_id or None,
                "includeEmbeddings": True,
            },
        )

        if not records:
            return None
        return self._record_to_block(records[0]["block"], block.user_id)

    async def delete_block(self, block_id: str, user_id: str) -> bool:
        records = await self.execute_write(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(b:Block {{id: $id}})
            OPTIONAL MATCH (b)-[:{TELEMETRY_PATTERN}]->(t)
            WITH b, collect(t) AS telemetry
            FOREACH (n IN telemetry | DETACH DELETE n)
            DETACH DELETE b
            RETURN 1 AS deleted
            """,
            {"id": block_id, "userId": user_id},
        )

        return bool(records)

    async def find_exact_matches(
        self, user_id: str, query: str, project_id: str | None = None
    ) -> tuple[list[Block], list[Block]]:
        records = await self.execute_query(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(b:Block)
            WHERE $projectId IS NULL OR (b)-[:IN_PROJECT]->(:Project {{id: $projectId}})
            WITH b,
                 toLower(coalesce(b.title, '')) AS lowerTitle,
                 toLower(coalesce(b.plainText, '')) AS lowerText
            WHERE lowerTitle CONTAINS $query OR lowerText CONTAINS $query
            RETURN {_block_map()} AS block,
                   CASE WHEN lowerTitle CONTAINS $query THEN 'title' ELSE 'content' END AS matchType
            ORDER BY b.updatedAt DESC
            """,
            {
                "userId": user_id,
                "query": query,
                "projectId": project_id or None,
                "includeEmbeddings": False,
            },
        )

        title_matches = []
        content_matches = []
        for record in records:
            block = self._record_to_block(record["block"], user_id)
            if record["matchType"] == "title":
                title_matches.append(block)
            else:
                content_matches.append(block)

        return title_matches, content_matches

    # ═══════════════════════════════════════════════════════════
    # SIMILARITY GRAPH
    # ═══════════════════════════════════════════════════════════

    async def merge_similarity_edge(self, user_id: str, edge: SimilarityEdge) -> None:
        # Relationship types cannot be parameterized; the tier enum bounds the value.
        tier = SimilarityTier(edge.tier).value

        await self.execute_write(
            f"""
            MATCH (u:User {{id: $userId}})-[:OWNS]->(a:Block {{id: $sourceId}})
            MATCH (u)-[:OWNS]->(b:Block {{id: $targetId}})
            OPTIONAL MATCH (a)-[old:{TIER_PATTERN}]->(b)
            WHERE type(old) <> $tier
            DELETE old
            WITH DISTINCT a, b
            MERGE (a)-[r:{tier}]->(b)
            SET r.similarity = $similarity, r.similarityCheckedAt = datetime()
            """,
            {
                "userId": user_id,
                "sourceId": edge.source_id,
                "targetId": edge.target_id,
                "tier": tier,
                "similarity": edge.similarity,
            },
        )

    async def get_similarity_edges(self, block_id: str, user_id: str) -> list[SimilarityEdge]:
        records = await self.execute_query(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(b:Block {{id: $id}})
            MATCH (b)-[r:{TIER_PATTERN}]-(:Block)
            RETURN startNode(r).id AS sourceId,
                   endNode(r).id AS targetId,
                   type(r) AS tier,
                   r.similarity AS similarity
            """,
            {"id": block_id, "userId": user_id},
        )

        return [
            SimilarityEdge(
                source_id=record["sourceId"],
                target_id=record["targetId"],
                tier=SimilarityTier(record["tier"]),
                similarity=record["similarity"],
            )
            for record in records
        ]

    async def get_related_blocks(
        self, block_id: str, user_id: str, limit: int = 5
    ) -> list[RelatedBlock]:
        records = await self.execute_query(
            f"""
            MATCH (u:User {{id: $userId}})-[:OWNS]->(b:Block {{id: $id}})
            MATCH (b)-[r:{TIER_PATTERN}]-(related:Block)
            WHERE related.id <> b.id AND (u)-[:OWNS]->(related)
            WITH related, r
            ORDER BY r.similarity DESC
            WITH related, collect(r)[0] AS best
            RETURN {_block_map("related")} AS block,
                   best.similarity AS similarity,
                   type(best) AS relationship
            ORDER BY similarity DESC
            LIMIT $limit
            """,
            {"id": block_id, "userId": user_id, "limit": limit, "includeEmbeddings": False},
        )

        related = []
        for record in records:
            block = self._record_to_block(record["block"], user_id)
            related.append(
                RelatedBlock(
                    **block.model_dump(),
                    similarity=record["similarity"],
                    relationship=record["relationship"],
                )
            )
        return related

    async def get_home_feed(self, user_id: str, limit: int = 10) -> list[Block]:
        records = await self.execute_query(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(b:Block)
            WHERE b.totalInteractions > 0
            RETURN {_block_map()} AS block
            ORDER BY b.lastInteraction DESC
            LIMIT $limit
            """,
            {"userId": user_id, "limit": limit, "includeEmbeddings": False},
        )

        return [self._record_to_block(record["block"], user_id) for record in records]

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
        segment_counts = ",\n                ".join(
            f"b.{prop} = size([i IN interactions WHERE i.daySegment = '{segment.value}'])"
            for segment, prop in SEGMENT_PROPERTIES.items()
        )
        segment_map = ", ".join(
            f"{segment.value}: b.{prop}" for segment, prop in SEGMENT_PROPERTIES.items()
        )

        records = await self.execute_write(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(b:Block {{id: $blockId}})
            CREATE (t:TimeInteraction {{
                id: $interactionId,
                timestamp: datetime(),
                hour: $hour,
                minute: $minute,
                dayOfWeek: $dayOfWeek,
                daySegment: $daySegment,
                season: $season,
                isWeekend: $isWeekend,
                isWorkHours: $isWorkHours,
                actionType: $actionType
            }})
            CREATE (b)-[:TIME_INTERACTION]->(t)
            WITH b, t
            MATCH (b)-[:TIME_INTERACTION]->(i:TimeInteraction)
            WITH b, t, collect(i) AS interactions
            SET b.commonHours = [h IN range(0, 23) | size([i IN interactions WHERE i.hour = h])],
                b.commonDays = [d IN range(0, 6) | size([i IN interactions WHERE i.dayOfWeek = d])],
                {segment_counts},
                b.totalInteractions = size(interactions),
                b.lastInteraction = t.timestamp
            RETURN b.commonHours AS commonHours,
                   b.commonDays AS commonDays,
                   {{{segment_map}}} AS commonSegments,
                   b.totalInteractions AS totalInteractions,
                   b.lastInteraction AS lastInteraction
            """,
            {
                "userId": user_id,
                "blockId": block_id,
                "interactionId": interaction_id,
                "actionType": ActionType(action).value,
                "hour": snapshot.hour,
                "minute": snapshot.minute,
                "dayOfWeek": snapshot.day_of_week,
                "daySegment": snapshot.day_segment.value,
                "season": snapshot.season.value,
                "isWeekend": snapshot.is_weekend,
                "isWorkHours": snapshot.is_work_hours,
            },
        )

        if not records:
            return None

        record = records[0]
        return TimeMetadata(
            common_hours=record["commonHours"],
            common_days=record["commonDays"],
            common_segments=record["commonSegments"],
            total_interactions=record["totalInteractions"],
            last_interaction=_to_datetime(record["lastInteraction"]),
        )

    async def record_context(
        self,
        block_id: str,
        user_id: str,
        context_id: str,
        device_type: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> bool:
        # Null properties are not stored, so missing coordinates leave no trace.
        records = await self.execute_write(
            """
            MATCH (:User {id: $userId})-[:OWNS]->(b:Block {id: $blockId})
            CREATE (c:Context {
                id: $contextId,
                timestamp: datetime(),
                deviceType: $deviceType,
                latitude: $latitude,
                longitude: $longitude
            })
            CREATE (b)-[:CONTEXT]->(c)
            RETURN c.id AS id
            """,
            {
                "userId": user_id,
                "blockId": block_id,
                "contextId": context_id,
                "deviceType": device_type,
                "latitude": latitude,
                "longitude": longitude,
            },
        )

        return bool(records)

    async def record_activity(
        self, block_id: str, user_id: str, activity_id: str, change: ActivityChange
    ) -> BlockActivity | None:
        records = await self.execute_write(
            """
            MATCH (:User {id: $userId})-[:OWNS]->(b:Block {id: $blockId})
            CREATE (a:Activity {
                id: $activityId,
                timestamp: datetime(),
                changeTypes: $changeTypes,
                titleLengthDelta: $titleLengthDelta,
                contentLengthDelta: $contentLengthDelta,
                totalLength: $totalLength,
                isExpansion: $isExpansion,
                isRefinement: $isRefinement
            })
            CREATE (b)-[:ACTIVITY]->(a)
            WITH b, a
            MATCH (b)-[:ACTIVITY]->(act:Activity)
            WITH b, a, collect(act) AS activities
            WITH b, a, activities,
                 [act IN activities | abs(act.contentLengthDelta)] AS editSizes,
                 duration.inDays(b.createdAt, datetime()).days AS age
            SET b.totalEdits = size(activities),
                b.lastEditTimestamp = a.timestamp,
                b.editFrequency = toFloat(size(activities)) / CASE WHEN age < 1 THEN 1 ELSE age END,
                b.averageEditSize = toFloat(reduce(total = 0, s IN editSizes | total + s))
                    / size(editSizes)
            RETURN a.id AS id,
                   a.timestamp AS timestamp,
                   b.totalEdits AS totalEdits,
                   b.lastEditTimestamp AS lastEditTimestamp,
                   b.editFrequency AS editFrequency,
                   b.averageEditSize AS averageEditSize
            """,
            {
                "userId": user_id,
                "blockId": block_id,
                "activityId": activity_id,
                "changeTypes": [change_type.value for change_type in change.change_types],
                "titleLengthDelta": change.metrics.title_length_delta,
                "contentLengthDelta": change.metrics.content_length_delta,
                "totalLength": change.metrics.total_length,
                "isExpansion": change.patterns.is_expansion,
                "isRefinement": change.patterns.is_refinement,
            },
        )

        if not records:
            return None

        record = records[0]
        return BlockActivity(
            id=record["id"],
            timestamp=_to_datetime(record["timestamp"]),
            change=change,
            block_stats=BlockEditStats(
                total_edits=record["totalEdits"],
                last_edit_timestamp=_to_datetime(record["lastEditTimestamp"]),
                edit_frequency=record["editFrequency"],
                average_edit_size=record["averageEditSize"],
            ),
        )

    async def record_previous(self, block_id: str, previous_block_id: str, user_id: str) -> bool:
        records = await self.execute_write(
            """
            MATCH (u:User {id: $userId})-[:OWNS]->(current:Block {id: $blockId})
            MATCH (u)-[:OWNS]->(previous:Block {id: $previousBlockId})
            MERGE (current)-[r:PREVIOUS]->(previous)
            SET r.timestamp = datetime()
            RETURN 1 AS linked
            """,
            {"userId": user_id, "blockId": block_id, "previousBlockId": previous_block_id},
        )

        return bool(records)

    async def record_feedback(
        self,
        block_id: str,
        user_id: str,
        feedback_id: str,
        recommendation: str,
        helpful: bool,
    ) -> bool:
        records = await self.execute_write(
            """
            MATCH (:User {id: $userId})-[:OWNS]->(b:Block {id: $blockId})
            CREATE (f:Feedback {
                id: $feedbackId,
                timestamp: datetime(),
                recommendationType: $recommendation,
                wasHelpful: $helpful
            })
            CREATE (b)-[:FEEDBACK]->(f)
            RETURN f.id AS id
            """,
            {
                "userId": user_id,
                "blockId": block_id,
                "feedbackId": feedback_id,
                "recommendation": recommendation,
                "helpful": helpful,
            },
        )

        return bool(records)

    # ═══════════════════════════════════════════════════════════
    # PROJECTS
    # ═══════════════════════════════════════════════════════════

    async def create_project(self, project: Project) -> Project:
        records = await self.execute_write(
            f"""
            MERGE (u:User {{id: $userId}})
            CREATE (p:Project {{
                id: $id,
                name: $name,
                description: $description,
                createdAt: datetime(),
                updatedAt: datetime()
            }})
            CREATE (u)-[:OWNS]->(p)
            RETURN {PROJECT_MAP} AS project
            """,
            {
                "userId": project.user_id,
                "id": project.id,
                "name": project.name,
                "description": project.description,
            },
        )

        if not records:
            raise PersistenceError("Failed to create project: no record returned")
        return self._record_to_project(records[0]["project"], project.user_id)

    async def get_project(self, project_id: str, user_id: str) -> Project | None:
        records = await self.execute_query(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(p:Project {{id: $id}})
            RETURN {PROJECT_MAP} AS project
            """,
            {"id": project_id, "userId": user_id},
        )

        if not records:
            return None
        return self._record_to_project(records[0]["project"], user_id)

    async def list_projects(self, user_id: str) -> list[Project]:
        records = await self.execute_query(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(p:Project)
            RETURN {PROJECT_MAP} AS project
            ORDER BY p.updatedAt DESC
            """,
            {"userId": user_id},
        )

        return [self._record_to_project(record["project"], user_id) for record in records]

    async def update_project(self, project_id: str, user_id: str, updates: dict) -> Project | None:
        records = await self.execute_write(
            f"""
            MATCH (:User {{id: $userId}})-[:OWNS]->(p:Project {{id: $id}})
            SET p += $updates, p.updatedAt = datetime()
            RETURN {PROJECT_MAP} AS project
            """,
            {"id": project_id, "userId": user_id, "updates": updates},
        )

        if not records:
            return None
        return self._record_to_project(records[0]["project"], user_id)

    async def delete_project(self, project_id: str, user_id: str) -> bool:
        records = await self.execute_write(
            """
            MATCH (:User {id: $userId})-[:OWNS]->(p:Project {id: $id})
            DETACH DELETE p
            RETURN 1 AS deleted
            """,
            {"id": project_id, "userId": user_id},
        )

        return bool(records)

    async def close(self) -> None:
        """Close the Neo4j driver."""
        if self.driver is not None:
            await self.driver.close()
            self.driver = None

    # HELPER METHODS

    @staticmethod
    def _block_params(block: Block) -> dict[str, Any]:
        return {
            "id": block.id,
            "title": block.title,
            "content": block.content,
            "plainText": block.plain_text,
            "type": BlockType(block.type).value,
            "embeddings": block.embeddings,
        }

    @staticmethod
    def _record_to_block(data: dict[str, Any], user_id: str | None) -> Block:
        """Convert a block map projection into a Block."""
        return Block(
            id=data["id"],
            user_id=user_id,
            title=data.get("title") or "",
            content=data.get("content") or "",
            plain_text=data.get("plainText") or "",
            type=BlockType(data.get("type") or BlockType.TEXT.value),
            embeddings=data.get("embeddings"),
            project_id=data.get("projectId"),
            created_at=_to_datetime(data.get("createdAt")) or datetime.now(),
            updated_at=_to_datetime(data.get("updatedAt")) or datetime.now(),
        )

    @staticmethod
    def _record_to_project(data: dict[str, Any], user_id: str | None) -> Project:
        """Convert a project map projection into a Project."""
        return Project(
            id=data["id"],
            user_id=user_id,
            name=data.get("name") or "",
            description=data.get("description") or "",
            created_at=_to_datetime(data.get("createdAt")) or datetime.now(),
            updated_at=_to_datetime(data.get("updatedAt")) or datetime.now(),
        )
