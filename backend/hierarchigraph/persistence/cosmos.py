"""Azure Cosmos DB graph store (SQL API, one container per element kind)."""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any

from azure.core.exceptions import AzureError
from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from hierarchigraph.core.config import Settings
from hierarchigraph.models.employee import utcnow
from hierarchigraph.models.hierarchy import ManagesEdge
from hierarchigraph.persistence.codec import edge_from_document, edge_to_document
from hierarchigraph.services.errors import BackingStoreUnavailable

logger = logging.getLogger(__name__)

_PROPERTY_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

Undo = Callable[[], Awaitable[Any]]


class CosmosGraphStore:
    """Vertices and edges live in two containers partitioned on ``/id``.

    Cosmos DB has no cross-partition transactions, so ``transaction()`` keeps
    a journal of compensating writes and replays it in reverse when the
    block fails.
    """

    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.vertices: Any = None
        self.edges: Any = None
        self.initialized: bool = False
        self.timeout: float = 10.0
        self._journal: list[Undo] | None = None

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing — graph store not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(settings.COSMOS_DB_DATABASE)
        self.vertices = db.get_container_client(settings.COSMOS_DB_VERTICES_CONTAINER)
        self.edges = db.get_container_client(settings.COSMOS_DB_EDGES_CONTAINER)
        self.timeout = settings.STORE_TIMEOUT_SECONDS
        self.initialized = True
        logger.info(
            "CosmosGraphStore initialized (vertices=%s, edges=%s)",
            settings.COSMOS_DB_VERTICES_CONTAINER,
            settings.COSMOS_DB_EDGES_CONTAINER,
        )

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.vertices = None
            self.edges = None
            self.initialized = False

    async def _call(self, awaitable: Awaitable[Any]) -> Any:
        if not self.initialized:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise BackingStoreUnavailable("Cosmos DB graph store not initialized")
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except CosmosResourceNotFoundError:
            raise
        except asyncio.TimeoutError as e:
            raise BackingStoreUnavailable(f"Cosmos DB call timed out after {self.timeout}s") from e
        except AzureError as e:
            raise BackingStoreUnavailable(f"Cosmos DB call failed: {e}") from e

    def _container(self, kind: str) -> Any:
        """Return the ``vertices`` or ``edges`` container client of an open store."""
        container = getattr(self, kind)
        if not self.initialized or container is None:
            raise BackingStoreUnavailable("Cosmos DB graph store not initialized")
        return container

    async def _query(self, kind: str, query: str, parameters: list[dict[str, Any]]) -> list[dict[str, Any]]:
        container = self._container(kind)

        async def collect() -> list[dict[str, Any]]:
            items: list[dict[str, Any]] = []
            async for item in container.query_items(
                query=query,
                parameters=parameters,
                enable_cross_partition_query=True,
            ):
                items.append(item)
            return items

        return await self._call(collect())

    async def _read(self, kind: str, item_id: str) -> dict[str, Any] | None:
        container = self._container(kind)
        try:
            return await self._call(container.read_item(item=item_id, partition_key=item_id))
        except CosmosResourceNotFoundError:
            return None

    def _record(self, undo: Undo) -> None:
        if self._journal is not None:
            self._journal.append(undo)

    async def insert_vertex(self, label: str, properties: Mapping[str, Any]) -> str:
        vertex_id = str(uuid.uuid4())
        body = {**properties, "id": vertex_id, "label": label}
        await self._call(self._container("vertices").create_item(body=body))
        self._record(lambda: self._container("vertices").delete_item(item=vertex_id, partition_key=vertex_id))
        return vertex_id

    async def get_vertex(self, vertex_id: str) -> dict[str, Any] | None:
        return await self._read("vertices", vertex_id)

    async def query_vertices(self, label: str, predicate: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        clauses = ["c.label = @label"]
        params: list[dict[str, Any]] = [{"name": "@label", "value": label}]
        for idx, (name, value) in enumerate((predicate or {}).items()):
            if not _PROPERTY_NAME.match(name):
                raise ValueError(f"Invalid property name: {name!r}")
            clauses.append(f"c.{name} = @p{idx}")
            params.append({"name": f"@p{idx}", "value": value})

        query = f"SELECT * FROM c WHERE {' AND '.join(clauses)}"
        return await self._query("vertices", query, params)

    async def update_vertex(self, vertex_id: str, properties: Mapping[str, Any]) -> dict[str, Any] | None:
        current = await self._read("vertices", vertex_id)
        if current is None:
            return None

        body = {**current, **{k: v for k, v in properties.items() if k not in ("id", "label")}}
        updated = await self._call(self._container("vertices").replace_item(item=vertex_id, body=body))
        self._record(lambda: self._container("vertices").upsert_item(body=current))
        return updated

    async def delete_vertex(self, vertex_id: str) -> None:
        current = await self._read("vertices", vertex_id)
        if current is None:
            return
        await self._call(self._container("vertices").delete_item(item=vertex_id, partition_key=vertex_id))
        self._record(lambda: self._container("vertices").create_item(body=current))

    async def insert_edge(self, label: str, from_id: str, to_id: str) -> ManagesEdge:
        edge = ManagesEdge(id=str(uuid.uuid4()), source_id=from_id, target_id=to_id, created_at=utcnow())
        await self._call(self._container("edges").create_item(body=edge_to_document(edge, label)))
        self._record(lambda: self._container("edges").delete_item(item=edge.id, partition_key=edge.id))
        return edge

    async def delete_edge(self, edge_id: str) -> None:
        current = await self._read("edges", edge_id)
        if current is None:
            return
        await self._call(self._container("edges").delete_item(item=edge_id, partition_key=edge_id))
        self._record(lambda: self._container("edges").create_item(body=current))

    async def query_edges(
        self,
        label: str,
        *,
        source_id: str | None = None,
        target_id: str | None = None,
    ) -> list[ManagesEdge]:
        query = "SELECT * FROM c WHERE c.label = @label"
        params: list[dict[str, Any]] = [{"name": "@label", "value": label}]
        if source_id is not None:
            query += " AND c.source = @source"
            params.append({"name": "@source", "value": source_id})
        if target_id is not None:
            query += " AND c.target = @target"
            params.append({"name": "@target", "value": target_id})

        return [edge_from_document(doc) for doc in await self._query("edges", query, params)]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._journal is not None:
            yield
            return

        self._journal = []
        try:
            yield
        except BaseException:
            journal, self._journal = self._journal, None
            await self._rollback(journal)
            raise
        finally:
            self._journal = None

    async def _rollback(self, journal: list[Undo]) -> None:
        logger.warning("Rolling back %d Cosmos DB writes", len(journal))
        for undo in reversed(journal):
            try:
                await self._call(undo())
            except (BackingStoreUnavailable, CosmosResourceNotFoundError):
                logger.exception("Compensating write failed during rollback")

    async def check_connection(self) -> bool:
        if not self.initialized:
            return False
        try:
            query = "SELECT VALUE COUNT(1) FROM c"
            async for _ in self.vertices.query_items(
                query=query,
                enable_cross_partition_query=True,
            ):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False
