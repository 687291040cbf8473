from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from hierarchigraph.models.employee import utcnow
from hierarchigraph.models.hierarchy import ManagesEdge

logger = logging.getLogger(__name__)


class InMemoryGraphStore:
    """Process-local graph store.

    Vertices are kept as property dicts keyed by id, edges as
    ``(label, ManagesEdge)`` pairs keyed by edge id. ``transaction()`` takes a
    snapshot on entry and restores it if the block raises.
    """

    def __init__(self) -> None:
        self._vertices: dict[str, dict[str, Any]] = {}
        self._edges: dict[str, tuple[str, ManagesEdge]] = {}
        self._tx_depth = 0

    async def insert_vertex(self, label: str, properties: Mapping[str, Any]) -> str:
        vertex_id = str(uuid.uuid4())
        self._vertices[vertex_id] = {**properties, "id": vertex_id, "label": label}
        return vertex_id

    async def get_vertex(self, vertex_id: str) -> dict[str, Any] | None:
        vertex = self._vertices.get(vertex_id)
        return dict(vertex) if vertex is not None else None

    async def query_vertices(self, label: str, predicate: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        predicate = predicate or {}
        return [
            dict(vertex)
            for vertex in self._vertices.values()
            if vertex.get("label") == label and all(vertex.get(k) == v for k, v in predicate.items())
        ]

    async def update_vertex(self, vertex_id: str, properties: Mapping[str, Any]) -> dict[str, Any] | None:
        vertex = self._vertices.get(vertex_id)
        if vertex is None:
            return None
        vertex.update({k: v for k, v in properties.items() if k not in ("id", "label")})
        return dict(vertex)

    async def delete_vertex(self, vertex_id: str) -> None:
        self._vertices.pop(vertex_id, None)

    async def insert_edge(self, label: str, from_id: str, to_id: str) -> ManagesEdge:
        edge = ManagesEdge(id=str(uuid.uuid4()), source_id=from_id, target_id=to_id, created_at=utcnow())
        self._edges[edge.id] = (label, edge)
        return edge

    async def delete_edge(self, edge_id: str) -> None:
        self._edges.pop(edge_id, None)

    async def query_edges(
        self,
        label: str,
        *,
        source_id: str | None = None,
        target_id: str | None = None,
    ) -> list[ManagesEdge]:
        return [
            edge
            for edge_label, edge in self._edges.values()
            if edge_label == label
            and (source_id is None or edge.source_id == source_id)
            and (target_id is None or edge.target_id == target_id)
        ]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield
            finally:
                self._tx_depth -= 1
            return

        vertices = copy.deepcopy(self._vertices)
        edges = dict(self._edges)
        self._tx_depth = 1
        try:
            yield
        except BaseException:
            self._vertices = vertices
            self._edges = edges
            logger.debug("In-memory transaction rolled back")
            raise
        finally:
            self._tx_depth = 0

    async def check_connection(self) -> bool:
        return True

    async def close(self) -> None:
        self._vertices.clear()
        self._edges.clear()
