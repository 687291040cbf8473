"""Graph store port interface.

The hierarchy engine only talks to storage through this protocol, so a
document store, a relational table pair or a native graph database can sit
behind it. Implementations raise ``BackingStoreUnavailable`` when the
backend cannot be reached or does not answer in time.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from hierarchigraph.models.hierarchy import ManagesEdge


class GraphStore(Protocol):
    async def insert_vertex(self, label: str, properties: Mapping[str, Any]) -> str:
        """Insert a vertex and return its store-assigned id."""
        ...

    async def get_vertex(self, vertex_id: str) -> dict[str, Any] | None:
        """Return the vertex properties (including ``id``) or ``None``."""
        ...

    async def query_vertices(self, label: str, predicate: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Return every vertex of *label* whose properties equal all of *predicate*."""
        ...

    async def update_vertex(self, vertex_id: str, properties: Mapping[str, Any]) -> dict[str, Any] | None:
        """Merge *properties* into the vertex; ``None`` if it does not exist."""
        ...

    async def delete_vertex(self, vertex_id: str) -> None:
        ...

    async def insert_edge(self, label: str, from_id: str, to_id: str) -> ManagesEdge:
        ...

    async def delete_edge(self, edge_id: str) -> None:
        ...

    async def query_edges(
        self,
        label: str,
        *,
        source_id: str | None = None,
        target_id: str | None = None,
    ) -> list[ManagesEdge]:
        ...

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group mutations so they all persist or none do."""
        ...

    async def check_connection(self) -> bool:
        ...

    async def close(self) -> None:
        ...
