from __future__ import annotations

import logging

from hierarchigraph.models.hierarchy import MANAGES, ManagesEdge
from hierarchigraph.persistence.base import GraphStore
from hierarchigraph.services.errors import CycleDetected, SelfReference, ValidationFailed

logger = logging.getLogger(__name__)


class EdgeStore:
    """Manager -> subordinate edges, at most one incoming edge per subordinate."""

    def __init__(self, store: GraphStore, max_nodes: int = 10_000) -> None:
        self.store = store
        self.max_nodes = max_nodes

    async def add_edge(self, manager_id: str, subordinate_id: str) -> ManagesEdge:
        if manager_id == subordinate_id:
            raise SelfReference(subordinate_id)
        if manager_id in await self.descendants(subordinate_id):
            raise CycleDetected(subordinate_id, manager_id)

        await self.remove_incoming(subordinate_id)
        return await self.store.insert_edge(MANAGES, manager_id, subordinate_id)

    async def remove_incoming(self, subordinate_id: str) -> None:
        for edge in await self.store.query_edges(MANAGES, target_id=subordinate_id):
            await self.store.delete_edge(edge.id)

    async def remove_all_touching(self, employee_id: str) -> None:
        outgoing = await self.store.query_edges(MANAGES, source_id=employee_id)
        incoming = await self.store.query_edges(MANAGES, target_id=employee_id)
        for edge in {e.id: e for e in outgoing + incoming}.values():
            await self.store.delete_edge(edge.id)

    async def outgoing_targets(self, manager_id: str) -> set[str]:
        return {e.target_id for e in await self.store.query_edges(MANAGES, source_id=manager_id)}

    async def incoming_source(self, subordinate_id: str) -> str | None:
        edges = await self.store.query_edges(MANAGES, target_id=subordinate_id)
        if not edges:
            return None
        if len(edges) > 1:
            logger.warning("Employee %s has %d incoming manager edges", subordinate_id, len(edges))
        return min(edges, key=lambda e: e.created_at).source_id

    async def descendants(self, root_id: str) -> set[str]:
        """Everyone below *root_id*, found by a bounded breadth-first walk."""
        seen: set[str] = set()
        frontier = [root_id]
        while frontier:
            next_frontier: list[str] = []
            for node_id in frontier:
                for target in await self.outgoing_targets(node_id):
                    if target in seen or target == root_id:
                        continue
                    seen.add(target)
                    next_frontier.append(target)
            if len(seen) > self.max_nodes:
                raise ValidationFailed(
                    f"Reporting tree below {root_id} exceeds {self.max_nodes} employees"
                )
            frontier = next_frontier
        return seen

    async def all(self) -> list[ManagesEdge]:
        return await self.store.query_edges(MANAGES)
