from __future__ import annotations

import logging

from hierarchigraph.models.employee import Employee, EmployeeRef
from hierarchigraph.services.edge_store import EdgeStore
from hierarchigraph.services.node_store import NodeStore

logger = logging.getLogger(__name__)


class QueryIndex:
    """Derived read views, recomputed from the stores on every call."""

    def __init__(self, nodes: NodeStore, edges: EdgeStore) -> None:
        self.nodes = nodes
        self.edges = edges

    async def get_departments(self) -> list[str]:
        return await self.nodes.distinct_values("department")

    async def get_managers(self) -> list[EmployeeRef]:
        source_ids = {edge.source_id for edge in await self.edges.all()}
        if not source_ids:
            return []

        employees = {e.id: e for e in await self.nodes.all()}
        managers = [employees[i] for i in source_ids if i in employees]
        if len(managers) < len(source_ids):
            logger.debug("Dropped %d unresolved manager ids", len(source_ids) - len(managers))

        return [EmployeeRef.of(m) for m in sorted(managers, key=Employee.sort_key)]
