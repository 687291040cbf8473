"""Read-only projections of the reporting graph.

Nodes and edges are read in two separate bulk calls with no isolation between
them, so a concurrent write can leave edges that point at employees missing
from the node snapshot. Such edges are skipped rather than treated as errors.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from hierarchigraph.models.employee import Employee, EmployeeRef, EmployeeView
from hierarchigraph.models.hierarchy import HierarchyNode, ManagesEdge
from hierarchigraph.services.edge_store import EdgeStore
from hierarchigraph.services.errors import NotFound
from hierarchigraph.services.node_store import NodeStore

logger = logging.getLogger(__name__)


def _parent_map(employees: dict[str, Employee], edges: list[ManagesEdge]) -> dict[str, str]:
    """subordinate id -> manager id, keeping the oldest edge per subordinate."""
    parents: dict[str, str] = {}
    for edge in sorted(edges, key=lambda e: e.created_at):
        if edge.source_id not in employees or edge.target_id not in employees:
            logger.debug("Skipping stale edge %s (%s -> %s)", edge.id, edge.source_id, edge.target_id)
            continue
        if edge.source_id == edge.target_id or edge.target_id in parents:
            continue
        parents[edge.target_id] = edge.source_id
    return parents


def _plain(employee: Employee) -> dict:
    return employee.model_dump(exclude={"full_name"})


class TreeBuilder:
    def __init__(self, nodes: NodeStore, edges: EdgeStore) -> None:
        self.nodes = nodes
        self.edges = edges

    async def build_forest(self) -> list[HierarchyNode]:
        employees = {e.id: e for e in await self.nodes.all()}
        edges = await self.edges.all()
        parents = _parent_map(employees, edges)

        tree = {eid: HierarchyNode.model_validate(_plain(emp)) for eid, emp in employees.items()}
        children: dict[str, list[str]] = defaultdict(list)
        for child_id, parent_id in parents.items():
            children[parent_id].append(child_id)
            tree[child_id].manager_id = parent_id
            tree[child_id].manager = EmployeeRef.of(employees[parent_id])

        def order(ids: list[str]) -> list[str]:
            return sorted(ids, key=lambda i: employees[i].sort_key())

        roots = order([eid for eid in employees if eid not in parents])

        # Walk down from the roots; each node is nested at most once.
        placed: set[str] = set(roots)
        stack = list(roots)
        while stack:
            node_id = stack.pop()
            node = tree[node_id]
            for child_id in order(children.get(node_id, [])):
                node.subordinates.append(EmployeeRef.of(employees[child_id]))
                if child_id in placed:
                    continue
                placed.add(child_id)
                node.children.append(tree[child_id])
                stack.append(child_id)

        if len(placed) < len(employees):
            logger.warning("%d employees unreachable from any root", len(employees) - len(placed))

        return [tree[r] for r in roots]

    async def build_list(self, employees: list[Employee]) -> list[EmployeeView]:
        """Annotate *employees* with their immediate manager and subordinates."""
        known = {e.id: e for e in await self.nodes.all()}
        known.update({e.id: e for e in employees})
        parents = _parent_map(known, await self.edges.all())

        subordinates: dict[str, list[Employee]] = defaultdict(list)
        for child_id, parent_id in parents.items():
            subordinates[parent_id].append(known[child_id])

        views: list[EmployeeView] = []
        for employee in employees:
            manager_id = parents.get(employee.id)
            views.append(
                EmployeeView(
                    **_plain(employee),
                    manager_id=manager_id,
                    manager=EmployeeRef.of(known[manager_id]) if manager_id else None,
                    subordinates=[
                        EmployeeRef.of(s) for s in sorted(subordinates[employee.id], key=Employee.sort_key)
                    ],
                )
            )
        return views

    async def describe(self, employee: Employee) -> EmployeeView:
        """Single-employee view resolved with point lookups."""
        manager: EmployeeRef | None = None
        manager_id = await self.edges.incoming_source(employee.id)
        if manager_id:
            try:
                manager = EmployeeRef.of(await self.nodes.get(manager_id))
            except NotFound:
                logger.debug("Manager %s of %s no longer resolves", manager_id, employee.id)
                manager_id = None

        subordinates: list[Employee] = []
        for target in await self.edges.outgoing_targets(employee.id):
            try:
                subordinates.append(await self.nodes.get(target))
            except NotFound:
                logger.debug("Subordinate %s of %s no longer resolves", target, employee.id)

        return EmployeeView(
            **_plain(employee),
            manager_id=manager_id,
            manager=manager,
            subordinates=[EmployeeRef.of(s) for s in sorted(subordinates, key=Employee.sort_key)],
        )
