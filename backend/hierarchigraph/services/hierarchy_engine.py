"""Hierarchy engine: the only path by which employees and manager edges change.

Every mutation runs under a single writer lock and inside one store
transaction, so the snapshot -> check -> mutate sequence of one call cannot
interleave with another and a failed call leaves no partial writes behind.
Reads take no lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from hierarchigraph.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeFilters,
    EmployeeRef,
    EmployeeUpdate,
    EmployeeView,
)
from hierarchigraph.models.hierarchy import HierarchyNode
from hierarchigraph.persistence.base import GraphStore
from hierarchigraph.services.edge_store import EdgeStore
from hierarchigraph.services.errors import ManagerNotFound, NotFound, SelfReference, ValidationFailed
from hierarchigraph.services.node_store import NodeStore
from hierarchigraph.services.query_index import QueryIndex
from hierarchigraph.services.tree_builder import TreeBuilder

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(
            f"Invalid {model.__name__}: {e.error_count()} error(s)",
            errors=e.errors(include_url=False, include_context=False),
        ) from e


class HierarchyEngine:
    def __init__(self, store: GraphStore, *, max_hierarchy_nodes: int = 10_000) -> None:
        self.store = store
        self.nodes = NodeStore(store)
        self.edges = EdgeStore(store, max_nodes=max_hierarchy_nodes)
        self.tree_builder = TreeBuilder(self.nodes, self.edges)
        self.query_index = QueryIndex(self.nodes, self.edges)
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _mutation(self) -> AsyncIterator[None]:
        async with self._lock:
            async with self.store.transaction():
                yield

    async def _require_manager(self, manager_id: str) -> Employee:
        try:
            return await self.nodes.get(manager_id)
        except NotFound:
            raise ManagerNotFound(manager_id) from None

    async def _set_manager(self, employee_id: str, manager_id: str | None) -> None:
        if not manager_id:
            await self.nodes.get(employee_id)
            await self.edges.remove_incoming(employee_id)
            logger.info("Detached %s from its manager", employee_id)
            return

        if employee_id == manager_id:
            raise SelfReference(employee_id)
        await self.nodes.get(employee_id)
        await self._require_manager(manager_id)
        await self.edges.add_edge(manager_id, employee_id)
        logger.info("Assigned manager %s to %s", manager_id, employee_id)

    async def create_employee(self, data: EmployeeCreate | Mapping[str, Any]) -> EmployeeView:
        payload = _parse(EmployeeCreate, data)

        async with self._mutation():
            await self.nodes.ensure_unique(employee_id=payload.employee_id, email=payload.email)
            if payload.manager_id:
                await self._require_manager(payload.manager_id)

            new_id = await self.nodes.insert(payload)
            if payload.manager_id:
                await self._set_manager(new_id, payload.manager_id)

        logger.info("Created employee %s (%s)", new_id, payload.employee_id)
        return await self.get_employee_by_id(new_id)

    async def get_employee_by_id(self, employee_id: str) -> EmployeeView:
        employee = await self.nodes.get(employee_id)
        return await self.tree_builder.describe(employee)

    async def set_manager(self, employee_id: str, manager_id: str | None) -> EmployeeView:
        async with self._mutation():
            await self._set_manager(employee_id, manager_id)
        return await self.get_employee_by_id(employee_id)

    async def update_employee(self, employee_id: str, data: EmployeeUpdate | Mapping[str, Any]) -> EmployeeView:
        payload = _parse(EmployeeUpdate, data)
        changes = payload.property_changes()

        async with self._mutation():
            current = await self.nodes.get(employee_id)

            if "email" in changes and changes["email"] != current.email:
                await self.nodes.ensure_unique(email=str(changes["email"]), exclude_id=employee_id)
            if payload.changes_manager and payload.manager_id:
                if payload.manager_id == employee_id:
                    raise SelfReference(employee_id)
                await self._require_manager(payload.manager_id)

            await self.nodes.update(employee_id, changes)

            if payload.changes_manager:
                current_manager = await self.edges.incoming_source(employee_id)
                if payload.manager_id != current_manager:
                    await self._set_manager(employee_id, payload.manager_id)

        logger.info("Updated employee %s (%s)", employee_id, ", ".join(sorted(payload.model_fields_set)))
        return await self.get_employee_by_id(employee_id)

    async def delete_employee(self, employee_id: str) -> list[str]:
        """Delete an employee, handing its reports to its own manager.

        Returns the ids of the re-parented (or detached) subordinates.
        """
        async with self._mutation():
            await self.nodes.get(employee_id)
            manager_id = await self.edges.incoming_source(employee_id)
            subordinates = sorted(await self.edges.outgoing_targets(employee_id))

            for subordinate_id in subordinates:
                await self._set_manager(subordinate_id, manager_id)

            await self.edges.remove_all_touching(employee_id)
            await self.nodes.delete(employee_id)

        logger.info(
            "Deleted employee %s; %d subordinate(s) moved to %s",
            employee_id,
            len(subordinates),
            manager_id or "root",
        )
        return subordinates

    async def list_employees(self, filters: EmployeeFilters | Mapping[str, Any] | None = None) -> list[EmployeeView]:
        criteria = _parse(EmployeeFilters, filters or {})

        predicate: dict[str, Any] = {}
        if criteria.department:
            predicate["department"] = criteria.department
        if criteria.is_active is not None:
            predicate["is_active"] = criteria.is_active

        employees = await self.nodes.find_all(predicate)
        if criteria.manager_id:
            direct = await self.edges.outgoing_targets(criteria.manager_id)
            employees = [e for e in employees if e.id in direct]

        employees.sort(key=Employee.sort_key)
        return await self.tree_builder.build_list(employees)

    async def get_hierarchy_forest(self) -> list[HierarchyNode]:
        return await self.tree_builder.build_forest()

    async def get_departments(self) -> list[str]:
        return await self.query_index.get_departments()

    async def get_managers(self) -> list[EmployeeRef]:
        return await self.query_index.get_managers()

    async def check_connection(self) -> bool:
        return await self.store.check_connection()

    async def close(self) -> None:
        await self.store.close()
