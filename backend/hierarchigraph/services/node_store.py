from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from hierarchigraph.models.employee import Employee, EmployeeCreate, ensure_utc, normalize_email, utcnow
from hierarchigraph.models.hierarchy import EMPLOYEE
from hierarchigraph.persistence.base import GraphStore
from hierarchigraph.persistence.codec import employee_from_vertex, employee_to_properties, property_name
from hierarchigraph.services.errors import DuplicateEmail, DuplicateEmployeeId, NotFound

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "employee_id", "created_at", "updated_at"}


class NodeStore:
    """Employee records keyed by identifier. Knows nothing about edges."""

    def __init__(self, store: GraphStore) -> None:
        self.store = store
        self._last_stamp: datetime | None = None

    def _stamp(self) -> datetime:
        now = utcnow()
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    async def ensure_unique(
        self,
        *,
        employee_id: str | None = None,
        email: str | None = None,
        exclude_id: str | None = None,
    ) -> None:
        if employee_id is not None:
            matches = await self.store.query_vertices(EMPLOYEE, {property_name("employee_id"): employee_id.strip()})
            if any(str(m["id"]) != exclude_id for m in matches):
                raise DuplicateEmployeeId(employee_id)

        if email is not None:
            matches = await self.store.query_vertices(EMPLOYEE, {property_name("email"): normalize_email(email)})
            if any(str(m["id"]) != exclude_id for m in matches):
                raise DuplicateEmail(normalize_email(email))

    async def insert(self, data: EmployeeCreate) -> str:
        await self.ensure_unique(employee_id=data.employee_id, email=data.email)

        now = self._stamp()
        fields = data.model_dump(exclude={"manager_id"})
        fields.update(is_active=True, created_at=now, updated_at=now)
        return await self.store.insert_vertex(EMPLOYEE, employee_to_properties(fields))

    async def get(self, employee_id: str) -> Employee:
        vertex = await self.store.get_vertex(employee_id)
        if vertex is None or vertex.get("label", EMPLOYEE) != EMPLOYEE:
            raise NotFound(employee_id)
        return employee_from_vertex(vertex)

    async def find_by_property(self, field: str, value: Any) -> Employee:
        if field == "email" and isinstance(value, str):
            value = normalize_email(value)
        matches = await self.store.query_vertices(EMPLOYEE, {property_name(field): value})
        if not matches:
            raise NotFound(f"{field}={value}")
        return employee_from_vertex(matches[0])

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[Employee]:
        predicate = {property_name(field): value for field, value in (filters or {}).items()}
        return [employee_from_vertex(v) for v in await self.store.query_vertices(EMPLOYEE, predicate)]

    async def all(self) -> list[Employee]:
        return await self.find_all()

    async def update(self, employee_id: str, fields: Mapping[str, Any]) -> Employee:
        changes = {k: v for k, v in fields.items() if k not in _IMMUTABLE_FIELDS}
        if isinstance(changes.get("email"), str):
            changes["email"] = normalize_email(changes["email"])
        for key, value in changes.items():
            if isinstance(value, datetime):
                changes[key] = ensure_utc(value)
        changes["updated_at"] = self._stamp()

        vertex = await self.store.update_vertex(employee_id, employee_to_properties(changes))
        if vertex is None:
            raise NotFound(employee_id)
        return employee_from_vertex(vertex)

    async def delete(self, employee_id: str) -> None:
        await self.store.delete_vertex(employee_id)

    async def distinct_values(self, field: str) -> list[str]:
        key = property_name(field)
        values = {v.get(key) for v in await self.store.query_vertices(EMPLOYEE)}
        return sorted(str(v) for v in values if v)
