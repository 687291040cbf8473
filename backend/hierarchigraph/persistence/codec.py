"""Typed conversion between stored vertex properties and Employee records."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from hierarchigraph.models.employee import Employee, ensure_utc
from hierarchigraph.models.hierarchy import ManagesEdge

# Python attribute names -> stored vertex property names
_FIELD_MAP: list[tuple[str, str]] = [
    ("employee_id", "employeeId"),
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("email", "email"),
    ("position", "position"),
    ("department", "department"),
    ("hire_date", "hireDate"),
    ("salary", "salary"),
    ("is_active", "isActive"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
]

_TO_STORE = dict(_FIELD_MAP)


def property_name(field: str) -> str:
    try:
        return _TO_STORE[field]
    except KeyError:
        raise ValueError(f"Unknown employee field: {field}") from None


def encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    return value


def employee_to_properties(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Encode a full or partial set of employee fields for storage."""
    return {
        store_key: encode_value(fields[python_key])
        for python_key, store_key in _FIELD_MAP
        if python_key in fields
    }


def employee_from_vertex(vertex: Mapping[str, Any]) -> Employee:
    data: dict[str, Any] = {"id": str(vertex["id"])}
    for python_key, store_key in _FIELD_MAP:
        if store_key in vertex:
            data[python_key] = vertex[store_key]
    return Employee.model_validate(data)


def edge_from_document(doc: Mapping[str, Any]) -> ManagesEdge:
    return ManagesEdge(
        id=str(doc["id"]),
        source_id=str(doc["source"]),
        target_id=str(doc["target"]),
        created_at=doc["createdAt"],
    )


def edge_to_document(edge: ManagesEdge, label: str) -> dict[str, Any]:
    return {
        "id": edge.id,
        "label": label,
        "source": edge.source_id,
        "target": edge.target_id,
        "createdAt": encode_value(edge.created_at),
    }
