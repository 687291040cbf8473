"""Graph-shaped models: manager edges and materialized tree nodes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from hierarchigraph.models.employee import EmployeeView

MANAGES = "MANAGES"
EMPLOYEE = "Employee"


class ManagesEdge(BaseModel):
    """Directed manager -> subordinate edge."""

    id: str
    source_id: str
    target_id: str
    created_at: datetime


class HierarchyNode(EmployeeView):
    children: list[HierarchyNode] = []
