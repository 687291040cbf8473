"""Authentication models for application JWT tokens."""

from __future__ import annotations

from pydantic import BaseModel


class UserInfo(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    roles: list[str] = []
