from __future__ import annotations

import time
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from starlette.testclient import TestClient

from hierarchigraph.core.dependencies import get_current_user, get_engine
from hierarchigraph.main import app
from hierarchigraph.models.auth import UserInfo
from hierarchigraph.persistence.memory import InMemoryGraphStore
from hierarchigraph.services.hierarchy_engine import HierarchyEngine

TEST_JWT_SECRET = "test-secret-00000000-0000-0000-0000-000000000000"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _auth_settings():
    from hierarchigraph.core.config import settings

    original_secret = settings.JWT_SECRET
    settings.JWT_SECRET = TEST_JWT_SECRET
    yield
    settings.JWT_SECRET = original_secret


@pytest.fixture
def store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def engine(store) -> HierarchyEngine:
    return HierarchyEngine(store)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_token():
    def _make_token(
        *,
        sub: str = "user-123",
        name: str = "Test User",
        email: str = "test@hierarchigraph.com",
        role: str | None = "user",
        expired: bool = False,
        secret: str = TEST_JWT_SECRET,
    ) -> str:
        now = int(time.time())
        claims: dict[str, Any] = {
            "sub": sub,
            "name": name,
            "email": email,
            "exp": now - 3600 if expired else now + 3600,
            "iat": now - 60,
        }
        if role is not None:
            claims["role"] = role
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make_token


@pytest.fixture
def employee_data():
    counter = {"n": 0}

    def _employee_data(first_name: str, last_name: str = "Doe", **overrides: Any) -> dict[str, Any]:
        counter["n"] += 1
        data: dict[str, Any] = {
            "employee_id": f"E{counter['n']:03d}",
            "first_name": first_name,
            "last_name": last_name,
            "email": f"{first_name}.{last_name}@company.com".lower(),
            "position": "Engineer",
            "department": "Engineering",
            "salary": 50000,
            "hire_date": "2021-03-01",
        }
        data.update(overrides)
        return data

    return _employee_data


@pytest.fixture
def mock_user_viewer():
    return UserInfo(id="viewer-1", name="Viewer User", email="viewer@hierarchigraph.com", roles=["user"])


@pytest.fixture
def mock_user_admin():
    return UserInfo(id="admin-1", name="Admin User", email="admin@hierarchigraph.com", roles=["admin"])


@pytest.fixture
def authenticated_client(mock_user_admin):
    app.dependency_overrides[get_current_user] = lambda: mock_user_admin
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def viewer_client(mock_user_viewer):
    app.dependency_overrides[get_current_user] = lambda: mock_user_viewer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
