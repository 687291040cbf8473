from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from hierarchigraph.core.dependencies import get_current_user
from hierarchigraph.main import app
from hierarchigraph.services.errors import BackingStoreUnavailable, ValidationFailed

BASE = "/api/v1/employees"


@pytest.fixture
def create(authenticated_client, employee_data):
    def _create(first_name: str, last_name: str = "Doe", **overrides) -> dict:
        response = authenticated_client.post(BASE, json=employee_data(first_name, last_name, **overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _create


def test_list_requires_auth(client):
    response = client.get(BASE)
    assert response.status_code == 401


def test_create_employee(authenticated_client, employee_data):
    response = authenticated_client.post(BASE, json=employee_data("Alice", email="Alice@Company.com"))

    assert response.status_code == 201
    data = response.json()
    assert data["id"]
    assert data["email"] == "alice@company.com"
    assert data["full_name"] == "Alice Doe"
    assert data["is_active"] is True
    assert data["manager"] is None
    assert data["subordinates"] == []


def test_create_requires_admin(viewer_client, employee_data):
    response = viewer_client.post(BASE, json=employee_data("Alice"))
    assert response.status_code == 403


def test_viewer_can_read(viewer_client):
    response = viewer_client.get(BASE)
    assert response.status_code == 200
    assert response.json() == []


def test_create_duplicate_employee_id_returns_409(authenticated_client, create, employee_data):
    create("Alice", employee_id="E100")

    response = authenticated_client.post(BASE, json=employee_data("Bob", employee_id="E100"))

    assert response.status_code == 409
    assert "E100" in response.json()["detail"]


def test_create_duplicate_email_returns_409(authenticated_client, create, employee_data):
    create("Alice", email="alice@company.com")

    response = authenticated_client.post(BASE, json=employee_data("Bob", email="alice@company.com"))

    assert response.status_code == 409


def test_create_invalid_email_returns_422(authenticated_client, employee_data):
    response = authenticated_client.post(BASE, json=employee_data("Alice", email="nope"))
    assert response.status_code == 422


def test_create_with_unknown_manager_returns_400(authenticated_client, employee_data):
    response = authenticated_client.post(BASE, json=employee_data("Alice", manager_id="missing"))
    assert response.status_code == 400
    assert "Manager not found" in response.json()["detail"]


def test_get_employee(authenticated_client, create):
    boss = create("Alice")
    report = create("Bob", manager_id=boss["id"])

    response = authenticated_client.get(f"{BASE}/{boss['id']}")

    assert response.status_code == 200
    data = response.json()
    assert [s["id"] for s in data["subordinates"]] == [report["id"]]
    assert report["manager"]["id"] == boss["id"]


def test_get_unknown_employee_returns_404(authenticated_client):
    response = authenticated_client.get(f"{BASE}/missing")
    assert response.status_code == 404


def test_update_employee(authenticated_client, create):
    alice = create("Alice")
    bob = create("Bob")

    response = authenticated_client.put(f"{BASE}/{bob['id']}", json={"position": "Lead", "manager_id": alice["id"]})

    assert response.status_code == 200
    data = response.json()
    assert data["position"] == "Lead"
    assert data["manager_id"] == alice["id"]
    assert data["updated_at"] != bob["updated_at"]
    assert data["created_at"] == bob["created_at"]


def test_update_cycle_returns_409(authenticated_client, create):
    alice = create("Alice")
    bob = create("Bob", manager_id=alice["id"])

    response = authenticated_client.put(f"{BASE}/{alice['id']}", json={"manager_id": bob["id"]})

    assert response.status_code == 409


def test_update_self_manager_returns_400(authenticated_client, create):
    alice = create("Alice")

    response = authenticated_client.put(f"{BASE}/{alice['id']}", json={"manager_id": alice["id"]})

    assert response.status_code == 400


def test_update_unknown_employee_returns_404(authenticated_client):
    response = authenticated_client.put(f"{BASE}/missing", json={"position": "Lead"})
    assert response.status_code == 404


def test_update_requires_admin(viewer_client):
    response = viewer_client.put(f"{BASE}/whatever", json={"position": "Lead"})
    assert response.status_code == 403


def test_delete_reassigns_subordinates(authenticated_client, create):
    alice = create("Alice")
    bob = create("Bob", manager_id=alice["id"])
    carol = create("Carol", manager_id=bob["id"])

    response = authenticated_client.delete(f"{BASE}/{bob['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Employee deleted successfully", "reassigned": [carol["id"]]}
    assert authenticated_client.get(f"{BASE}/{bob['id']}").status_code == 404
    assert authenticated_client.get(f"{BASE}/{carol['id']}").json()["manager_id"] == alice["id"]


def test_delete_unknown_employee_returns_404(authenticated_client):
    response = authenticated_client.delete(f"{BASE}/missing")
    assert response.status_code == 404


def test_list_filters(authenticated_client, create):
    alice = create("Alice", department="Engineering")
    bob = create("Bob", department="HR", manager_id=alice["id"])
    carol = create("Carol", department="Engineering")
    authenticated_client.put(f"{BASE}/{carol['id']}", json={"is_active": False})

    def names(params):
        response = authenticated_client.get(BASE, params=params)
        assert response.status_code == 200
        return [e["first_name"] for e in response.json()]

    assert names({}) == ["Alice", "Bob", "Carol"]
    assert names({"department": "Engineering"}) == ["Alice", "Carol"]
    assert names({"is_active": "false"}) == ["Carol"]
    assert names({"manager_id": alice["id"]}) == ["Bob"]
    assert names({"manager_id": bob["id"]}) == []


def test_hierarchy_tree(authenticated_client, create):
    alice = create("Alice")
    bob = create("Bob", manager_id=alice["id"])
    create("Carol", manager_id=bob["id"])
    create("Dan")

    response = authenticated_client.get(f"{BASE}/hierarchy/tree")

    assert response.status_code == 200
    roots = response.json()
    assert [r["first_name"] for r in roots] == ["Alice", "Dan"]
    assert roots[0]["children"][0]["first_name"] == "Bob"
    assert roots[0]["children"][0]["children"][0]["first_name"] == "Carol"
    assert roots[1]["children"] == []


def test_departments_list(authenticated_client, create):
    create("Alice", department="Engineering")
    create("Bob", department="HR")
    create("Carol", department="Engineering")

    response = authenticated_client.get(f"{BASE}/departments/list")

    assert response.status_code == 200
    assert response.json() == ["Engineering", "HR"]


def test_managers_list(authenticated_client, create):
    alice = create("Alice")
    create("Bob", manager_id=alice["id"])

    response = authenticated_client.get(f"{BASE}/managers/list")

    assert response.status_code == 200
    managers = response.json()
    assert [m["id"] for m in managers] == [alice["id"]]
    assert set(managers[0]) == {"id", "first_name", "last_name", "email", "position"}


@pytest.mark.anyio
async def test_backing_store_failure_returns_503(async_client, engine, mock_user_viewer):
    app.dependency_overrides[get_current_user] = lambda: mock_user_viewer
    engine.store.query_vertices = AsyncMock(side_effect=BackingStoreUnavailable("timed out"))

    response = await async_client.get(BASE)

    assert response.status_code == 503


@pytest.mark.anyio
async def test_engine_validation_failure_returns_422(async_client, engine, mock_user_viewer):
    app.dependency_overrides[get_current_user] = lambda: mock_user_viewer
    engine.get_hierarchy_forest = AsyncMock(side_effect=ValidationFailed("Reporting tree too large"))

    response = await async_client.get(f"{BASE}/hierarchy/tree")

    assert response.status_code == 422
    assert response.json()["detail"] == "Reporting tree too large"


def test_engine_missing_returns_503(authenticated_client):
    app.state.engine = None

    response = authenticated_client.get(BASE)

    assert response.status_code == 503
