from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from hierarchigraph.core.dependencies import get_current_user, get_engine, require_role
from hierarchigraph.models.auth import UserInfo
from hierarchigraph.models.employee import EmployeeCreate, EmployeeFilters, EmployeeRef, EmployeeUpdate, EmployeeView
from hierarchigraph.models.hierarchy import HierarchyNode
from hierarchigraph.services.errors import (
    BackingStoreUnavailable,
    CycleDetected,
    DuplicateEmail,
    DuplicateEmployeeId,
    HierarchyError,
    ManagerNotFound,
    NotFound,
    SelfReference,
    ValidationFailed,
)
from hierarchigraph.services.hierarchy_engine import HierarchyEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])

# Order matters: ManagerNotFound is a NotFound.
_ERROR_STATUS: list[tuple[type[HierarchyError], int]] = [
    (DuplicateEmployeeId, status.HTTP_409_CONFLICT),
    (DuplicateEmail, status.HTTP_409_CONFLICT),
    (ManagerNotFound, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (SelfReference, status.HTTP_400_BAD_REQUEST),
    (CycleDetected, status.HTTP_409_CONFLICT),
    (ValidationFailed, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (BackingStoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _http_error(err: HierarchyError) -> HTTPException:
    code = next(
        (c for cls, c in _ERROR_STATUS if isinstance(err, cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    detail: object = str(err)
    if isinstance(err, ValidationFailed) and err.errors:
        detail = err.errors
    return HTTPException(status_code=code, detail=detail)


@router.get("", response_model=list[EmployeeView])
async def list_employees(
    department: str | None = None,
    is_active: bool | None = None,
    manager_id: str | None = None,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    filters = EmployeeFilters(department=department, is_active=is_active, manager_id=manager_id)
    try:
        return await engine.list_employees(filters)
    except HierarchyError as err:
        logger.error("Failed to list employees: %s", err)
        raise _http_error(err) from err


@router.get("/hierarchy/tree", response_model=list[HierarchyNode])
async def get_hierarchy_tree(
    user: UserInfo = Depends(get_current_user),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    try:
        return await engine.get_hierarchy_forest()
    except HierarchyError as err:
        logger.error("Failed to build hierarchy tree: %s", err)
        raise _http_error(err) from err


@router.get("/departments/list", response_model=list[str])
async def get_departments(
    user: UserInfo = Depends(get_current_user),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    try:
        return await engine.get_departments()
    except HierarchyError as err:
        logger.error("Failed to list departments: %s", err)
        raise _http_error(err) from err


@router.get("/managers/list", response_model=list[EmployeeRef])
async def get_managers(
    user: UserInfo = Depends(get_current_user),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    try:
        return await engine.get_managers()
    except HierarchyError as err:
        logger.error("Failed to list managers: %s", err)
        raise _http_error(err) from err


@router.get("/{employee_id}", response_model=EmployeeView)
async def get_employee(
    employee_id: str,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    try:
        return await engine.get_employee_by_id(employee_id)
    except HierarchyError as err:
        if not isinstance(err, NotFound):
            logger.error("Failed to get employee %s: %s", employee_id, err)
        raise _http_error(err) from err


@router.post("", response_model=EmployeeView, status_code=status.HTTP_201_CREATED)
async def create_employee(
    request: EmployeeCreate,
    user: UserInfo = Depends(require_role("admin")),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    try:
        employee = await engine.create_employee(request)
    except HierarchyError as err:
        logger.error("Create employee failed for user=%s: %s", user.name, err)
        raise _http_error(err) from err

    logger.info("Employee %s created by user=%s", employee.employee_id, user.name)
    return employee


@router.put("/{employee_id}", response_model=EmployeeView)
async def update_employee(
    employee_id: str,
    request: EmployeeUpdate,
    user: UserInfo = Depends(require_role("admin")),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    try:
        return await engine.update_employee(employee_id, request)
    except HierarchyError as err:
        logger.error("Update employee %s failed for user=%s: %s", employee_id, user.name, err)
        raise _http_error(err) from err


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: str,
    user: UserInfo = Depends(require_role("admin")),  # noqa: B008
    engine: HierarchyEngine = Depends(get_engine),  # noqa: B008
):
    try:
        reassigned = await engine.delete_employee(employee_id)
    except HierarchyError as err:
        logger.error("Delete employee %s failed for user=%s: %s", employee_id, user.name, err)
        raise _http_error(err) from err

    logger.info("Employee %s deleted by user=%s", employee_id, user.name)
    return {"message": "Employee deleted successfully", "reassigned": reassigned}
