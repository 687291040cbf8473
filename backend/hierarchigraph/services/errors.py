"""Failures raised by the hierarchy engine and its stores.

Every failure is terminal for the call that triggered it. Validation and
uniqueness failures are raised before any store mutation; structural
failures abort ``set_manager`` without touching edges.
"""

from __future__ import annotations


class HierarchyError(Exception):
    pass


class DuplicateEmployeeId(HierarchyError):
    def __init__(self, employee_id: str) -> None:
        super().__init__(f"Employee ID already exists: {employee_id}")
        self.employee_id = employee_id


class DuplicateEmail(HierarchyError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already exists: {email}")
        self.email = email


class NotFound(HierarchyError):
    def __init__(self, identifier: str, what: str = "Employee") -> None:
        super().__init__(f"{what} not found: {identifier}")
        self.identifier = identifier


class ManagerNotFound(NotFound):
    def __init__(self, identifier: str) -> None:
        super().__init__(identifier, what="Manager")


class SelfReference(HierarchyError):
    def __init__(self, employee_id: str) -> None:
        super().__init__(f"Employee {employee_id} cannot manage themselves")
        self.employee_id = employee_id


class CycleDetected(HierarchyError):
    def __init__(self, employee_id: str, manager_id: str) -> None:
        super().__init__(
            f"Assigning manager {manager_id} to {employee_id} would create a reporting cycle"
        )
        self.employee_id = employee_id
        self.manager_id = manager_id


class ValidationFailed(HierarchyError):
    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class BackingStoreUnavailable(HierarchyError):
    pass
