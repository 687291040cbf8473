"""Employee models for the hierarchy engine and its HTTP surface."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC instant; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def _check_email(value: str) -> str:
    email = normalize_email(value)
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please enter a valid email")
    return email


class EmployeeCreate(BaseModel):
    """Payload for creating an employee, optionally under a manager."""

    model_config = ConfigDict(str_strip_whitespace=True)

    employee_id: str = Field(..., min_length=1, max_length=64)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    position: str = Field(..., min_length=1, max_length=200)
    department: str = Field(..., min_length=1, max_length=200)
    salary: float = Field(..., ge=0)
    hire_date: datetime = Field(default_factory=utcnow)
    manager_id: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("hire_date")
    @classmethod
    def _hire_date(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("manager_id")
    @classmethod
    def _manager_id(cls, value: str | None) -> str | None:
        return value or None


class EmployeeUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied.

    ``manager_id`` is relationship data: an explicit ``null`` detaches the
    employee from its manager, omitting the key leaves the edge untouched.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, min_length=3, max_length=254)
    position: str | None = Field(default=None, min_length=1, max_length=200)
    department: str | None = Field(default=None, min_length=1, max_length=200)
    salary: float | None = Field(default=None, ge=0)
    hire_date: datetime | None = None
    is_active: bool | None = None
    manager_id: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, value: str | None) -> str | None:
        return _check_email(value) if value is not None else None

    @field_validator("hire_date")
    @classmethod
    def _hire_date(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @field_validator("manager_id")
    @classmethod
    def _manager_id(cls, value: str | None) -> str | None:
        return value or None

    @property
    def changes_manager(self) -> bool:
        return "manager_id" in self.model_fields_set

    def property_changes(self) -> dict[str, object]:
        """Non-relationship fields that were supplied with a value."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True, exclude={"manager_id"}).items()
            if value is not None
        }


class EmployeeFilters(BaseModel):
    department: str | None = None
    is_active: bool | None = None
    manager_id: str | None = None


class Employee(BaseModel):
    """Stored employee record. Never carries relationship data."""

    id: str
    employee_id: str
    first_name: str
    last_name: str
    email: str
    position: str
    department: str
    hire_date: datetime
    salary: float
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def sort_key(self) -> tuple[str, str]:
        return (self.first_name.lower(), self.last_name.lower())


class EmployeeRef(BaseModel):
    """Minimal employee info used for manager and subordinate annotations."""

    id: str
    first_name: str
    last_name: str
    email: str
    position: str

    @classmethod
    def of(cls, employee: Employee) -> EmployeeRef:
        return cls(
            id=employee.id,
            first_name=employee.first_name,
            last_name=employee.last_name,
            email=employee.email,
            position=employee.position,
        )


class EmployeeView(Employee):
    """Employee with its immediate manager and direct subordinates resolved."""

    manager_id: str | None = None
    manager: EmployeeRef | None = None
    subordinates: list[EmployeeRef] = []
