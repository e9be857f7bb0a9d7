"""
Domain entities for the back office.

- TimeEntry: hours recorded by an employee against a client (and task)
- TimeEntryDetail: a TimeEntry joined with its user/client/task references
- AuditLogEntry: immutable, append-only record of a domain action

All entities are owned by a license (tenant).
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

UserRole = Literal["vendor", "license_admin", "employee"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def to_hours(value: Any) -> Decimal:
    """
    Coerce a numeric value to Decimal hours without float drift.

    Floats go through their shortest repr so 0.1 becomes Decimal("0.1").
    Exponent notation is written out, so "1e1" becomes Decimal("10").
    """
    if isinstance(value, bool):
        raise TypeError("hours must be numeric, not bool")
    if isinstance(value, Decimal):
        hours = value
    elif isinstance(value, float):
        hours = Decimal(repr(value))
    else:
        hours = Decimal(value)
    if hours.is_finite():
        hours = Decimal(format(hours, "f"))
    return hours


# --- References (denormalized joins) ---


class UserRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str


class ClientRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    license_id: UUID


class TaskRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    title: str
    client_id: UUID
    license_id: UUID


# --- Time tracking ---


class TimeEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    license_id: UUID
    client_id: UUID
    task_id: UUID | None = None
    user_id: UUID
    hours: Decimal
    work_date: date
    notes: str = ""
    billable: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("hours", mode="before")
    @classmethod
    def _coerce_hours(cls, v: Any) -> Decimal:
        return to_hours(v)


class TimeEntryDetail(BaseModel):
    """TimeEntry plus the references the reports need."""

    model_config = ConfigDict(frozen=True)

    entry: TimeEntry
    user: UserRef
    client: ClientRef
    task: TaskRef | None = None

    @property
    def id(self) -> UUID:
        return self.entry.id

    @property
    def hours(self) -> Decimal:
        return self.entry.hours

    @property
    def work_date(self) -> date:
        return self.entry.work_date

    @property
    def notes(self) -> str:
        return self.entry.notes

    @property
    def billable(self) -> bool:
        return self.entry.billable


# --- Audit ---


class AuditLogEntry(BaseModel):
    """Immutable audit log row. Action strings are `<category>.<verb>`."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    license_id: UUID | None = None
    actor_user_id: UUID
    action: str
    target_type: str
    target_id: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    ip: str | None = None
    user_agent: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
