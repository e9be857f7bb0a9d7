"""
Time entries component input models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from backoffice.core.entities import UserRole


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as resolved by the gateway."""

    user_id: UUID
    role: UserRole
    license_id: UUID | None = None


@dataclass(frozen=True)
class CreateTimeEntryInput:
    client_id: UUID
    hours: Decimal | float | int | str
    work_date: date
    notes: str = ""
    task_id: UUID | None = None
    billable: bool = True
    # Defaults to the actor
    user_id: UUID | None = None


@dataclass(frozen=True)
class UpdateTimeEntryInput:
    """Only these fields are mutable; None leaves a field unchanged."""

    hours: Decimal | float | int | str | None = None
    notes: str | None = None
    work_date: date | None = None
    billable: bool | None = None


@dataclass(frozen=True)
class TimeEntryFilters:
    """Listing filters within one license. Date bounds are inclusive."""

    user_id: UUID | None = None
    client_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
