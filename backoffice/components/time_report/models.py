"""
Time report models.

AggregatedReport is derived, never persisted, and recomputed per call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from backoffice.core.entities import ClientRef, TimeEntryDetail, UserRef


@dataclass(frozen=True)
class EmployeeGroup:
    """Entries for one employee, in input order."""

    user: UserRef
    total_hours: Decimal
    entries: tuple[TimeEntryDetail, ...]


@dataclass(frozen=True)
class ClientGroup:
    """Entries for one client, in input order."""

    client: ClientRef
    total_hours: Decimal
    entries: tuple[TimeEntryDetail, ...]


@dataclass(frozen=True)
class AggregatedReport:
    """Per-employee and per-client groupings plus grand totals."""

    by_employee: dict[UUID, EmployeeGroup] = field(default_factory=dict)
    by_client: dict[UUID, ClientGroup] = field(default_factory=dict)
    total_hours: Decimal = Decimal("0")
    total_entries: int = 0
