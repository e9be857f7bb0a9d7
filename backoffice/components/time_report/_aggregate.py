"""
Time entry aggregation.

Groups time entries by employee and, independently, by client in a single
pass.

Key behaviors:
- Group keys are entity IDs, so no tie-breaking is needed
- Entry order inside each group follows the input sequence
- Hours are summed as Decimal (4 x 0.25 == 1 exactly)
- No tenant or existence checks; callers pass already-scoped entries
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from backoffice.core.entities import ClientRef, TimeEntryDetail, UserRef

from .models import AggregatedReport, ClientGroup, EmployeeGroup

ZERO = Decimal("0")


@dataclass
class _Bucket:
    """Running total for one group while aggregating."""

    total: Decimal = ZERO
    entries: list[TimeEntryDetail] = field(default_factory=list)

    def add(self, detail: TimeEntryDetail) -> None:
        self.total += detail.hours
        self.entries.append(detail)


def aggregate(entries: Iterable[TimeEntryDetail]) -> AggregatedReport:
    """
    Aggregate time entries into per-employee and per-client groups.

    Empty input yields empty groups and zero totals.
    """
    users: dict[UUID, UserRef] = {}
    clients: dict[UUID, ClientRef] = {}
    by_user: dict[UUID, _Bucket] = {}
    by_client: dict[UUID, _Bucket] = {}
    total = ZERO
    count = 0

    for detail in entries:
        user_key = detail.user.id
        if user_key not in by_user:
            users[user_key] = detail.user
            by_user[user_key] = _Bucket()
        by_user[user_key].add(detail)

        client_key = detail.client.id
        if client_key not in by_client:
            clients[client_key] = detail.client
            by_client[client_key] = _Bucket()
        by_client[client_key].add(detail)

        total += detail.hours
        count += 1

    return AggregatedReport(
        by_employee={
            key: EmployeeGroup(user=users[key], total_hours=b.total, entries=tuple(b.entries))
            for key, b in by_user.items()
        },
        by_client={
            key: ClientGroup(client=clients[key], total_hours=b.total, entries=tuple(b.entries))
            for key, b in by_client.items()
        },
        total_hours=total,
        total_entries=count,
    )
