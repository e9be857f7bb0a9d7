"""
TimeEntryService - license-scoped time tracking.

Key behaviors:
- Entries are created for a client (and optionally one of its tasks)
  inside the caller's license
- Only hours, notes, work_date and billable are mutable
- Deletion is hard
- Every mutation appends a `time.<verb>` audit entry
- Reports and exports are built from the filtered listing
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, TypeVar
from uuid import UUID

from backoffice.components.audit import AuditService
from backoffice.components.report_export import (
    DEFAULT_CONFIG as DEFAULT_EXPORT_CONFIG,
)
from backoffice.components.report_export import (
    ExportConfig,
    ReportFormat,
    render,
)
from backoffice.components.time_report import AggregatedReport, aggregate
from backoffice.core.entities import (
    ClientRef,
    TaskRef,
    TimeEntry,
    TimeEntryDetail,
    UserRef,
    to_hours,
)
from backoffice.core.errors import NotFoundError, ValidationError
from backoffice.core.ports.repo import ReferenceLookupPort, TimeEntryFilter, TimeEntryRepoPort
from backoffice.core.ports.time import TimePort
from backoffice.rules.models import TimeRules

from .models import (
    Actor,
    CreateTimeEntryInput,
    TimeEntryFilters,
    UpdateTimeEntryInput,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# --- Configuration ---


@dataclass(frozen=True)
class TimeEntryConfig:
    """Time entry validation configuration."""

    max_hours_per_entry: Decimal = Decimal("24")

    @classmethod
    def from_rules(cls, rules: TimeRules) -> TimeEntryConfig:
        return cls(max_hours_per_entry=Decimal(rules.max_hours_per_entry))


DEFAULT_CONFIG = TimeEntryConfig()


# --- In-Memory Adapters ---


def _in_range(entry: TimeEntry, flt: TimeEntryFilter) -> bool:
    if entry.license_id != flt.license_id:
        return False
    if flt.user_id is not None and entry.user_id != flt.user_id:
        return False
    if flt.client_id is not None and entry.client_id != flt.client_id:
        return False
    if flt.start_date is not None and entry.work_date < flt.start_date:
        return False
    if flt.end_date is not None and entry.work_date > flt.end_date:
        return False
    return True


class InMemoryTimeEntryRepo:
    """In-memory time entry repository for testing/dev."""

    def __init__(self) -> None:
        self._entries: dict[UUID, TimeEntry] = {}

    def find_by_id(self, entity_id: UUID) -> TimeEntry | None:
        return self._entries.get(entity_id)

    def find_many(self, filter: TimeEntryFilter) -> list[TimeEntry]:
        return [e for e in self._entries.values() if _in_range(e, filter)]

    def create(self, entity: TimeEntry) -> TimeEntry:
        self._entries[entity.id] = entity
        return entity

    def update(self, entity: TimeEntry) -> TimeEntry:
        if entity.id not in self._entries:
            raise NotFoundError("TimeEntry", entity.id)
        self._entries[entity.id] = entity
        return entity

    def delete(self, entity_id: UUID) -> None:
        self._entries.pop(entity_id, None)


class InMemoryLookup(Generic[T]):
    """Read-only ID lookup over a fixed set of references."""

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: dict[UUID, T] = {}
        for item in items:
            self.add(item)

    def add(self, item: T) -> T:
        self._items[item.id] = item  # type: ignore[attr-defined]
        return item

    def find_by_id(self, entity_id: UUID) -> T | None:
        return self._items.get(entity_id)


# --- Time Entry Service ---


def _json_value(value: Any) -> Any:
    """Make a field value JSON-friendly for audit metadata."""
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class TimeEntryService:
    """
    Tenant-scoped time entry operations.

    Every lookup is constrained to a single license; an entry, client or task
    from another license is reported as not found.
    """

    def __init__(
        self,
        repo: TimeEntryRepoPort,
        users: ReferenceLookupPort[UserRef],
        clients: ReferenceLookupPort[ClientRef],
        tasks: ReferenceLookupPort[TaskRef],
        audit: AuditService | None = None,
        time_port: TimePort | None = None,
        config: TimeEntryConfig | None = None,
    ) -> None:
        self._repo = repo
        self._users = users
        self._clients = clients
        self._tasks = tasks
        self._audit = audit
        self._time = time_port
        self._config = config or DEFAULT_CONFIG

    def _now(self) -> datetime:
        if self._time is not None:
            return self._time.now_utc()
        return datetime.now(UTC)

    # --- Validation helpers ---

    def _validate_hours(self, raw: Any) -> Decimal:
        try:
            hours = to_hours(raw)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(["hours"], f"hours must be a number, got {raw!r}") from None
        if not hours.is_finite() or hours <= 0:
            raise ValidationError(["hours"], "hours must be greater than zero")
        if hours > self._config.max_hours_per_entry:
            raise ValidationError(
                ["hours"],
                f"hours must not exceed {self._config.max_hours_per_entry}",
            )
        return hours

    def _require_license(self, actor: Actor) -> UUID:
        if actor.license_id is None:
            raise ValidationError(["license_id"], "A license is required for time entries")
        return actor.license_id

    def _client_in_license(self, client_id: UUID, license_id: UUID) -> ClientRef:
        client = self._clients.find_by_id(client_id)
        if client is None or client.license_id != license_id:
            raise NotFoundError("Client", client_id)
        return client

    def _task_for_client(self, task_id: UUID, client_id: UUID, license_id: UUID) -> TaskRef:
        task = self._tasks.find_by_id(task_id)
        if task is None or task.license_id != license_id or task.client_id != client_id:
            raise NotFoundError("Task", task_id)
        return task

    def _user(self, user_id: UUID) -> UserRef:
        user = self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def _entry_in_license(self, entry_id: UUID, license_id: UUID) -> TimeEntry:
        entry = self._repo.find_by_id(entry_id)
        if entry is None or entry.license_id != license_id:
            raise NotFoundError("TimeEntry", entry_id)
        return entry

    def _details(self, entries: Iterable[TimeEntry]) -> list[TimeEntryDetail]:
        users: dict[UUID, UserRef] = {}
        clients: dict[UUID, ClientRef] = {}
        tasks: dict[UUID, TaskRef] = {}
        details = []
        for entry in entries:
            if entry.user_id not in users:
                users[entry.user_id] = self._user(entry.user_id)
            if entry.client_id not in clients:
                clients[entry.client_id] = self._client_in_license(
                    entry.client_id, entry.license_id
                )
            task = None
            if entry.task_id is not None:
                if entry.task_id not in tasks:
                    found = self._tasks.find_by_id(entry.task_id)
                    if found is None:
                        raise NotFoundError("Task", entry.task_id)
                    tasks[entry.task_id] = found
                task = tasks[entry.task_id]
            details.append(
                TimeEntryDetail(
                    entry=entry,
                    user=users[entry.user_id],
                    client=clients[entry.client_id],
                    task=task,
                )
            )
        return details

    def _filter(self, license_id: UUID, filters: TimeEntryFilters | None) -> TimeEntryFilter:
        filters = filters or TimeEntryFilters()
        if (
            filters.start_date is not None
            and filters.end_date is not None
            and filters.start_date > filters.end_date
        ):
            raise ValidationError(["start_date", "end_date"], "start_date is after end_date")
        return TimeEntryFilter(
            license_id=license_id,
            user_id=filters.user_id,
            client_id=filters.client_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
        )

    # --- Commands ---

    def create(self, inp: CreateTimeEntryInput, actor: Actor) -> TimeEntryDetail:
        """Record work for a client (and optionally one of its tasks)."""
        license_id = self._require_license(actor)
        hours = self._validate_hours(inp.hours)
        client = self._client_in_license(inp.client_id, license_id)
        task = None
        if inp.task_id is not None:
            task = self._task_for_client(inp.task_id, client.id, license_id)
        user = self._user(inp.user_id or actor.user_id)

        now = self._now()
        entry = self._repo.create(
            TimeEntry(
                license_id=license_id,
                client_id=client.id,
                task_id=task.id if task else None,
                user_id=user.id,
                hours=hours,
                work_date=inp.work_date,
                notes=inp.notes,
                billable=inp.billable,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Created time entry %s (%s h) in license %s", entry.id, hours, license_id)

        if self._audit is not None:
            self._audit.log_time_action(
                actor.user_id,
                license_id,
                entry.id,
                "create",
                {
                    "client_id": str(client.id),
                    "task_id": str(task.id) if task else None,
                    "hours": str(hours),
                    "work_date": entry.work_date.isoformat(),
                },
            )

        return TimeEntryDetail(entry=entry, user=user, client=client, task=task)

    def update(
        self,
        entry_id: UUID,
        inp: UpdateTimeEntryInput,
        actor: Actor,
    ) -> TimeEntryDetail:
        """Change hours, notes, work_date or billable on an entry."""
        license_id = self._require_license(actor)
        entry = self._entry_in_license(entry_id, license_id)

        updates: dict[str, Any] = {}
        if inp.hours is not None:
            updates["hours"] = self._validate_hours(inp.hours)
        if inp.notes is not None:
            updates["notes"] = inp.notes
        if inp.work_date is not None:
            updates["work_date"] = inp.work_date
        if inp.billable is not None:
            updates["billable"] = inp.billable

        changes = {
            name: {"old": _json_value(getattr(entry, name)), "new": _json_value(value)}
            for name, value in updates.items()
            if getattr(entry, name) != value
        }

        if changes:
            entry = self._repo.update(
                entry.model_copy(update={**updates, "updated_at": self._now()})
            )
            logger.info("Updated time entry %s: %s", entry.id, ", ".join(changes))
            if self._audit is not None:
                self._audit.log_time_action(
                    actor.user_id, license_id, entry.id, "update", {"changes": changes}
                )

        return self._details([entry])[0]

    def delete(self, entry_id: UUID, actor: Actor) -> None:
        """Hard-delete an entry."""
        license_id = self._require_license(actor)
        entry = self._entry_in_license(entry_id, license_id)
        self._repo.delete(entry.id)
        logger.info("Deleted time entry %s in license %s", entry.id, license_id)

        if self._audit is not None:
            self._audit.log_time_action(
                actor.user_id,
                license_id,
                entry.id,
                "delete",
                {"hours": str(entry.hours), "work_date": entry.work_date.isoformat()},
            )

    # --- Queries ---

    def get(self, entry_id: UUID, license_id: UUID) -> TimeEntryDetail:
        return self._details([self._entry_in_license(entry_id, license_id)])[0]

    def list_entries(
        self,
        license_id: UUID,
        filters: TimeEntryFilters | None = None,
        newest_first: bool = True,
    ) -> list[TimeEntryDetail]:
        """Entries in the license matching filters, ordered by work date."""
        entries = self._repo.find_many(self._filter(license_id, filters))
        entries.sort(key=lambda e: (e.work_date, e.created_at), reverse=newest_first)
        return self._details(entries)

    def report(
        self,
        license_id: UUID,
        filters: TimeEntryFilters | None = None,
    ) -> AggregatedReport:
        """Per-employee and per-client totals over the filtered entries."""
        return aggregate(self.list_entries(license_id, filters))

    def export(
        self,
        license_id: UUID,
        filters: TimeEntryFilters | None,
        fmt: ReportFormat | str,
        export_config: ExportConfig = DEFAULT_EXPORT_CONFIG,
    ) -> bytes:
        """Render the filtered entries, oldest first."""
        report_format = ReportFormat.parse(fmt)
        entries = self.list_entries(license_id, filters, newest_first=False)
        return render(entries, report_format, export_config)
