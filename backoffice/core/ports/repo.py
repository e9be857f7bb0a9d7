"""
Repository interfaces (persistence ports).

Protocol-based interfaces for repository operations.
Implementations: in-memory (tests/dev), SQLite.

Every time-entry query is scoped by license_id. Audit entries are only
ever appended.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, TypeVar
from uuid import UUID

from backoffice.core.entities import AuditLogEntry, TimeEntry

T = TypeVar("T")
F = TypeVar("F", contravariant=True)
R = TypeVar("R", covariant=True)


# --- Query shapes ---


@dataclass(frozen=True)
class TimeEntryFilter:
    """Filter for time entries. Date bounds are inclusive on work_date."""

    license_id: UUID
    user_id: UUID | None = None
    client_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(frozen=True)
class AuditQuery:
    """Filter for audit entries. license_id None means all licenses."""

    license_id: UUID | None = None
    actor_user_id: UUID | None = None
    action: str | None = None
    target_type: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int | None = 100


# --- Generic repository ---


class RepositoryPort(Protocol[T, F]):
    """Generic CRUD capability over one entity type."""

    def find_by_id(self, entity_id: UUID) -> T | None:
        """Get entity by ID."""
        ...

    def find_many(self, filter: F) -> list[T]:
        """List entities matching filter."""
        ...

    def create(self, entity: T) -> T:
        """Persist a new entity."""
        ...

    def update(self, entity: T) -> T:
        """Persist changes to an existing entity."""
        ...

    def delete(self, entity_id: UUID) -> None:
        """Hard-delete an entity."""
        ...


TimeEntryRepoPort = RepositoryPort[TimeEntry, TimeEntryFilter]


class ReferenceLookupPort(Protocol[R]):
    """Read-only lookup of users, clients or tasks by ID."""

    def find_by_id(self, entity_id: UUID) -> R | None:
        ...


# --- Audit log ---


class AuditRepoPort(Protocol):
    """Append-only store for audit entries."""

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Append an entry; returns the persisted entry."""
        ...

    def find_many(self, query: AuditQuery) -> list[AuditLogEntry]:
        """Matching entries, newest first, truncated to query.limit."""
        ...

    def count(self, query: AuditQuery) -> int:
        """Count matching entries (limit ignored)."""
        ...
