"""
AuditService - Audit logging and querying.

Handles creation and retrieval of audit log entries.

Key behaviors:
- Append one entry per mutating domain action
- Capture actor, target, namespaced action, free-form metadata
- Query by license, actor, action, target type, time range
- Immutable log entries (no update/delete)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from backoffice.core.entities import AuditLogEntry
from backoffice.core.errors import ValidationError
from backoffice.core.ports.repo import AuditQuery, AuditRepoPort
from backoffice.core.ports.time import TimePort
from backoffice.rules.models import AUDIT_CATEGORIES, AuditRules

from .models import (
    VERB_PATTERN,
    AuditCategory,
    AuditEvent,
    AuditFilters,
    RecordAuditInput,
)

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("actor_user_id", "action", "target_type", "target_id")


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# --- Configuration ---


@dataclass(frozen=True)
class AuditConfig:
    """Audit logging configuration."""

    enabled_categories: frozenset[str] = field(default_factory=lambda: frozenset(AUDIT_CATEGORIES))
    default_limit: int = 100

    @classmethod
    def from_rules(cls, rules: AuditRules) -> AuditConfig:
        return cls(
            enabled_categories=frozenset(rules.enabled_categories),
            default_limit=rules.default_limit,
        )


DEFAULT_CONFIG = AuditConfig()


def _as_utc(dt: datetime | None) -> datetime | None:
    """Naive bounds are taken as UTC."""
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# --- In-Memory Repository ---


def _matches(entry: AuditLogEntry, query: AuditQuery) -> bool:
    if query.license_id is not None and entry.license_id != query.license_id:
        return False
    if query.actor_user_id is not None and entry.actor_user_id != query.actor_user_id:
        return False
    if query.action is not None and entry.action != query.action:
        return False
    if query.target_type is not None and entry.target_type != query.target_type:
        return False
    if query.start_date is not None and entry.created_at < query.start_date:
        return False
    if query.end_date is not None and entry.created_at > query.end_date:
        return False
    return True


class InMemoryAuditRepo:
    """In-memory audit repository for testing/dev."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        self._entries.append(entry)
        return entry

    def find_many(self, query: AuditQuery) -> list[AuditLogEntry]:
        # Newest appended first among equal timestamps
        results = [e for e in reversed(self._entries) if _matches(e, query)]
        results.sort(key=lambda e: e.created_at, reverse=True)
        if query.limit is not None:
            results = results[: query.limit]
        return results

    def count(self, query: AuditQuery) -> int:
        return sum(1 for e in self._entries if _matches(e, query))

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        self._entries.clear()


class DefaultTimePort:
    """Default time provider."""

    def now_utc(self) -> datetime:
        return datetime.now(UTC)


# --- Audit Service ---


class AuditService:
    """
    Records and queries audit log entries.

    record() is the single write path; the category helpers all funnel
    through record_event() into it.
    """

    def __init__(
        self,
        repo: AuditRepoPort,
        time_port: TimePort | None = None,
        config: AuditConfig | None = None,
    ) -> None:
        self._repo = repo
        self._time = time_port or DefaultTimePort()
        self._config = config or DEFAULT_CONFIG

    # --- Write path ---

    def record(self, inp: RecordAuditInput) -> AuditLogEntry:
        """
        Append an audit entry, assigning id and timestamp.

        Raises ValidationError (and appends nothing) if actor, action,
        target type or target id is missing.
        """
        missing = [name for name in _REQUIRED_FIELDS if _is_blank(getattr(inp, name))]
        if missing:
            logger.warning("Rejected audit record, missing fields: %s", ", ".join(missing))
            raise ValidationError(missing)

        entry = AuditLogEntry(
            id=uuid4(),
            license_id=inp.license_id,
            actor_user_id=inp.actor_user_id,
            action=inp.action,
            target_type=inp.target_type,
            target_id=str(inp.target_id),
            metadata=dict(inp.metadata or {}),
            ip=inp.ip,
            user_agent=inp.user_agent,
            created_at=self._time.now_utc(),
        )
        saved = self._repo.append(entry)
        logger.info(
            "Audit %s on %s %s by %s",
            saved.action,
            saved.target_type,
            saved.target_id,
            saved.actor_user_id,
        )
        return saved

    def record_event(self, event: AuditEvent) -> AuditLogEntry | None:
        """
        Record a categorized event as `<category>.<verb>`.

        Returns None if the category is switched off in configuration.
        """
        if not VERB_PATTERN.match(event.verb or ""):
            raise ValidationError(["verb"], f"Invalid audit verb: {event.verb!r}")

        if event.category.value not in self._config.enabled_categories:
            return None

        return self.record(
            RecordAuditInput(
                actor_user_id=event.actor_user_id,
                action=event.action,
                target_type=event.target_type,
                target_id=event.resolved_target_id,
                license_id=event.license_id,
                metadata=event.metadata,
                ip=event.ip,
                user_agent=event.user_agent,
            )
        )

    # --- Category helpers ---

    def log_auth_action(
        self,
        user_id: UUID,
        verb: str,
        metadata: dict[str, Any] | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> AuditLogEntry | None:
        return self.record_event(
            AuditEvent(
                category=AuditCategory.AUTH,
                verb=verb,
                actor_user_id=user_id,
                metadata=metadata or {},
                ip=ip,
                user_agent=user_agent,
            )
        )

    def log_license_action(
        self,
        user_id: UUID,
        license_id: UUID,
        verb: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        return self.record_event(
            AuditEvent(
                category=AuditCategory.LICENSE,
                verb=verb,
                actor_user_id=user_id,
                target_id=str(license_id),
                license_id=license_id,
                metadata=metadata or {},
            )
        )

    def _log_scoped(
        self,
        category: AuditCategory,
        user_id: UUID,
        license_id: UUID,
        target_id: UUID | str,
        verb: str,
        metadata: dict[str, Any] | None,
    ) -> AuditLogEntry | None:
        return self.record_event(
            AuditEvent(
                category=category,
                verb=verb,
                actor_user_id=user_id,
                target_id=str(target_id),
                license_id=license_id,
                metadata=metadata or {},
            )
        )

    def log_user_action(
        self,
        user_id: UUID,
        license_id: UUID,
        target_user_id: UUID,
        verb: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        return self._log_scoped(
            AuditCategory.USER, user_id, license_id, target_user_id, verb, metadata
        )

    def log_client_action(
        self,
        user_id: UUID,
        license_id: UUID,
        client_id: UUID,
        verb: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        return self._log_scoped(
            AuditCategory.CLIENT, user_id, license_id, client_id, verb, metadata
        )

    def log_task_action(
        self,
        user_id: UUID,
        license_id: UUID,
        task_id: UUID,
        verb: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        return self._log_scoped(AuditCategory.TASK, user_id, license_id, task_id, verb, metadata)

    def log_time_action(
        self,
        user_id: UUID,
        license_id: UUID,
        time_entry_id: UUID,
        verb: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        return self._log_scoped(
            AuditCategory.TIME, user_id, license_id, time_entry_id, verb, metadata
        )

    def log_aml_action(
        self,
        user_id: UUID,
        license_id: UUID,
        client_id: UUID,
        verb: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        return self._log_scoped(AuditCategory.AML, user_id, license_id, client_id, verb, metadata)

    # --- Read path ---

    def _to_query(
        self,
        license_id: UUID | None,
        filters: AuditFilters | None,
        with_limit: bool,
    ) -> AuditQuery:
        filters = filters or AuditFilters()
        limit: int | None = None
        if with_limit:
            limit = filters.limit if filters.limit is not None else self._config.default_limit
            if limit < 1:
                raise ValidationError(["limit"], f"limit must be positive, got {limit}")
        return AuditQuery(
            license_id=license_id,
            actor_user_id=filters.actor_user_id,
            action=filters.action,
            target_type=filters.target_type,
            start_date=_as_utc(filters.start_date),
            end_date=_as_utc(filters.end_date),
            limit=limit,
        )

    def query(
        self,
        license_id: UUID | None = None,
        filters: AuditFilters | None = None,
    ) -> list[AuditLogEntry]:
        """
        Entries matching all filters, newest first, truncated to the limit.

        license_id None is the unscoped (vendor) view.
        """
        return self._repo.find_many(self._to_query(license_id, filters, with_limit=True))

    def count(
        self,
        license_id: UUID | None = None,
        filters: AuditFilters | None = None,
    ) -> int:
        """Count entries matching filters (limit ignored)."""
        return self._repo.count(self._to_query(license_id, filters, with_limit=False))


# --- Factory ---


def create_audit_service(
    repo: AuditRepoPort | None = None,
    time_port: TimePort | None = None,
    config: AuditConfig | None = None,
) -> AuditService:
    """Create an AuditService."""
    return AuditService(
        repo=repo or InMemoryAuditRepo(),
        time_port=time_port,
        config=config,
    )
