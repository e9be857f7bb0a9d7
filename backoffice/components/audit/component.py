"""
Audit component - Audit logging and querying.

Append-only trail of security and business relevant actions.

Entries are never updated or deleted. Queries are license-scoped unless
explicitly unscoped (vendor view).
"""

from __future__ import annotations

from uuid import UUID

from backoffice.core.entities import AuditLogEntry

from ._impl import AuditConfig, AuditService
from .models import AuditEvent, AuditFilters, RecordAuditInput
from .ports import AuditRepoPort, TimePort


def _create_service(
    repo: AuditRepoPort,
    time_port: TimePort | None,
    config: AuditConfig | None,
) -> AuditService:
    return AuditService(repo=repo, time_port=time_port, config=config)


# --- Component Entry Points ---


def run_record(
    inp: RecordAuditInput,
    *,
    repo: AuditRepoPort,
    time_port: TimePort | None = None,
    config: AuditConfig | None = None,
) -> AuditLogEntry:
    """
    Record a raw audit payload.

    Raises:
        ValidationError: a required field is missing; nothing is appended.
    """
    return _create_service(repo, time_port, config).record(inp)


def run_record_event(
    event: AuditEvent,
    *,
    repo: AuditRepoPort,
    time_port: TimePort | None = None,
    config: AuditConfig | None = None,
) -> AuditLogEntry | None:
    """Record a categorized event; None if its category is disabled."""
    return _create_service(repo, time_port, config).record_event(event)


def run_query(
    license_id: UUID | None,
    filters: AuditFilters,
    *,
    repo: AuditRepoPort,
    time_port: TimePort | None = None,
    config: AuditConfig | None = None,
) -> list[AuditLogEntry]:
    """Query audit entries, newest first."""
    return _create_service(repo, time_port, config).query(license_id, filters)


def run(
    inp: RecordAuditInput | AuditEvent,
    *,
    repo: AuditRepoPort,
    time_port: TimePort | None = None,
    config: AuditConfig | None = None,
) -> AuditLogEntry | None:
    """
    Main write entry point for the audit component.

    Dispatches on input type.
    """
    if isinstance(inp, RecordAuditInput):
        return run_record(inp, repo=repo, time_port=time_port, config=config)
    elif isinstance(inp, AuditEvent):
        return run_record_event(inp, repo=repo, time_port=time_port, config=config)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
