"""
Time entries component - license-scoped time tracking.

Hours must be positive. Client and task must belong to the caller's license,
and the task to the client. Every mutation is audited as time.<verb>.
"""

from __future__ import annotations

from uuid import UUID

from backoffice.components.report_export import ReportFormat
from backoffice.components.time_report import AggregatedReport
from backoffice.core.entities import TimeEntryDetail

from ._impl import TimeEntryService
from .models import Actor, CreateTimeEntryInput, TimeEntryFilters, UpdateTimeEntryInput


def run_create(
    inp: CreateTimeEntryInput, actor: Actor, service: TimeEntryService
) -> TimeEntryDetail:
    return service.create(inp, actor)


def run_update(
    entry_id: UUID,
    inp: UpdateTimeEntryInput,
    actor: Actor,
    service: TimeEntryService,
) -> TimeEntryDetail:
    return service.update(entry_id, inp, actor)


def run_delete(entry_id: UUID, actor: Actor, service: TimeEntryService) -> None:
    service.delete(entry_id, actor)


def run_list(
    license_id: UUID,
    filters: TimeEntryFilters,
    service: TimeEntryService,
) -> list[TimeEntryDetail]:
    return service.list_entries(license_id, filters)


def run_report(
    license_id: UUID,
    filters: TimeEntryFilters,
    service: TimeEntryService,
) -> AggregatedReport:
    """Aggregate the license's entries matching filters."""
    return service.report(license_id, filters)


def run_export(
    license_id: UUID,
    filters: TimeEntryFilters,
    fmt: ReportFormat | str,
    service: TimeEntryService,
) -> bytes:
    """Render the license's entries matching filters."""
    return service.export(license_id, filters, fmt)
