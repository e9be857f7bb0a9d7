"""
Time tracking API.

Entries, aggregated reports and file exports, always scoped to the caller's
license.
"""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from backoffice.api.deps import get_export_config, get_time_entry_service, require_roles
from backoffice.components.report_export import (
    FILE_EXTENSIONS,
    MEDIA_TYPES,
    ExportConfig,
    ReportFormat,
)
from backoffice.components.time_entries import (
    Actor,
    CreateTimeEntryInput,
    TimeEntryFilters,
    TimeEntryService,
    UpdateTimeEntryInput,
)
from backoffice.components.time_report import AggregatedReport
from backoffice.core.entities import TimeEntryDetail

router = APIRouter()

_time_roles = require_roles("license_admin", "employee")


# --- Request/Response Models ---


class TimeEntryCreateRequest(BaseModel):
    client_id: UUID = Field(alias="clientId")
    task_id: UUID | None = Field(None, alias="taskId")
    hours: float | str
    work_date: date = Field(alias="workDate")
    notes: str = ""
    billable: bool = True

    model_config = {"populate_by_name": True}


class TimeEntryUpdateRequest(BaseModel):
    hours: float | str | None = None
    notes: str | None = None
    work_date: date | None = Field(None, alias="workDate")
    billable: bool | None = None

    model_config = {"populate_by_name": True}


class RefResponse(BaseModel):
    id: str
    name: str


class TimeEntryResponse(BaseModel):
    id: str
    license_id: str
    client: RefResponse
    task: RefResponse | None
    user: RefResponse
    hours: str
    work_date: date
    notes: str
    billable: bool
    created_at: datetime
    updated_at: datetime


class GroupResponse(BaseModel):
    ref: RefResponse
    total_hours: str
    entries: list[TimeEntryResponse]


class TimeReportResponse(BaseModel):
    by_employee: list[GroupResponse]
    by_client: list[GroupResponse]
    total_hours: str
    total_entries: int


# --- Helper Functions ---


def detail_to_response(detail: TimeEntryDetail) -> TimeEntryResponse:
    entry = detail.entry
    return TimeEntryResponse(
        id=str(entry.id),
        license_id=str(entry.license_id),
        client=RefResponse(id=str(detail.client.id), name=detail.client.name),
        task=(
            RefResponse(id=str(detail.task.id), name=detail.task.title)
            if detail.task is not None
            else None
        ),
        user=RefResponse(id=str(detail.user.id), name=detail.user.name),
        hours=str(entry.hours),
        work_date=entry.work_date,
        notes=entry.notes,
        billable=entry.billable,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def report_to_response(report: AggregatedReport) -> TimeReportResponse:
    return TimeReportResponse(
        by_employee=[
            GroupResponse(
                ref=RefResponse(id=str(g.user.id), name=g.user.name),
                total_hours=str(g.total_hours),
                entries=[detail_to_response(e) for e in g.entries],
            )
            for g in report.by_employee.values()
        ],
        by_client=[
            GroupResponse(
                ref=RefResponse(id=str(g.client.id), name=g.client.name),
                total_hours=str(g.total_hours),
                entries=[detail_to_response(e) for e in g.entries],
            )
            for g in report.by_client.values()
        ],
        total_hours=str(report.total_hours),
        total_entries=report.total_entries,
    )


def _filters(
    user_id: UUID | None,
    client_id: UUID | None,
    start_date: date | None,
    end_date: date | None,
) -> TimeEntryFilters:
    return TimeEntryFilters(
        user_id=user_id, client_id=client_id, start_date=start_date, end_date=end_date
    )


def _license(actor: Actor) -> UUID:
    if actor.license_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No license access")
    return actor.license_id


# --- Routes ---


@router.post("", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
def create_time_entry(
    body: TimeEntryCreateRequest,
    actor: Actor = Depends(_time_roles),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> TimeEntryResponse:
    """Record work for the calling employee."""
    detail = service.create(
        CreateTimeEntryInput(
            client_id=body.client_id,
            task_id=body.task_id,
            hours=body.hours,
            work_date=body.work_date,
            notes=body.notes,
            billable=body.billable,
        ),
        actor,
    )
    return detail_to_response(detail)


@router.get("", response_model=list[TimeEntryResponse])
def list_time_entries(
    user_id: UUID | None = Query(None, alias="userId"),
    client_id: UUID | None = Query(None, alias="clientId"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    actor: Actor = Depends(_time_roles),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> list[TimeEntryResponse]:
    """Entries in the caller's license, newest work date first."""
    details = service.list_entries(
        _license(actor), _filters(user_id, client_id, start_date, end_date)
    )
    return [detail_to_response(d) for d in details]


@router.get("/reports", response_model=TimeReportResponse)
def get_time_report(
    user_id: UUID | None = Query(None, alias="userId"),
    client_id: UUID | None = Query(None, alias="clientId"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    actor: Actor = Depends(_time_roles),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> TimeReportResponse:
    """Hours grouped by employee and by client."""
    report = service.report(_license(actor), _filters(user_id, client_id, start_date, end_date))
    return report_to_response(report)


@router.get("/export")
def export_time_report(
    format_name: str = Query("tabular", alias="format", description="tabular or narrative"),
    user_id: UUID | None = Query(None, alias="userId"),
    client_id: UUID | None = Query(None, alias="clientId"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    actor: Actor = Depends(_time_roles),
    service: TimeEntryService = Depends(get_time_entry_service),
    export_config: ExportConfig = Depends(get_export_config),
) -> Response:
    """Download the filtered entries as a file."""
    fmt = ReportFormat.parse(format_name)
    content = service.export(
        _license(actor),
        _filters(user_id, client_id, start_date, end_date),
        fmt,
        export_config,
    )
    filename = f"time-report.{FILE_EXTENSIONS[fmt]}"
    return Response(
        content=content,
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{entry_id}", response_model=TimeEntryResponse)
def get_time_entry(
    entry_id: UUID,
    actor: Actor = Depends(_time_roles),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> TimeEntryResponse:
    return detail_to_response(service.get(entry_id, _license(actor)))


@router.put("/{entry_id}", response_model=TimeEntryResponse)
def update_time_entry(
    entry_id: UUID,
    body: TimeEntryUpdateRequest,
    actor: Actor = Depends(_time_roles),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> TimeEntryResponse:
    detail = service.update(
        entry_id,
        UpdateTimeEntryInput(
            hours=body.hours,
            notes=body.notes,
            work_date=body.work_date,
            billable=body.billable,
        ),
        actor,
    )
    return detail_to_response(detail)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_time_entry(
    entry_id: UUID,
    actor: Actor = Depends(_time_roles),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> Response:
    service.delete(entry_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
