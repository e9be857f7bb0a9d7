"""
Audit Log API.

License admins see their own license's trail; vendors see every license.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from backoffice.api.deps import get_audit_service, get_rules, require_roles
from backoffice.components.audit import AuditFilters, AuditService
from backoffice.components.time_entries import Actor
from backoffice.core.entities import AuditLogEntry
from backoffice.rules.models import Rules

router = APIRouter()


# --- Response Models ---


class AuditEntryResponse(BaseModel):
    """Audit entry response model."""

    id: str
    license_id: str | None
    actor_user_id: str
    action: str
    target_type: str
    target_id: str
    metadata: dict[str, Any]
    ip: str | None
    user_agent: str | None
    created_at: str


class AuditQueryResponse(BaseModel):
    items: list[AuditEntryResponse]
    total: int
    limit: int


# --- Helper Functions ---


def entry_to_response(entry: AuditLogEntry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=str(entry.id),
        license_id=str(entry.license_id) if entry.license_id else None,
        actor_user_id=str(entry.actor_user_id),
        action=entry.action,
        target_type=entry.target_type,
        target_id=entry.target_id,
        metadata=entry.metadata,
        ip=entry.ip,
        user_agent=entry.user_agent,
        created_at=entry.created_at.isoformat(),
    )


def _run_query(
    license_id: UUID | None,
    actor_user_id: UUID | None,
    action: str | None,
    target_type: str | None,
    start_date: datetime | None,
    end_date: datetime | None,
    limit: int | None,
    service: AuditService,
    rules: Rules,
) -> AuditQueryResponse:
    effective_limit = limit if limit is not None else rules.audit.default_limit
    if effective_limit > rules.audit.max_limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"limit must not exceed {rules.audit.max_limit}",
        )

    filters = AuditFilters(
        actor_user_id=actor_user_id,
        action=action,
        target_type=target_type,
        start_date=start_date,
        end_date=end_date,
        limit=effective_limit,
    )
    items = service.query(license_id, filters)
    total = service.count(license_id, filters)

    return AuditQueryResponse(
        items=[entry_to_response(e) for e in items],
        total=total,
        limit=effective_limit,
    )


# --- Routes ---


@router.get("", response_model=AuditQueryResponse)
def query_audit_logs(
    actor_user_id: UUID | None = Query(None, alias="actorUserId"),
    action: str | None = Query(None, description="Exact action, e.g. client.create"),
    target_type: str | None = Query(None, alias="targetType"),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    limit: int | None = Query(None, ge=1),
    actor: Actor = Depends(require_roles("license_admin", "vendor")),
    service: AuditService = Depends(get_audit_service),
    rules: Rules = Depends(get_rules),
) -> AuditQueryResponse:
    """
    Query audit logs, newest first.

    Vendors see all licenses; license admins only their own.
    """
    license_id = None if actor.role == "vendor" else actor.license_id
    return _run_query(
        license_id, actor_user_id, action, target_type, start_date, end_date, limit,
        service, rules,
    )


@router.get("/vendor", response_model=AuditQueryResponse)
def query_vendor_audit_logs(
    actor_user_id: UUID | None = Query(None, alias="actorUserId"),
    action: str | None = Query(None),
    target_type: str | None = Query(None, alias="targetType"),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    limit: int | None = Query(None, ge=1),
    actor: Actor = Depends(require_roles("vendor")),
    service: AuditService = Depends(get_audit_service),
    rules: Rules = Depends(get_rules),
) -> AuditQueryResponse:
    """Unscoped audit trail across every license."""
    return _run_query(
        None, actor_user_id, action, target_type, start_date, end_date, limit,
        service, rules,
    )
