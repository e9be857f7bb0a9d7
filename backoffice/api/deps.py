import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, get_args
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from backoffice.adapters.clock import SystemClock
from backoffice.adapters.sqlite.repos import (
    SQLiteAuditRepo,
    SQLiteClientLookup,
    SQLiteTaskLookup,
    SQLiteTimeEntryRepo,
    SQLiteUserLookup,
)
from backoffice.components.audit import AuditConfig, AuditService
from backoffice.components.report_export import ExportConfig
from backoffice.components.time_entries import Actor, TimeEntryConfig, TimeEntryService
from backoffice.core.entities import UserRole
from backoffice.rules.loader import load_rules_or_default
from backoffice.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.data_dir = Path(os.environ.get("BACKOFFICE_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "backoffice.db")
        self.rules_path = Path(os.environ.get("BACKOFFICE_RULES_PATH", "rules.yaml"))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules_or_default(get_settings().rules_path)


# --- Repos ---
def get_audit_repo(settings: Settings = Depends(get_settings)) -> SQLiteAuditRepo:
    return SQLiteAuditRepo(settings.db_path)


def get_time_entry_repo(settings: Settings = Depends(get_settings)) -> SQLiteTimeEntryRepo:
    return SQLiteTimeEntryRepo(settings.db_path)


def get_user_lookup(settings: Settings = Depends(get_settings)) -> SQLiteUserLookup:
    return SQLiteUserLookup(settings.db_path)


def get_client_lookup(settings: Settings = Depends(get_settings)) -> SQLiteClientLookup:
    return SQLiteClientLookup(settings.db_path)


def get_task_lookup(settings: Settings = Depends(get_settings)) -> SQLiteTaskLookup:
    return SQLiteTaskLookup(settings.db_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Component Services ---
def get_audit_service(
    repo: SQLiteAuditRepo = Depends(get_audit_repo),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> AuditService:
    """Get audit component service."""
    return AuditService(repo=repo, time_port=clock, config=AuditConfig.from_rules(rules.audit))


def get_time_entry_service(
    repo: SQLiteTimeEntryRepo = Depends(get_time_entry_repo),
    users: SQLiteUserLookup = Depends(get_user_lookup),
    clients: SQLiteClientLookup = Depends(get_client_lookup),
    tasks: SQLiteTaskLookup = Depends(get_task_lookup),
    audit: AuditService = Depends(get_audit_service),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> TimeEntryService:
    """Get time entries component service."""
    return TimeEntryService(
        repo=repo,
        users=users,
        clients=clients,
        tasks=tasks,
        audit=audit,
        time_port=clock,
        config=TimeEntryConfig.from_rules(rules.time),
    )


def get_export_config(rules: Rules = Depends(get_rules)) -> ExportConfig:
    return ExportConfig.from_rules(rules.export)


# --- Caller identity ---
# Authentication happens upstream; the gateway forwards identity as headers.
_ROLES = set(get_args(UserRole))


def get_actor(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
    x_license_id: Annotated[str | None, Header()] = None,
) -> Actor:
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    role = x_user_role.strip().lower()
    if role not in _ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role: {x_user_role}",
        )

    try:
        user_id = UUID(x_user_id)
        license_id = UUID(x_license_id) if x_license_id else None
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid identity headers",
        ) from None

    # Everyone but the vendor works inside exactly one license
    if role != "vendor" and license_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No license access",
        )

    return Actor(user_id=user_id, role=role, license_id=license_id)  # type: ignore[arg-type]


def require_roles(*roles: UserRole):  # type: ignore[no-untyped-def]
    """Dependency factory: the caller must hold one of roles."""

    def _check(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return actor

    return _check
