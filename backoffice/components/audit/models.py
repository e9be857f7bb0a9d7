"""
Audit component input/output models.

The category taxonomy is closed: every category maps to exactly one
target-type label, and every action string is `<category>.<verb>`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

VERB_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


# --- Enums ---


class AuditCategory(str, Enum):
    """Domain categories that produce audit events."""

    AUTH = "auth"
    LICENSE = "license"
    USER = "user"
    CLIENT = "client"
    TASK = "task"
    TIME = "time"
    AML = "aml"


TARGET_TYPES: dict[AuditCategory, str] = {
    AuditCategory.AUTH: "User",
    AuditCategory.LICENSE: "License",
    AuditCategory.USER: "User",
    AuditCategory.CLIENT: "Client",
    AuditCategory.TASK: "Task",
    AuditCategory.TIME: "TimeEntry",
    AuditCategory.AML: "AMLStatus",
}


# --- Tagged event ---


@dataclass(frozen=True)
class AuditEvent:
    """
    One categorized domain action.

    For AUTH events the target is the actor; target_id may be omitted.
    """

    category: AuditCategory
    verb: str
    actor_user_id: UUID
    target_id: str | None = None
    license_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    ip: str | None = None
    user_agent: str | None = None

    @property
    def action(self) -> str:
        return f"{self.category.value}.{self.verb}"

    @property
    def target_type(self) -> str:
        return TARGET_TYPES[self.category]

    @property
    def resolved_target_id(self) -> str | None:
        if self.target_id is None and self.category is AuditCategory.AUTH:
            return str(self.actor_user_id)
        return self.target_id


# --- Input Models ---


@dataclass(frozen=True)
class RecordAuditInput:
    """Raw audit payload. actor_user_id, action, target_type, target_id are required."""

    actor_user_id: UUID | None = None
    action: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    license_id: UUID | None = None
    metadata: dict[str, Any] | None = None
    ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class AuditFilters:
    """Query filters, combined with AND. Date bounds are inclusive."""

    actor_user_id: UUID | None = None
    action: str | None = None
    target_type: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int | None = None
