"""
Audit component - Audit logging and querying.
"""

from ._impl import (
    DEFAULT_CONFIG,
    AuditConfig,
    AuditService,
    DefaultTimePort,
    InMemoryAuditRepo,
    create_audit_service,
)
from .component import (
    run,
    run_query,
    run_record,
    run_record_event,
)
from .models import (
    TARGET_TYPES,
    AuditCategory,
    AuditEvent,
    AuditFilters,
    RecordAuditInput,
)
from .ports import AuditQuery, AuditRepoPort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_query",
    "run_record",
    "run_record_event",
    # Models
    "AuditCategory",
    "AuditEvent",
    "AuditFilters",
    "RecordAuditInput",
    "TARGET_TYPES",
    # Service
    "AuditConfig",
    "AuditService",
    "DEFAULT_CONFIG",
    "DefaultTimePort",
    "InMemoryAuditRepo",
    "create_audit_service",
    # Ports
    "AuditQuery",
    "AuditRepoPort",
    "TimePort",
]
