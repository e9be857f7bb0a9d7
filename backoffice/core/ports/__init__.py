# Ports (Protocol interfaces); implementations live in backoffice.adapters

from backoffice.core.ports.repo import (
    AuditQuery,
    AuditRepoPort,
    ReferenceLookupPort,
    RepositoryPort,
    TimeEntryFilter,
    TimeEntryRepoPort,
)
from backoffice.core.ports.time import TimePort

__all__ = [
    "AuditQuery",
    "AuditRepoPort",
    "ReferenceLookupPort",
    "RepositoryPort",
    "TimeEntryFilter",
    "TimeEntryRepoPort",
    "TimePort",
]
