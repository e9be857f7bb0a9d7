"""
Time entries component - license-scoped time tracking.
"""

from ._impl import (
    DEFAULT_CONFIG,
    InMemoryLookup,
    InMemoryTimeEntryRepo,
    TimeEntryConfig,
    TimeEntryService,
)
from .component import (
    run_create,
    run_delete,
    run_export,
    run_list,
    run_report,
    run_update,
)
from .models import (
    Actor,
    CreateTimeEntryInput,
    TimeEntryFilters,
    UpdateTimeEntryInput,
)
from .ports import ReferenceLookupPort, TimeEntryFilter, TimeEntryRepoPort, TimePort

__all__ = [
    # Entry points
    "run_create",
    "run_delete",
    "run_export",
    "run_list",
    "run_report",
    "run_update",
    # Models
    "Actor",
    "CreateTimeEntryInput",
    "TimeEntryFilters",
    "UpdateTimeEntryInput",
    # Service
    "DEFAULT_CONFIG",
    "InMemoryLookup",
    "InMemoryTimeEntryRepo",
    "TimeEntryConfig",
    "TimeEntryService",
    # Ports
    "ReferenceLookupPort",
    "TimeEntryFilter",
    "TimeEntryRepoPort",
    "TimePort",
]
