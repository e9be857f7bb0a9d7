"""
Time entries component port definitions.
"""

from __future__ import annotations

from backoffice.core.ports.repo import (
    ReferenceLookupPort,
    TimeEntryFilter,
    TimeEntryRepoPort,
)
from backoffice.core.ports.time import TimePort

__all__ = ["ReferenceLookupPort", "TimeEntryFilter", "TimeEntryRepoPort", "TimePort"]
