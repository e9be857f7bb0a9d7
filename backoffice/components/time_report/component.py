"""
Time report component - per-employee and per-client hour totals.

The employee totals and the client totals both sum to total_hours.
Group entries keep input order; inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable

from backoffice.core.entities import TimeEntryDetail

from ._aggregate import aggregate
from .models import AggregatedReport


def run_aggregate(entries: Iterable[TimeEntryDetail]) -> AggregatedReport:
    """Aggregate an already license- and date-filtered entry sequence."""
    return aggregate(entries)
