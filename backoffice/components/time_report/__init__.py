"""
Time report component - aggregation of time entries.
"""

from ._aggregate import aggregate
from .component import run_aggregate
from .models import AggregatedReport, ClientGroup, EmployeeGroup

__all__ = [
    "AggregatedReport",
    "ClientGroup",
    "EmployeeGroup",
    "aggregate",
    "run_aggregate",
]
