"""
Audit component port definitions.
"""

from __future__ import annotations

from backoffice.core.ports.repo import AuditQuery, AuditRepoPort
from backoffice.core.ports.time import TimePort

__all__ = ["AuditQuery", "AuditRepoPort", "TimePort"]
