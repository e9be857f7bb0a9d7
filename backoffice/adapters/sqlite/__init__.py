from backoffice.adapters.sqlite.migrator import SQLiteMigrator
from backoffice.adapters.sqlite.repos import (
    SQLiteAuditRepo,
    SQLiteClientLookup,
    SQLiteTaskLookup,
    SQLiteTimeEntryRepo,
    SQLiteUserLookup,
)

__all__ = [
    "SQLiteAuditRepo",
    "SQLiteClientLookup",
    "SQLiteMigrator",
    "SQLiteTaskLookup",
    "SQLiteTimeEntryRepo",
    "SQLiteUserLookup",
]
