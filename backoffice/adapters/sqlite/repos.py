import json
import sqlite3
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from backoffice.core.entities import (
    AuditLogEntry,
    ClientRef,
    TaskRef,
    TimeEntry,
    UserRef,
)
from backoffice.core.errors import NotFoundError
from backoffice.core.ports.repo import AuditQuery, TimeEntryFilter


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _ts(dt: datetime) -> str:
    """Fixed-width UTC timestamp so text ordering matches time ordering."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _opt_uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


# --- Reference lookups ---


class SQLiteUserLookup(_SQLiteRepo):
    def save(
        self, user: UserRef, license_id: UUID | None = None, role: str = "employee"
    ) -> UserRef:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO users (id, name, license_id, role) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name, license_id=excluded.license_id, role=excluded.role
                """,
                (str(user.id), user.name, str(license_id) if license_id else None, role),
            )
            conn.commit()
            return user
        finally:
            conn.close()

    def find_by_id(self, entity_id: UUID) -> UserRef | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(entity_id),)).fetchone()
            if not row:
                return None
            return UserRef(id=UUID(row["id"]), name=row["name"])
        finally:
            conn.close()


class SQLiteClientLookup(_SQLiteRepo):
    def save(self, client: ClientRef) -> ClientRef:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO clients (id, license_id, name) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    license_id=excluded.license_id, name=excluded.name
                """,
                (str(client.id), str(client.license_id), client.name),
            )
            conn.commit()
            return client
        finally:
            conn.close()

    def find_by_id(self, entity_id: UUID) -> ClientRef | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM clients WHERE id = ?", (str(entity_id),)).fetchone()
            if not row:
                return None
            return ClientRef(
                id=UUID(row["id"]), name=row["name"], license_id=UUID(row["license_id"])
            )
        finally:
            conn.close()


class SQLiteTaskLookup(_SQLiteRepo):
    def save(self, task: TaskRef) -> TaskRef:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tasks (id, license_id, client_id, title) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    license_id=excluded.license_id,
                    client_id=excluded.client_id,
                    title=excluded.title
                """,
                (str(task.id), str(task.license_id), str(task.client_id), task.title),
            )
            conn.commit()
            return task
        finally:
            conn.close()

    def find_by_id(self, entity_id: UUID) -> TaskRef | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (str(entity_id),)).fetchone()
            if not row:
                return None
            return TaskRef(
                id=UUID(row["id"]),
                title=row["title"],
                client_id=UUID(row["client_id"]),
                license_id=UUID(row["license_id"]),
            )
        finally:
            conn.close()


# --- Time entries ---


class SQLiteTimeEntryRepo(_SQLiteRepo):
    """Hours are stored as TEXT so Decimal values round-trip exactly."""

    def _to_entity(self, row: dict[str, Any]) -> TimeEntry:
        return TimeEntry(
            id=UUID(row["id"]),
            license_id=UUID(row["license_id"]),
            client_id=UUID(row["client_id"]),
            task_id=_opt_uuid(row["task_id"]),
            user_id=UUID(row["user_id"]),
            hours=Decimal(row["hours"]),
            work_date=date.fromisoformat(row["work_date"]),
            notes=row["notes"],
            billable=bool(row["billable"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _params(self, entity: TimeEntry) -> tuple[Any, ...]:
        return (
            str(entity.license_id),
            str(entity.client_id),
            str(entity.task_id) if entity.task_id else None,
            str(entity.user_id),
            str(entity.hours),
            entity.work_date.isoformat(),
            entity.notes,
            1 if entity.billable else 0,
            _ts(entity.created_at),
            _ts(entity.updated_at),
        )

    def find_by_id(self, entity_id: UUID) -> TimeEntry | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM time_entries WHERE id = ?", (str(entity_id),)
            ).fetchone()
            return self._to_entity(row) if row else None
        finally:
            conn.close()

    def find_many(self, filter: TimeEntryFilter) -> list[TimeEntry]:
        query = "SELECT * FROM time_entries WHERE license_id = ?"
        params: list[Any] = [str(filter.license_id)]
        if filter.user_id is not None:
            query += " AND user_id = ?"
            params.append(str(filter.user_id))
        if filter.client_id is not None:
            query += " AND client_id = ?"
            params.append(str(filter.client_id))
        if filter.start_date is not None:
            query += " AND work_date >= ?"
            params.append(filter.start_date.isoformat())
        if filter.end_date is not None:
            query += " AND work_date <= ?"
            params.append(filter.end_date.isoformat())
        query += " ORDER BY work_date ASC, created_at ASC"

        conn = self._get_conn()
        try:
            rows = conn.execute(query, params).fetchall()
            return [self._to_entity(r) for r in rows]
        finally:
            conn.close()

    def create(self, entity: TimeEntry) -> TimeEntry:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO time_entries (
                    license_id, client_id, task_id, user_id, hours,
                    work_date, notes, billable, created_at, updated_at, id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (*self._params(entity), str(entity.id)),
            )
            conn.commit()
            return entity
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def update(self, entity: TimeEntry) -> TimeEntry:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE time_entries SET
                    license_id = ?, client_id = ?, task_id = ?, user_id = ?, hours = ?,
                    work_date = ?, notes = ?, billable = ?, created_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (*self._params(entity), str(entity.id)),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise NotFoundError("TimeEntry", entity.id)
            conn.commit()
            return entity
        finally:
            conn.close()

    def delete(self, entity_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM time_entries WHERE id = ?", (str(entity_id),))
            conn.commit()
        finally:
            conn.close()


# --- Audit log ---


class SQLiteAuditRepo(_SQLiteRepo):
    """Append-only: no update or delete."""

    def _to_entity(self, row: dict[str, Any]) -> AuditLogEntry:
        return AuditLogEntry(
            id=UUID(row["id"]),
            license_id=_opt_uuid(row["license_id"]),
            actor_user_id=UUID(row["actor_user_id"]),
            action=row["action"],
            target_type=row["target_type"],
            target_id=row["target_id"],
            metadata=json.loads(row["metadata_json"]),
            ip=row["ip"],
            user_agent=row["user_agent"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _where(self, query: AuditQuery) -> tuple[str, list[Any]]:
        clauses = ["1=1"]
        params: list[Any] = []
        if query.license_id is not None:
            clauses.append("license_id = ?")
            params.append(str(query.license_id))
        if query.actor_user_id is not None:
            clauses.append("actor_user_id = ?")
            params.append(str(query.actor_user_id))
        if query.action is not None:
            clauses.append("action = ?")
            params.append(query.action)
        if query.target_type is not None:
            clauses.append("target_type = ?")
            params.append(query.target_type)
        if query.start_date is not None:
            clauses.append("created_at >= ?")
            params.append(_ts(query.start_date))
        if query.end_date is not None:
            clauses.append("created_at <= ?")
            params.append(_ts(query.end_date))
        return " AND ".join(clauses), params

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO audit_log (
                    id, license_id, actor_user_id, action, target_type, target_id,
                    metadata_json, ip, user_agent, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(entry.id),
                    str(entry.license_id) if entry.license_id else None,
                    str(entry.actor_user_id),
                    entry.action,
                    entry.target_type,
                    entry.target_id,
                    json.dumps(entry.metadata, sort_keys=True, default=str),
                    entry.ip,
                    entry.user_agent,
                    _ts(entry.created_at),
                ),
            )
            conn.commit()
            return entry
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def find_many(self, query: AuditQuery) -> list[AuditLogEntry]:
        where, params = self._where(query)
        sql = f"SELECT * FROM audit_log WHERE {where} ORDER BY created_at DESC, seq DESC"
        if query.limit is not None:
            sql += " LIMIT ?"
            params.append(query.limit)

        conn = self._get_conn()
        try:
            return [self._to_entity(r) for r in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def count(self, query: AuditQuery) -> int:
        where, params = self._where(query)
        conn = self._get_conn()
        try:
            sql = f"SELECT COUNT(*) AS n FROM audit_log WHERE {where}"
            row = conn.execute(sql, params).fetchone()
            return int(row["n"])
        finally:
            conn.close()
