"""
Integration tests for the SQLite adapters, against a migrated temp database.
"""

import sqlite3
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice.adapters.sqlite import (
    SQLiteAuditRepo,
    SQLiteClientLookup,
    SQLiteMigrator,
    SQLiteTaskLookup,
    SQLiteTimeEntryRepo,
    SQLiteUserLookup,
)
from backoffice.components.audit import AuditFilters, AuditService
from backoffice.components.time_entries import (
    CreateTimeEntryInput,
    TimeEntryFilters,
    TimeEntryService,
    UpdateTimeEntryInput,
)
from backoffice.core.entities import AuditLogEntry, TimeEntry
from backoffice.core.errors import NotFoundError
from backoffice.core.ports.repo import AuditQuery, TimeEntryFilter

T0 = datetime(2024, 3, 1, 8, 30, tzinfo=UTC)


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "backoffice.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def seeded_refs(db_path, world):
    users = SQLiteUserLookup(db_path)
    clients = SQLiteClientLookup(db_path)
    tasks = SQLiteTaskLookup(db_path)
    for user in (world.ola, world.kari):
        users.save(user, world.license_id)
    users.save(world.outsider, world.other_license_id)
    for client in (world.acme, world.fjord, world.foreign_client):
        clients.save(client)
    for task in (world.bookkeeping, world.payroll):
        tasks.save(task)
    return users, clients, tasks


def _entry(world, **kwargs) -> TimeEntry:
    params = {
        "license_id": world.license_id,
        "client_id": world.acme.id,
        "user_id": world.ola.id,
        "hours": Decimal("1"),
        "work_date": date(2024, 3, 1),
        "created_at": T0,
        "updated_at": T0,
    }
    params.update(kwargs)
    return TimeEntry(**params)


class TestMigrator:
    def test_applies_once(self, tmp_path) -> None:
        path = str(tmp_path / "fresh.db")
        migrator = SQLiteMigrator(path)

        assert migrator.run_migrations() == ["0001_initial.sql"]
        assert migrator.run_migrations() == []

    def test_creates_tables(self, db_path) -> None:
        conn = sqlite3.connect(db_path)
        try:
            names = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        finally:
            conn.close()

        assert {"users", "clients", "tasks", "time_entries", "audit_log"} <= names


class TestReferenceLookups:
    def test_round_trip(self, db_path, world, seeded_refs) -> None:
        users, clients, tasks = seeded_refs

        assert users.find_by_id(world.ola.id) == world.ola
        assert clients.find_by_id(world.acme.id) == world.acme
        assert tasks.find_by_id(world.bookkeeping.id) == world.bookkeeping

    def test_missing(self, db_path, seeded_refs) -> None:
        users, clients, tasks = seeded_refs

        assert users.find_by_id(uuid4()) is None
        assert clients.find_by_id(uuid4()) is None
        assert tasks.find_by_id(uuid4()) is None


class TestTimeEntryRepo:
    def test_create_and_find(self, db_path, world, seeded_refs) -> None:
        repo = SQLiteTimeEntryRepo(db_path)
        entry = _entry(world, hours=Decimal("0.1"), task_id=world.bookkeeping.id, notes="x")

        repo.create(entry)

        assert repo.find_by_id(entry.id) == entry
        assert repo.find_by_id(uuid4()) is None

    def test_hours_keep_their_scale(self, db_path, world, seeded_refs) -> None:
        repo = SQLiteTimeEntryRepo(db_path)
        entry = repo.create(_entry(world, hours=Decimal("7.50")))

        found = repo.find_by_id(entry.id)

        assert found is not None
        assert str(found.hours) == "7.50"

    def test_find_many_filters(self, db_path, world, seeded_refs) -> None:
        repo = SQLiteTimeEntryRepo(db_path)
        repo.create(_entry(world, work_date=date(2024, 3, 1)))
        repo.create(_entry(world, work_date=date(2024, 3, 3), client_id=world.fjord.id))
        repo.create(_entry(world, work_date=date(2024, 3, 5), user_id=world.kari.id))
        repo.create(
            _entry(
                world,
                license_id=world.other_license_id,
                client_id=world.foreign_client.id,
                user_id=world.outsider.id,
            )
        )

        everything = repo.find_many(TimeEntryFilter(license_id=world.license_id))
        by_client = repo.find_many(
            TimeEntryFilter(license_id=world.license_id, client_id=world.fjord.id)
        )
        by_user = repo.find_many(
            TimeEntryFilter(license_id=world.license_id, user_id=world.kari.id)
        )
        in_range = repo.find_many(
            TimeEntryFilter(
                license_id=world.license_id,
                start_date=date(2024, 3, 3),
                end_date=date(2024, 3, 5),
            )
        )

        assert len(everything) == 3
        assert [e.client_id for e in by_client] == [world.fjord.id]
        assert [e.user_id for e in by_user] == [world.kari.id]
        assert [e.work_date.day for e in in_range] == [3, 5]

    def test_update(self, db_path, world, seeded_refs) -> None:
        repo = SQLiteTimeEntryRepo(db_path)
        entry = repo.create(_entry(world))

        repo.update(entry.model_copy(update={"hours": Decimal("2.5"), "billable": False}))

        found = repo.find_by_id(entry.id)
        assert found is not None
        assert found.hours == Decimal("2.5")
        assert found.billable is False

    def test_update_missing(self, db_path, world, seeded_refs) -> None:
        with pytest.raises(NotFoundError):
            SQLiteTimeEntryRepo(db_path).update(_entry(world))

    def test_delete(self, db_path, world, seeded_refs) -> None:
        repo = SQLiteTimeEntryRepo(db_path)
        entry = repo.create(_entry(world))

        repo.delete(entry.id)

        assert repo.find_by_id(entry.id) is None


class TestAuditRepo:
    def _append(self, repo: SQLiteAuditRepo, license_id, created_at, **kwargs) -> AuditLogEntry:
        params = {
            "license_id": license_id,
            "actor_user_id": uuid4(),
            "action": "client.create",
            "target_type": "Client",
            "target_id": str(uuid4()),
            "created_at": created_at,
        }
        params.update(kwargs)
        return repo.append(AuditLogEntry(**params))

    def test_round_trip(self, db_path) -> None:
        repo = SQLiteAuditRepo(db_path)
        entry = self._append(
            repo,
            uuid4(),
            T0,
            metadata={"changes": {"hours": {"old": "1", "new": "2"}}, "n": 3},
            ip="10.0.0.1",
            user_agent="pytest",
        )

        assert repo.find_many(AuditQuery()) == [entry]

    def test_newest_first_with_limit(self, db_path) -> None:
        repo = SQLiteAuditRepo(db_path)
        license_id = uuid4()
        entries = [
            self._append(repo, license_id, T0 + timedelta(minutes=i)) for i in range(5)
        ]

        results = repo.find_many(AuditQuery(license_id=license_id, limit=3))

        assert [e.id for e in results] == [e.id for e in reversed(entries[2:])]
        assert repo.count(AuditQuery(license_id=license_id)) == 5

    def test_same_timestamp_latest_append_first(self, db_path) -> None:
        repo = SQLiteAuditRepo(db_path)
        license_id = uuid4()
        first = self._append(repo, license_id, T0)
        second = self._append(repo, license_id, T0)

        results = repo.find_many(AuditQuery(license_id=license_id))

        assert [e.id for e in results] == [second.id, first.id]

    def test_filters(self, db_path) -> None:
        repo = SQLiteAuditRepo(db_path)
        license_id = uuid4()
        actor = uuid4()
        self._append(repo, license_id, T0, actor_user_id=actor)
        self._append(
            repo,
            license_id,
            T0 + timedelta(hours=1),
            action="time.create",
            target_type="TimeEntry",
        )
        self._append(repo, uuid4(), T0 + timedelta(hours=2))

        assert len(repo.find_many(AuditQuery(license_id=license_id))) == 2
        assert len(repo.find_many(AuditQuery())) == 3
        assert len(repo.find_many(AuditQuery(actor_user_id=actor))) == 1
        assert len(repo.find_many(AuditQuery(action="time.create"))) == 1
        assert len(repo.find_many(AuditQuery(target_type="Client"))) == 2
        window = AuditQuery(start_date=T0 + timedelta(hours=1), end_date=T0 + timedelta(hours=2))
        assert repo.count(window) == 2

    def test_unscoped_entries(self, db_path) -> None:
        repo = SQLiteAuditRepo(db_path)
        entry = self._append(repo, None, T0, action="auth.login", target_type="User")

        assert repo.find_many(AuditQuery())[0].license_id is None
        assert repo.find_many(AuditQuery(license_id=uuid4())) == []
        assert entry.license_id is None


class TestServicesOverSQLite:
    def test_time_entry_lifecycle(self, db_path, world, seeded_refs, time_port) -> None:
        users, clients, tasks = seeded_refs
        audit = AuditService(repo=SQLiteAuditRepo(db_path), time_port=time_port)
        service = TimeEntryService(
            repo=SQLiteTimeEntryRepo(db_path),
            users=users,
            clients=clients,
            tasks=tasks,
            audit=audit,
            time_port=time_port,
        )

        created = service.create(
            CreateTimeEntryInput(
                client_id=world.acme.id,
                task_id=world.bookkeeping.id,
                hours="0.25",
                work_date=date(2024, 3, 1),
            ),
            world.employee,
        )
        time_port.advance(1)
        service.update(created.id, UpdateTimeEntryInput(hours="0.75"), world.employee)
        time_port.advance(1)
        service.create(
            CreateTimeEntryInput(client_id=world.fjord.id, hours=1, work_date=date(2024, 3, 2)),
            world.employee,
        )

        report = service.report(world.license_id, TimeEntryFilters())
        assert report.total_hours == Decimal("1.75")
        assert report.by_client[world.acme.id].entries[0].task == world.bookkeeping

        actions = [e.action for e in audit.query(world.license_id, AuditFilters())]
        assert actions == ["time.create", "time.update", "time.create"]

        service.delete(created.id, world.employee)
        assert service.report(world.license_id).total_entries == 1
