"""
Tests for the time entries service.

Tenant scoping, validation, auditing and the report/export paths.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice.components.audit import AuditFilters, AuditService
from backoffice.components.report_export import ExportConfig, ReportFormat
from backoffice.components.time_entries import (
    Actor,
    CreateTimeEntryInput,
    InMemoryLookup,
    InMemoryTimeEntryRepo,
    TimeEntryConfig,
    TimeEntryFilter,
    TimeEntryFilters,
    TimeEntryService,
    UpdateTimeEntryInput,
    run_create,
    run_delete,
    run_export,
    run_list,
    run_report,
    run_update,
)
from backoffice.core.errors import NotFoundError, UnsupportedFormatError, ValidationError


def _create(service: TimeEntryService, world, **kwargs):
    params = {
        "client_id": world.acme.id,
        "hours": "2",
        "work_date": date(2024, 3, 1),
    }
    params.update(kwargs)
    actor = params.pop("actor", world.employee)
    return service.create(CreateTimeEntryInput(**params), actor)


# --- Create ---


class TestCreate:
    def test_create_entry(self, time_service: TimeEntryService, world) -> None:
        detail = _create(
            time_service, world, hours=7.5, notes="Arsoppgjor", task_id=world.bookkeeping.id
        )

        assert detail.hours == Decimal("7.5")
        assert detail.user == world.ola
        assert detail.client == world.acme
        assert detail.task == world.bookkeeping
        assert detail.entry.license_id == world.license_id
        assert detail.notes == "Arsoppgjor"
        assert detail.billable is True

    def test_float_hours_have_no_drift(self, time_service: TimeEntryService, world) -> None:
        detail = _create(time_service, world, hours=0.1)

        assert detail.hours == Decimal("0.1")

    def test_create_for_another_user(self, time_service: TimeEntryService, world) -> None:
        detail = _create(time_service, world, user_id=world.kari.id, actor=world.admin)

        assert detail.user == world.kari

    def test_create_persists(
        self, time_service: TimeEntryService, time_repo: InMemoryTimeEntryRepo, world
    ) -> None:
        detail = _create(time_service, world)

        assert time_repo.find_by_id(detail.id) == detail.entry

    def test_create_is_audited(
        self, time_service: TimeEntryService, audit_service: AuditService, world
    ) -> None:
        detail = _create(time_service, world, hours="1.25")

        entries = audit_service.query(world.license_id)

        assert len(entries) == 1
        assert entries[0].action == "time.create"
        assert entries[0].target_type == "TimeEntry"
        assert entries[0].target_id == str(detail.id)
        assert entries[0].actor_user_id == world.ola.id
        assert entries[0].metadata["hours"] == "1.25"

    @pytest.mark.parametrize("hours", [0, -1, "0", "-0.5", "abc", "NaN", 24.5, None, True])
    def test_invalid_hours(
        self,
        time_service: TimeEntryService,
        time_repo: InMemoryTimeEntryRepo,
        world,
        hours,
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            _create(time_service, world, hours=hours)

        assert exc_info.value.fields == ["hours"]
        assert time_repo.find_many(TimeEntryFilter(license_id=world.license_id)) == []

    def test_max_hours_from_config(self, world) -> None:
        service = TimeEntryService(
            repo=InMemoryTimeEntryRepo(),
            users=InMemoryLookup([world.ola]),
            clients=InMemoryLookup([world.acme]),
            tasks=InMemoryLookup([]),
            config=TimeEntryConfig(max_hours_per_entry=Decimal("8")),
        )

        assert _create(service, world, hours=8).hours == Decimal("8")
        with pytest.raises(ValidationError):
            _create(service, world, hours="8.25")

    def test_client_from_other_license(self, time_service: TimeEntryService, world) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _create(time_service, world, client_id=world.foreign_client.id)

        assert exc_info.value.entity == "Client"

    def test_unknown_client(self, time_service: TimeEntryService, world) -> None:
        with pytest.raises(NotFoundError):
            _create(time_service, world, client_id=uuid4())

    def test_task_of_other_client(self, time_service: TimeEntryService, world) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _create(time_service, world, client_id=world.acme.id, task_id=world.payroll.id)

        assert exc_info.value.entity == "Task"

    def test_unknown_user(self, time_service: TimeEntryService, world) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _create(time_service, world, user_id=uuid4())

        assert exc_info.value.entity == "User"

    def test_actor_without_license(self, time_service: TimeEntryService, world) -> None:
        vendor = Actor(user_id=uuid4(), role="vendor")

        with pytest.raises(ValidationError) as exc_info:
            _create(time_service, world, actor=vendor)

        assert exc_info.value.fields == ["license_id"]

    def test_failed_create_is_not_audited(
        self, time_service: TimeEntryService, audit_service: AuditService, world
    ) -> None:
        with pytest.raises(NotFoundError):
            _create(time_service, world, client_id=world.foreign_client.id)

        assert audit_service.query(None) == []


# --- Update / Delete ---


class TestUpdate:
    def test_update_fields(self, time_service: TimeEntryService, world, time_port) -> None:
        created = _create(time_service, world)
        time_port.advance(60)

        updated = time_service.update(
            created.id,
            UpdateTimeEntryInput(hours="3.5", notes="Justert", billable=False),
            world.employee,
        )

        assert updated.hours == Decimal("3.5")
        assert updated.notes == "Justert"
        assert updated.billable is False
        assert updated.entry.updated_at > created.entry.updated_at
        assert updated.entry.created_at == created.entry.created_at

    def test_update_is_audited_with_changes(
        self, time_service: TimeEntryService, audit_service: AuditService, world
    ) -> None:
        created = _create(time_service, world, hours="2")

        time_service.update(created.id, UpdateTimeEntryInput(hours="3"), world.employee)

        latest = audit_service.query(world.license_id, AuditFilters(action="time.update"))
        assert len(latest) == 1
        assert latest[0].metadata == {"changes": {"hours": {"old": "2", "new": "3"}}}

    def test_noop_update_is_not_audited(
        self, time_service: TimeEntryService, audit_service: AuditService, world
    ) -> None:
        created = _create(time_service, world, hours="2", notes="x")

        result = time_service.update(
            created.id, UpdateTimeEntryInput(hours="2.0", notes="x"), world.employee
        )

        assert result.entry == created.entry
        assert audit_service.query(world.license_id, AuditFilters(action="time.update")) == []

    def test_update_rejects_invalid_hours(self, time_service: TimeEntryService, world) -> None:
        created = _create(time_service, world)

        with pytest.raises(ValidationError):
            time_service.update(created.id, UpdateTimeEntryInput(hours=0), world.employee)

    def test_update_other_license(self, time_service: TimeEntryService, world) -> None:
        created = _create(time_service, world)

        with pytest.raises(NotFoundError):
            time_service.update(
                created.id, UpdateTimeEntryInput(notes="hijack"), world.outsider_actor
            )

        assert time_service.get(created.id, world.license_id).notes == ""

    def test_update_unknown_entry(self, time_service: TimeEntryService, world) -> None:
        with pytest.raises(NotFoundError):
            time_service.update(uuid4(), UpdateTimeEntryInput(notes="x"), world.employee)


class TestDelete:
    def test_delete(
        self, time_service: TimeEntryService, audit_service: AuditService, world
    ) -> None:
        created = _create(time_service, world)

        time_service.delete(created.id, world.employee)

        with pytest.raises(NotFoundError):
            time_service.get(created.id, world.license_id)
        deleted = audit_service.query(world.license_id, AuditFilters(action="time.delete"))
        assert [e.target_id for e in deleted] == [str(created.id)]

    def test_delete_other_license(
        self, time_service: TimeEntryService, time_repo: InMemoryTimeEntryRepo, world
    ) -> None:
        created = _create(time_service, world)

        with pytest.raises(NotFoundError):
            time_service.delete(created.id, world.outsider_actor)

        assert time_repo.find_by_id(created.id) is not None


# --- Queries ---


class TestListing:
    @pytest.fixture
    def seeded(self, time_service: TimeEntryService, world):
        return [
            _create(time_service, world, work_date=date(2024, 3, 1), hours="1"),
            _create(
                time_service, world, work_date=date(2024, 3, 5), hours="2", client_id=world.fjord.id
            ),
            _create(
                time_service,
                world,
                work_date=date(2024, 3, 3),
                hours="3",
                user_id=world.kari.id,
                actor=world.admin,
            ),
        ]

    def test_newest_work_date_first(self, time_service: TimeEntryService, world, seeded) -> None:
        details = time_service.list_entries(world.license_id)

        assert [d.work_date.day for d in details] == [5, 3, 1]

    def test_filter_by_user(self, time_service: TimeEntryService, world, seeded) -> None:
        details = time_service.list_entries(
            world.license_id, TimeEntryFilters(user_id=world.kari.id)
        )

        assert [d.user for d in details] == [world.kari]

    def test_filter_by_client(self, time_service: TimeEntryService, world, seeded) -> None:
        details = time_service.list_entries(
            world.license_id, TimeEntryFilters(client_id=world.fjord.id)
        )

        assert [d.client for d in details] == [world.fjord]

    def test_date_range_is_inclusive(self, time_service: TimeEntryService, world, seeded) -> None:
        details = time_service.list_entries(
            world.license_id,
            TimeEntryFilters(start_date=date(2024, 3, 3), end_date=date(2024, 3, 5)),
        )

        assert [d.work_date.day for d in details] == [5, 3]

    def test_inverted_range_rejected(self, time_service: TimeEntryService, world) -> None:
        with pytest.raises(ValidationError):
            time_service.list_entries(
                world.license_id,
                TimeEntryFilters(start_date=date(2024, 3, 5), end_date=date(2024, 3, 1)),
            )

    def test_other_license_sees_nothing(
        self, time_service: TimeEntryService, world, seeded
    ) -> None:
        assert time_service.list_entries(world.other_license_id) == []

    def test_get_from_other_license(self, time_service: TimeEntryService, world, seeded) -> None:
        with pytest.raises(NotFoundError):
            time_service.get(seeded[0].id, world.other_license_id)


class TestReportAndExport:
    def test_report(self, time_service: TimeEntryService, world) -> None:
        _create(time_service, world, hours="0.25")
        _create(time_service, world, hours="0.25", client_id=world.fjord.id)
        _create(time_service, world, hours="0.5", user_id=world.kari.id, actor=world.admin)

        report = time_service.report(world.license_id)

        assert report.total_hours == Decimal("1")
        assert report.total_entries == 3
        assert report.by_employee[world.ola.id].total_hours == Decimal("0.5")
        assert report.by_employee[world.kari.id].total_hours == Decimal("0.5")
        assert report.by_client[world.acme.id].total_hours == Decimal("0.75")
        assert report.by_client[world.fjord.id].total_hours == Decimal("0.25")

    def test_report_empty_license(self, time_service: TimeEntryService, world) -> None:
        report = time_service.report(world.license_id)

        assert report.total_hours == Decimal("0")
        assert report.total_entries == 0

    def test_export_tabular_oldest_first(self, time_service: TimeEntryService, world) -> None:
        _create(time_service, world, work_date=date(2024, 3, 9))
        _create(time_service, world, work_date=date(2024, 3, 2))

        lines = time_service.export(world.license_id, None, "tabular").decode().split("\n")

        assert lines[0].startswith("Dato,")
        assert [line[:10] for line in lines[1:]] == ["2024-03-02", "2024-03-09"]

    def test_exponent_hours_export_written_out(
        self, time_service: TimeEntryService, world
    ) -> None:
        detail = _create(time_service, world, hours="1e1")

        lines = time_service.export(world.license_id, None, "tabular").decode().split("\n")

        assert str(detail.hours) == "10"
        assert lines[1].split(",")[5] == "10"

    def test_export_narrative(self, time_service: TimeEntryService, world) -> None:
        _create(time_service, world, hours="1.5", billable=False)

        text = time_service.export(
            world.license_id, None, ReportFormat.NARRATIVE, ExportConfig()
        ).decode()

        assert "Ikke-fakturerbare timer: 1.5" in text

    def test_export_unknown_format(self, time_service: TimeEntryService, world) -> None:
        with pytest.raises(UnsupportedFormatError):
            time_service.export(world.license_id, None, "xml")


class TestEntryPoints:
    def test_run_functions(self, time_service: TimeEntryService, world) -> None:
        created = run_create(
            CreateTimeEntryInput(client_id=world.acme.id, hours="4", work_date=date(2024, 3, 1)),
            world.employee,
            time_service,
        )
        run_update(created.id, UpdateTimeEntryInput(notes="n"), world.employee, time_service)

        listed = run_list(world.license_id, TimeEntryFilters(), time_service)
        report = run_report(world.license_id, TimeEntryFilters(), time_service)
        content = run_export(world.license_id, TimeEntryFilters(), "narrative", time_service)

        assert [d.notes for d in listed] == ["n"]
        assert report.total_hours == Decimal("4")
        assert content.startswith(b"TIMEREGISTRERING RAPPORT")

        run_delete(created.id, world.employee, time_service)
        assert run_list(world.license_id, TimeEntryFilters(), time_service) == []
