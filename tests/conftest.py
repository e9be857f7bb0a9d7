from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from backoffice.components.audit import AuditService, InMemoryAuditRepo
from backoffice.components.time_entries import (
    Actor,
    InMemoryLookup,
    InMemoryTimeEntryRepo,
    TimeEntryService,
)
from backoffice.core.entities import ClientRef, TaskRef, TimeEntry, TimeEntryDetail, UserRef


class MockTimePort:
    """Mock time provider."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime(2024, 3, 1, 9, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._now

    def set_now(self, now: datetime) -> None:
        self._now = now

    def advance(self, seconds: int) -> None:
        self._now += timedelta(seconds=seconds)


@dataclass
class World:
    """Two licenses with users, clients and tasks."""

    license_id: UUID
    other_license_id: UUID
    ola: UserRef
    kari: UserRef
    outsider: UserRef
    acme: ClientRef
    fjord: ClientRef
    foreign_client: ClientRef
    bookkeeping: TaskRef
    payroll: TaskRef

    @property
    def employee(self) -> Actor:
        return Actor(user_id=self.ola.id, role="employee", license_id=self.license_id)

    @property
    def admin(self) -> Actor:
        return Actor(user_id=self.kari.id, role="license_admin", license_id=self.license_id)

    @property
    def outsider_actor(self) -> Actor:
        return Actor(user_id=self.outsider.id, role="employee", license_id=self.other_license_id)


@pytest.fixture
def world() -> World:
    license_id = uuid4()
    other_license_id = uuid4()
    acme = ClientRef(id=uuid4(), name="Acme AS", license_id=license_id)
    fjord = ClientRef(id=uuid4(), name="Fjord Regnskap", license_id=license_id)
    return World(
        license_id=license_id,
        other_license_id=other_license_id,
        ola=UserRef(id=uuid4(), name="Ola Nordmann"),
        kari=UserRef(id=uuid4(), name="Kari Hansen"),
        outsider=UserRef(id=uuid4(), name="Per Utenfor"),
        acme=acme,
        fjord=fjord,
        foreign_client=ClientRef(id=uuid4(), name="Other Co", license_id=other_license_id),
        bookkeeping=TaskRef(
            id=uuid4(), title="Bokforing", client_id=acme.id, license_id=license_id
        ),
        payroll=TaskRef(id=uuid4(), title="Lonn", client_id=fjord.id, license_id=license_id),
    )


@pytest.fixture
def time_port() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def audit_repo() -> InMemoryAuditRepo:
    return InMemoryAuditRepo()


@pytest.fixture
def audit_service(audit_repo: InMemoryAuditRepo, time_port: MockTimePort) -> AuditService:
    return AuditService(repo=audit_repo, time_port=time_port)


@pytest.fixture
def time_repo() -> InMemoryTimeEntryRepo:
    return InMemoryTimeEntryRepo()


@pytest.fixture
def time_service(
    world: World,
    time_repo: InMemoryTimeEntryRepo,
    audit_service: AuditService,
    time_port: MockTimePort,
) -> TimeEntryService:
    return TimeEntryService(
        repo=time_repo,
        users=InMemoryLookup([world.ola, world.kari, world.outsider]),
        clients=InMemoryLookup([world.acme, world.fjord, world.foreign_client]),
        tasks=InMemoryLookup([world.bookkeeping, world.payroll]),
        audit=audit_service,
        time_port=time_port,
    )


@pytest.fixture
def make_detail():
    """Build a TimeEntryDetail without going through a service."""

    def _make(
        user: UserRef,
        client: ClientRef,
        hours: str | Decimal,
        work_date: date = date(2024, 3, 1),
        task: TaskRef | None = None,
        notes: str = "",
        billable: bool = True,
    ) -> TimeEntryDetail:
        entry = TimeEntry(
            license_id=client.license_id,
            client_id=client.id,
            task_id=task.id if task else None,
            user_id=user.id,
            hours=Decimal(hours),
            work_date=work_date,
            notes=notes,
            billable=billable,
        )
        return TimeEntryDetail(entry=entry, user=user, client=client, task=task)

    return _make
