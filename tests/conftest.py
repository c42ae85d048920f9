"""Pytest configuration and shared fixtures — in-memory fakes for every port."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

import pytest

from dispatchsync.application.ports.assignment_repo import AssignmentRepository
from dispatchsync.application.ports.directory_repo import DirectoryRepository
from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.application.ports.notification_gateway import NotificationGateway
from dispatchsync.application.use_cases.admin_force_start import AdminForceStartUseCase
from dispatchsync.application.use_cases.assignment_sync import AssignmentSync
from dispatchsync.application.use_cases.dispatch_lifecycle import DispatchLifecycleUseCase
from dispatchsync.application.use_cases.notification_fanout import NotificationFanout
from dispatchsync.application.use_cases.reconcile_dispatch import ReconcileDispatchUseCase
from dispatchsync.application.use_cases.set_driver_status import SetDriverAssignmentStatusUseCase
from dispatchsync.domain.entities.assignment import AssignmentRecord
from dispatchsync.domain.entities.dispatch import Dispatch, DriverAssignment
from dispatchsync.domain.entities.notification import Notification
from dispatchsync.domain.errors import (
    DispatchStateError,
    NotFoundError,
    NotificationDeliveryError,
    TransientStoreError,
)
from dispatchsync.domain.value_objects.enums import (
    AssignmentRecordStatus,
    AssignmentStatusValue,
    DispatchStatus,
    NotificationSink,
)

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
TRIP_DAY = date(2026, 3, 2)

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: int = 1) -> datetime:
        self.now += timedelta(minutes=minutes)
        return self.now


class FakeDispatchRepo(DispatchRepository):
    """Stores copies, so use cases never share objects with the 'database'."""

    def __init__(self):
        self.dispatches: dict[str, Dispatch] = {}
        self.status_writes: list[tuple[str, DispatchStatus]] = []
        self.assignment_writes: list[tuple[str, str, AssignmentStatusValue]] = []
        self.admin_writes: list[tuple[str, DispatchStatus]] = []

    async def add(self, dispatch):
        if not dispatch.key:
            dispatch.key = f"k{len(self.dispatches) + 1}"
        self.dispatches[dispatch.key] = copy.deepcopy(dispatch)
        return dispatch

    async def get_by_key(self, key):
        d = self.dispatches.get(key)
        return copy.deepcopy(d) if d else None

    async def get_status(self, key):
        d = self.dispatches.get(key)
        return d.status if d else None

    async def list_by_status(self, statuses):
        return [copy.deepcopy(d) for d in self.dispatches.values() if d.status in statuses]

    def _stored(self, key) -> Dispatch:
        if key not in self.dispatches:
            raise NotFoundError(f"Dispatch {key} not found")
        return self.dispatches[key]

    @staticmethod
    def _apply_status(d: Dispatch, status: DispatchStatus, at: datetime) -> None:
        d.status = status
        d.current_status = {"status": status.value, "updatedAt": at.isoformat()}
        d.status_changed_at[status.value] = at
        d.updated_at = at

    async def update_status(self, key, status, at):
        d = self._stored(key)
        self._apply_status(d, status, at)
        self.status_writes.append((key, status))

    async def transition_driver(self, key, driver_id, status, at):
        d = self._stored(key)
        before = d.driver_assignments.get(driver_id)
        if before is None:
            raise NotFoundError(f"Driver {driver_id} is not assigned to dispatch {key}")
        after = before.with_status(status, at)
        d.driver_assignments[driver_id] = after
        d.updated_at = at
        self.assignment_writes.append((key, driver_id, status))
        return copy.deepcopy(before), copy.deepcopy(after)

    async def record_admin_action(
        self, key, status, at, *, expected=None, driver_assignments=None, update_drivers=None, audit=None
    ):
        d = self._stored(key)
        if expected is not None and d.status not in expected:
            raise DispatchStateError(f"Dispatch {key} is {d.status.value}; cannot move it to {status.value}")
        self._apply_status(d, status, at)
        if driver_assignments is not None:
            d.driver_assignments = copy.deepcopy(driver_assignments)
        elif update_drivers is not None:
            d.driver_assignments = {
                driver_id: update_drivers(a) for driver_id, a in d.driver_assignments.items()
            }
        for column, value in (audit or {}).items():
            setattr(d, column, value)
        self.admin_writes.append((key, status))
        return copy.deepcopy(d)


class FakeAssignmentRepo(AssignmentRepository):
    def __init__(self):
        self.records: dict[int, AssignmentRecord] = {}
        self.failing_ids: set[int] = set()
        self.updates: list[tuple[int, AssignmentRecordStatus]] = []
        self.deleted: list[int] = []

    async def add(self, record):
        record.id = len(self.records) + len(self.deleted) + 1
        self.records[record.id] = copy.deepcopy(record)
        return record

    async def list_by_dispatch(self, dispatch_key):
        return [copy.deepcopy(r) for r in self.records.values() if r.dispatch_key == dispatch_key]

    async def list_for_driver_on(self, driver_id, day):
        return [
            copy.deepcopy(r) for r in self.records.values()
            if r.driver_id == driver_id and r.assigned_date == day
        ]

    async def list_for_truck_on(self, truck_id, day):
        return [
            copy.deepcopy(r) for r in self.records.values()
            if r.truck_id == truck_id and r.assigned_date == day
        ]

    async def get_all(self):
        return [copy.deepcopy(r) for r in self.records.values()]

    async def update_status(self, record_id, status, at):
        if record_id in self.failing_ids:
            raise TransientStoreError(f"record {record_id} write failed")
        self.records[record_id].status = status
        self.records[record_id].updated_at = at
        self.updates.append((record_id, status))

    async def delete(self, record_id):
        self.records.pop(record_id, None)
        self.deleted.append(record_id)


class FakeDirectory(DirectoryRepository):
    def __init__(self):
        # key -> business customer id
        self.customers: dict[str, str | None] = {"cust-key-1": "CUST-1"}
        self.drivers: dict[str, str] = {"d1": "Alice", "d2": "Bob", "d3": "Chen"}

    async def find_customer_key(self, customer_ref):
        if customer_ref in self.customers:
            return customer_ref
        return next((k for k, cid in self.customers.items() if cid == customer_ref), None)

    async def get_driver_name(self, driver_id):
        return self.drivers.get(driver_id)


class FakeNotificationGateway(NotificationGateway):
    def __init__(self):
        self.delivered: list[Notification] = []
        self.fail_for: set[tuple[NotificationSink, str | None]] = set()

    async def deliver(self, notification):
        if (notification.sink, notification.recipient_id) in self.fail_for:
            raise NotificationDeliveryError(notification.sink.value, notification.recipient_id, "boom")
        notification.id = len(self.delivered) + 1
        self.delivered.append(notification)
        return notification

    async def list_for(self, sink, recipient_id=None, limit=100):
        items = [
            n for n in self.delivered
            if n.sink == sink and (recipient_id is None or n.recipient_id == recipient_id)
        ]
        return list(reversed(items))[:limit]

    async def mark_read(self, notification_id):
        for n in self.delivered:
            if n.id == notification_id:
                n.read = True
                return True
        return False

    def to(self, sink: NotificationSink, recipient_id: str | None = None) -> list[Notification]:
        return [n for n in self.delivered if n.sink == sink and n.recipient_id == recipient_id]

    def types(self) -> list[str]:
        return [n.type for n in self.delivered]


# ─── World: fakes wired into real use cases ──────────────────────────


@dataclass
class World:
    clock: FakeClock = field(default_factory=FakeClock)
    dispatches: FakeDispatchRepo = field(default_factory=FakeDispatchRepo)
    records: FakeAssignmentRepo = field(default_factory=FakeAssignmentRepo)
    directory: FakeDirectory = field(default_factory=FakeDirectory)
    gateway: FakeNotificationGateway = field(default_factory=FakeNotificationGateway)

    @property
    def sync(self) -> AssignmentSync:
        return AssignmentSync(self.records, self.dispatches, clock=self.clock)

    @property
    def fanout(self) -> NotificationFanout:
        return NotificationFanout(self.gateway, self.directory)

    @property
    def reconcile(self) -> ReconcileDispatchUseCase:
        return ReconcileDispatchUseCase(self.dispatches, self.sync, self.fanout, clock=self.clock)

    @property
    def set_status(self) -> SetDriverAssignmentStatusUseCase:
        return SetDriverAssignmentStatusUseCase(
            self.dispatches, self.reconcile, self.fanout, clock=self.clock
        )

    @property
    def force_start(self) -> AdminForceStartUseCase:
        return AdminForceStartUseCase(self.dispatches, self.sync, self.fanout, clock=self.clock)

    @property
    def lifecycle(self) -> DispatchLifecycleUseCase:
        return DispatchLifecycleUseCase(
            self.dispatches, self.records, self.sync, self.fanout, clock=self.clock
        )

    def seed(
        self,
        key: str = "k1",
        drivers: dict[str, AssignmentStatusValue] | None = None,
        status: DispatchStatus = DispatchStatus.ASSIGNED,
        customer_id: str | None = "CUST-1",
        dispatch_id: str | None = "DSP-1",
        with_records: bool = True,
    ) -> Dispatch:
        """Store a dispatch (plus one schedule record per driver) directly."""
        drivers = drivers or {}
        dispatch = Dispatch(
            key=key,
            dispatch_id=dispatch_id,
            customer_id=customer_id,
            status=status,
            driver_assignments={
                driver_id: DriverAssignment(
                    driver_id=driver_id,
                    truck_id=f"t-{driver_id}",
                    status=s,
                    assigned_at=T0,
                    assignment_date=TRIP_DAY.isoformat(),
                )
                for driver_id, s in drivers.items()
            },
            source_address="Depot A",
            destination_address="Site B",
        )
        self.dispatches.dispatches[key] = dispatch
        if with_records:
            for driver_id in drivers:
                rid = len(self.records.records) + 1
                self.records.records[rid] = AssignmentRecord(
                    id=rid,
                    dispatch_key=key,
                    driver_id=driver_id,
                    truck_id=f"t-{driver_id}",
                    assigned_date=TRIP_DAY,
                    status=AssignmentRecordStatus(status.value)
                    if status in (DispatchStatus.ASSIGNED, DispatchStatus.IN_PROGRESS, DispatchStatus.COMPLETED)
                    else AssignmentRecordStatus.ASSIGNED,
                )
        return dispatch

    def stored(self, key: str = "k1") -> Dispatch:
        return self.dispatches.dispatches[key]

    def record_statuses(self, key: str = "k1") -> list[AssignmentRecordStatus]:
        return [r.status for r in self.records.records.values() if r.dispatch_key == key]


@pytest.fixture
def world() -> World:
    return World()
