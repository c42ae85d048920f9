"""SQLAlchemy repository implementations."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Collection
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchsync.adapters.persistence.models import (
    AssignmentModel,
    CustomerModel,
    DispatchModel,
    DriverModel,
    NotificationModel,
)
from dispatchsync.application.ports.assignment_repo import AssignmentRepository
from dispatchsync.application.ports.directory_repo import DirectoryRepository
from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.application.ports.notification_gateway import NotificationGateway
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
    NotificationPriority,
    NotificationSink,
)

# Dispatch columns an admin action may stamp alongside the status.
AUDIT_COLUMNS = frozenset(
    {
        "accepted_by",
        "accepted_at",
        "rejected_by",
        "rejected_at",
        "rejection_reason",
        "assigned_by",
        "assigned_at",
        "started_by",
        "admin_started_at",
    }
)


@contextmanager
def _store_errors(action: str):
    try:
        yield
    except SQLAlchemyError as exc:
        raise TransientStoreError(f"{action} failed: {exc}") from exc


# ─── Mappers ─────────────────────────────────────────────────────────


def _dt_to_json(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _dt_from_json(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def driver_assignment_to_json(a: DriverAssignment) -> dict:
    return {
        "driver_id": a.driver_id,
        "truck_id": a.truck_id,
        "status": a.status.value,
        "assigned_at": _dt_to_json(a.assigned_at),
        "started_at": _dt_to_json(a.started_at),
        "completed_at": _dt_to_json(a.completed_at),
        "updated_at": _dt_to_json(a.updated_at),
        "assigned_by": a.assigned_by,
        "assignment_date": a.assignment_date,
        "notes": a.notes,
        "started_by": a.started_by,
        "admin_override": a.admin_override,
    }


def driver_assignment_from_json(driver_id: str, data: dict) -> DriverAssignment:
    return DriverAssignment(
        driver_id=driver_id,
        truck_id=data.get("truck_id"),
        status=AssignmentStatusValue(data.get("status", AssignmentStatusValue.ASSIGNED.value)),
        assigned_at=_dt_from_json(data.get("assigned_at")),
        started_at=_dt_from_json(data.get("started_at")),
        completed_at=_dt_from_json(data.get("completed_at")),
        updated_at=_dt_from_json(data.get("updated_at")),
        assigned_by=data.get("assigned_by"),
        assignment_date=data.get("assignment_date"),
        notes=data.get("notes") or "",
        started_by=data.get("started_by"),
        admin_override=bool(data.get("admin_override", False)),
    )


def _dispatch_to_domain(m: DispatchModel) -> Dispatch:
    return Dispatch(
        key=m.key,
        dispatch_id=m.dispatch_id,
        customer_id=m.customer_id,
        status=DispatchStatus(m.status),
        driver_assignments={
            driver_id: driver_assignment_from_json(driver_id, data)
            for driver_id, data in (m.driver_assignments or {}).items()
        },
        current_status=m.current_status,
        status_changed_at={
            status: _dt_from_json(at) for status, at in (m.status_changed_at or {}).items()
        },
        source_address=m.source_address,
        destination_address=m.destination_address,
        trucks_required=m.trucks_required,
        created_at=m.created_at,
        updated_at=m.updated_at,
        accepted_by=m.accepted_by,
        accepted_at=m.accepted_at,
        rejected_by=m.rejected_by,
        rejected_at=m.rejected_at,
        rejection_reason=m.rejection_reason,
        assigned_by=m.assigned_by,
        assigned_at=m.assigned_at,
        started_by=m.started_by,
        admin_started_at=m.admin_started_at,
    )


def _record_to_domain(m: AssignmentModel) -> AssignmentRecord:
    return AssignmentRecord(
        id=m.id,
        dispatch_key=m.dispatch_key,
        driver_id=m.driver_id,
        truck_id=m.truck_id,
        assigned_date=m.assigned_date,
        status=AssignmentRecordStatus(m.status),
        notes=m.notes,
        assigned_by=m.assigned_by,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _notification_to_domain(m: NotificationModel) -> Notification:
    return Notification(
        id=m.id,
        sink=NotificationSink(m.sink),
        recipient_id=m.recipient_id,
        type=m.type,
        title=m.title,
        message=m.message,
        dispatch_key=m.dispatch_key,
        driver_id=m.driver_id,
        priority=NotificationPriority(m.priority),
        read=m.read,
        action_required=m.action_required,
        sender_id=m.sender_id,
        created_at=m.created_at,
    )


def _apply_status(m: DispatchModel, status: DispatchStatus, at: datetime) -> None:
    """Status bookkeeping shared by every status write (JSONB columns are reassigned, not mutated)."""
    m.status = status.value
    m.current_status = {"status": status.value, "updatedAt": at.isoformat()}
    m.status_changed_at = {**(m.status_changed_at or {}), status.value: at.isoformat()}
    m.updated_at = at


# ─── Repositories ────────────────────────────────────────────────────


class SqlDispatchRepository(DispatchRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def _lock(self, key: str) -> DispatchModel:
        result = await self._s.execute(
            select(DispatchModel)
            .where(DispatchModel.key == key)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        m = result.scalar_one_or_none()
        if m is None:
            raise NotFoundError(f"Dispatch {key} not found")
        return m

    async def add(self, dispatch: Dispatch) -> Dispatch:
        m = DispatchModel(
            key=dispatch.key or uuid.uuid4().hex,
            dispatch_id=dispatch.dispatch_id,
            customer_id=dispatch.customer_id,
            status=dispatch.status.value,
            driver_assignments={
                driver_id: driver_assignment_to_json(a)
                for driver_id, a in dispatch.driver_assignments.items()
            },
            current_status=dispatch.current_status,
            status_changed_at={s: _dt_to_json(at) for s, at in dispatch.status_changed_at.items()},
            source_address=dispatch.source_address,
            destination_address=dispatch.destination_address,
            trucks_required=dispatch.trucks_required,
        )
        with _store_errors("Adding dispatch"):
            self._s.add(m)
            await self._s.flush()
            await self._s.refresh(m)
        dispatch.key = m.key
        dispatch.created_at = m.created_at
        dispatch.updated_at = m.updated_at
        return dispatch

    async def get_by_key(self, key: str) -> Dispatch | None:
        with _store_errors(f"Loading dispatch {key}"):
            m = await self._s.get(DispatchModel, key, populate_existing=True)
        return _dispatch_to_domain(m) if m else None

    async def get_status(self, key: str) -> DispatchStatus | None:
        with _store_errors(f"Loading status of dispatch {key}"):
            result = await self._s.execute(
                select(DispatchModel.status).where(DispatchModel.key == key)
            )
            value = result.scalar_one_or_none()
        return DispatchStatus(value) if value else None

    async def list_by_status(self, statuses: set[DispatchStatus]) -> list[Dispatch]:
        with _store_errors("Listing dispatches"):
            result = await self._s.execute(
                select(DispatchModel)
                .where(DispatchModel.status.in_([s.value for s in statuses]))
                .order_by(DispatchModel.created_at)
            )
            return [_dispatch_to_domain(m) for m in result.scalars()]

    async def update_status(self, key: str, status: DispatchStatus, at: datetime) -> None:
        with _store_errors(f"Writing status of dispatch {key}"):
            m = await self._lock(key)
            _apply_status(m, status, at)
            await self._s.flush()

    async def transition_driver(
        self, key: str, driver_id: str, status: AssignmentStatusValue, at: datetime
    ) -> tuple[DriverAssignment, DriverAssignment]:
        with _store_errors(f"Writing driver {driver_id} of dispatch {key}"):
            m = await self._lock(key)
            data = (m.driver_assignments or {}).get(driver_id)
            if data is None:
                raise NotFoundError(f"Driver {driver_id} is not assigned to dispatch {key}")
            before = driver_assignment_from_json(driver_id, data)
            after = before.with_status(status, at)
            m.driver_assignments = {
                **m.driver_assignments,
                driver_id: driver_assignment_to_json(after),
            }
            m.updated_at = at
            await self._s.flush()
        return before, after

    async def record_admin_action(
        self,
        key: str,
        status: DispatchStatus,
        at: datetime,
        *,
        expected: Collection[DispatchStatus] | None = None,
        driver_assignments: dict[str, DriverAssignment] | None = None,
        update_drivers: Callable[[DriverAssignment], DriverAssignment] | None = None,
        audit: dict | None = None,
    ) -> Dispatch:
        unknown = set(audit or {}) - AUDIT_COLUMNS
        if unknown:
            raise ValueError(f"Unknown audit columns: {sorted(unknown)}")

        with _store_errors(f"Recording admin action on dispatch {key}"):
            m = await self._lock(key)
            if expected is not None and DispatchStatus(m.status) not in expected:
                raise DispatchStateError(
                    f"Dispatch {key} is {m.status}; cannot move it to {status.value}"
                )
            _apply_status(m, status, at)
            if driver_assignments is not None:
                m.driver_assignments = {
                    driver_id: driver_assignment_to_json(a)
                    for driver_id, a in driver_assignments.items()
                }
            elif update_drivers is not None:
                m.driver_assignments = {
                    driver_id: driver_assignment_to_json(
                        update_drivers(driver_assignment_from_json(driver_id, data))
                    )
                    for driver_id, data in (m.driver_assignments or {}).items()
                }
            for column, value in (audit or {}).items():
                setattr(m, column, value)
            await self._s.flush()
        return _dispatch_to_domain(m)


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, record: AssignmentRecord) -> AssignmentRecord:
        m = AssignmentModel(
            dispatch_key=record.dispatch_key,
            driver_id=record.driver_id,
            truck_id=record.truck_id,
            assigned_date=record.assigned_date,
            status=record.status.value,
            notes=record.notes,
            assigned_by=record.assigned_by,
        )
        if record.created_at:
            m.created_at = record.created_at
            m.updated_at = record.updated_at or record.created_at
        with _store_errors("Adding schedule record"):
            self._s.add(m)
            await self._s.flush()
        record.id = m.id
        return record

    async def list_by_dispatch(self, dispatch_key: str) -> list[AssignmentRecord]:
        with _store_errors(f"Listing schedule records of dispatch {dispatch_key}"):
            result = await self._s.execute(
                select(AssignmentModel)
                .where(AssignmentModel.dispatch_key == dispatch_key)
                .order_by(AssignmentModel.id)
            )
            return [_record_to_domain(m) for m in result.scalars()]

    async def list_for_driver_on(self, driver_id: str, day: date) -> list[AssignmentRecord]:
        with _store_errors(f"Listing schedule of driver {driver_id}"):
            result = await self._s.execute(
                select(AssignmentModel).where(
                    AssignmentModel.driver_id == driver_id,
                    AssignmentModel.assigned_date == day,
                )
            )
            return [_record_to_domain(m) for m in result.scalars()]

    async def list_for_truck_on(self, truck_id: str, day: date) -> list[AssignmentRecord]:
        with _store_errors(f"Listing schedule of truck {truck_id}"):
            result = await self._s.execute(
                select(AssignmentModel).where(
                    AssignmentModel.truck_id == truck_id,
                    AssignmentModel.assigned_date == day,
                )
            )
            return [_record_to_domain(m) for m in result.scalars()]

    async def get_all(self) -> list[AssignmentRecord]:
        with _store_errors("Listing schedule records"):
            result = await self._s.execute(select(AssignmentModel).order_by(AssignmentModel.id))
            return [_record_to_domain(m) for m in result.scalars()]

    async def update_status(
        self, record_id: int, status: AssignmentRecordStatus, at: datetime
    ) -> None:
        with _store_errors(f"Updating schedule record {record_id}"):
            async with self._s.begin_nested():
                await self._s.execute(
                    update(AssignmentModel)
                    .where(AssignmentModel.id == record_id)
                    .values(status=status.value, updated_at=at)
                )

    async def delete(self, record_id: int) -> None:
        with _store_errors(f"Deleting schedule record {record_id}"):
            async with self._s.begin_nested():
                await self._s.execute(delete(AssignmentModel).where(AssignmentModel.id == record_id))


class SqlDirectoryRepository(DirectoryRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def find_customer_key(self, customer_ref: str) -> str | None:
        with _store_errors(f"Resolving customer {customer_ref}"):
            m = await self._s.get(CustomerModel, customer_ref)
            if m is not None:
                return m.key
            result = await self._s.execute(
                select(CustomerModel.key).where(CustomerModel.customer_id == customer_ref).limit(1)
            )
            return result.scalar_one_or_none()

    async def get_driver_name(self, driver_id: str) -> str | None:
        with _store_errors(f"Loading driver {driver_id}"):
            m = await self._s.get(DriverModel, driver_id)
            if m is None:
                result = await self._s.execute(
                    select(DriverModel).where(DriverModel.driver_id == driver_id).limit(1)
                )
                m = result.scalar_one_or_none()
        return m.name if m else None


class SqlNotificationGateway(NotificationGateway):
    """Notifications live in one table; each delivery is isolated in a savepoint."""

    def __init__(self, session: AsyncSession):
        self._s = session

    async def deliver(self, notification: Notification) -> Notification:
        m = NotificationModel(
            sink=notification.sink.value,
            recipient_id=notification.recipient_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            dispatch_key=notification.dispatch_key,
            driver_id=notification.driver_id,
            priority=notification.priority.value,
            read=notification.read,
            action_required=notification.action_required,
            sender_id=notification.sender_id,
        )
        if notification.created_at:
            m.created_at = notification.created_at
        try:
            async with self._s.begin_nested():
                self._s.add(m)
                await self._s.flush()
        except SQLAlchemyError as exc:
            raise NotificationDeliveryError(
                notification.sink.value, notification.recipient_id, str(exc)
            ) from exc
        notification.id = m.id
        return notification

    async def list_for(
        self, sink: NotificationSink, recipient_id: str | None = None, limit: int = 100
    ) -> list[Notification]:
        stmt = select(NotificationModel).where(NotificationModel.sink == sink.value)
        if recipient_id is not None:
            stmt = stmt.where(NotificationModel.recipient_id == recipient_id)
        stmt = stmt.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc()).limit(limit)
        with _store_errors(f"Listing {sink.value} notifications"):
            result = await self._s.execute(stmt)
            return [_notification_to_domain(m) for m in result.scalars()]

    async def mark_read(self, notification_id: int) -> bool:
        with _store_errors(f"Marking notification {notification_id} read"):
            result = await self._s.execute(
                update(NotificationModel)
                .where(NotificationModel.id == notification_id)
                .values(read=True)
            )
        return result.rowcount > 0
