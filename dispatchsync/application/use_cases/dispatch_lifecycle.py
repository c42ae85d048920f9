"""DispatchLifecycleUseCase — a request's life before any driver is on the road.

create:  new request        → pending
accept:  pending            → accepted
reject:  pending / accepted → rejected
assign:  pending / accepted → assigned (creates driver entries + schedule records)

Once drivers exist, the status is owned by reconciliation and these actions
are refused. Each write re-checks the expected status on the locked row, so
of two admins acting on the same request at once only the first succeeds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from dispatchsync.application.ports.assignment_repo import AssignmentRepository
from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.application.use_cases.assignment_sync import AssignmentSync
from dispatchsync.application.use_cases.notification_fanout import FanoutReport, NotificationFanout
from dispatchsync.domain.entities.assignment import AssignmentRecord
from dispatchsync.domain.entities.dispatch import Dispatch, DriverAssignment
from dispatchsync.domain.errors import DispatchStateError, NotFoundError
from dispatchsync.domain.value_objects.clock import utcnow
from dispatchsync.domain.value_objects.enums import (
    AssignmentRecordStatus,
    AssignmentStatusValue,
    DispatchStatus,
)

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (DispatchStatus.PENDING, DispatchStatus.ACCEPTED)


@dataclass(frozen=True)
class AssignmentRequest:
    driver_id: str
    truck_id: str
    assignment_date: date
    notes: str = ""


@dataclass
class LifecycleResult:
    dispatch: Dispatch
    notifications: FanoutReport
    records: list[AssignmentRecord] | None = None


class DispatchLifecycleUseCase:
    def __init__(
        self,
        dispatch_repo: DispatchRepository,
        assignment_repo: AssignmentRepository,
        assignment_sync: AssignmentSync,
        fanout: NotificationFanout,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._dispatches = dispatch_repo
        self._records = assignment_repo
        self._sync = assignment_sync
        self._fanout = fanout
        self._clock = clock

    async def _load(self, dispatch_key: str) -> Dispatch:
        dispatch = await self._dispatches.get_by_key(dispatch_key)
        if dispatch is None:
            raise NotFoundError(f"Dispatch {dispatch_key} not found")
        return dispatch

    async def create(
        self,
        customer_id: str,
        source_address: str | None = None,
        destination_address: str | None = None,
        trucks_required: int | None = None,
        dispatch_id: str | None = None,
    ) -> Dispatch:
        """Register a new customer request; it starts pending with no drivers."""
        if trucks_required is not None and trucks_required < 1:
            raise DispatchStateError("A request needs at least one truck")

        at = self._clock()
        dispatch = Dispatch(
            key="",
            dispatch_id=dispatch_id,
            customer_id=customer_id,
            status=DispatchStatus.PENDING,
            current_status={"status": DispatchStatus.PENDING.value, "updatedAt": at.isoformat()},
            status_changed_at={DispatchStatus.PENDING.value: at},
            source_address=source_address,
            destination_address=destination_address,
            trucks_required=trucks_required,
        )
        dispatch = await self._dispatches.add(dispatch)
        logger.info("Dispatch %s created for customer %s", dispatch.display_id, customer_id)
        return dispatch

    async def accept(self, dispatch_key: str, admin_id: str) -> LifecycleResult:
        dispatch = await self._load(dispatch_key)
        if dispatch.status != DispatchStatus.PENDING:
            raise DispatchStateError(
                f"Only pending requests can be accepted (dispatch {dispatch_key} is {dispatch.status.value})"
            )

        at = self._clock()
        dispatch = await self._dispatches.record_admin_action(
            dispatch_key, DispatchStatus.ACCEPTED, at,
            expected=(DispatchStatus.PENDING,),
            audit={"accepted_by": admin_id, "accepted_at": at},
        )
        logger.info("Dispatch %s accepted by %s", dispatch_key, admin_id)

        notifications = await self._fanout.dispatch_accepted(dispatch, admin_id)
        return LifecycleResult(dispatch=dispatch, notifications=notifications)

    async def reject(self, dispatch_key: str, admin_id: str, reason: str) -> LifecycleResult:
        dispatch = await self._load(dispatch_key)
        if dispatch.status not in _OPEN_STATUSES or dispatch.has_assignments():
            raise DispatchStateError(
                f"Dispatch {dispatch_key} is {dispatch.status.value} and can no longer be rejected"
            )

        at = self._clock()
        dispatch = await self._dispatches.record_admin_action(
            dispatch_key, DispatchStatus.REJECTED, at,
            expected=_OPEN_STATUSES,
            audit={"rejected_by": admin_id, "rejected_at": at, "rejection_reason": reason},
        )
        logger.info("Dispatch %s rejected by %s: %s", dispatch_key, admin_id, reason)

        # Stale schedule rows from an earlier, abandoned assignment attempt.
        await self._sync.sync_dispatch(dispatch_key, DispatchStatus.REJECTED)

        notifications = await self._fanout.dispatch_rejected(dispatch, admin_id, reason)
        return LifecycleResult(dispatch=dispatch, notifications=notifications)

    async def assign(
        self,
        dispatch_key: str,
        admin_id: str,
        requests: list[AssignmentRequest],
    ) -> LifecycleResult:
        """Assign drivers and trucks, one driver entry and one schedule record each.

        Raises:
            NotFoundError: if the dispatch does not exist.
            DispatchStateError: wrong state, empty or duplicate requests, or a
                driver / truck already busy on the requested date.
        """
        dispatch = await self._load(dispatch_key)
        if dispatch.status not in _OPEN_STATUSES:
            raise DispatchStateError(
                f"Dispatch {dispatch_key} is {dispatch.status.value}; drivers can only be assigned to open requests"
            )
        if not requests:
            raise DispatchStateError("Assign at least one driver and truck")

        driver_ids = [r.driver_id for r in requests]
        if len(set(driver_ids)) != len(driver_ids):
            raise DispatchStateError("A driver can only be assigned once per dispatch")
        truck_ids = [r.truck_id for r in requests]
        if len(set(truck_ids)) != len(truck_ids):
            raise DispatchStateError("A truck can only be assigned once per dispatch")

        for request in requests:
            availability = await self._sync.check_availability(
                request.driver_id, request.truck_id, request.assignment_date
            )
            if not availability.driver_available:
                raise DispatchStateError(
                    f"Driver {request.driver_id} is already assigned on {request.assignment_date.isoformat()}"
                )
            if not availability.truck_available:
                raise DispatchStateError(
                    f"Truck {request.truck_id} is already assigned on {request.assignment_date.isoformat()}"
                )

        at = self._clock()
        assignments = {
            r.driver_id: DriverAssignment(
                driver_id=r.driver_id,
                truck_id=r.truck_id,
                status=AssignmentStatusValue.ASSIGNED,
                assigned_at=at,
                updated_at=at,
                assigned_by=admin_id,
                assignment_date=r.assignment_date.isoformat(),
                notes=r.notes,
            )
            for r in requests
        }

        dispatch = await self._dispatches.record_admin_action(
            dispatch_key, DispatchStatus.ASSIGNED, at,
            expected=_OPEN_STATUSES,
            driver_assignments=assignments,
            audit={"assigned_by": admin_id, "assigned_at": at},
        )

        records = []
        for r in requests:
            record = await self._records.add(
                AssignmentRecord(
                    id=None,
                    dispatch_key=dispatch_key,
                    driver_id=r.driver_id,
                    truck_id=r.truck_id,
                    assigned_date=r.assignment_date,
                    status=AssignmentRecordStatus.ASSIGNED,
                    notes=r.notes or None,
                    assigned_by=admin_id,
                    created_at=at,
                    updated_at=at,
                )
            )
            records.append(record)

        logger.info("Dispatch %s assigned to %d drivers by %s", dispatch_key, len(assignments), admin_id)

        notifications = await self._fanout.dispatch_assigned(dispatch, admin_id)
        return LifecycleResult(dispatch=dispatch, notifications=notifications, records=records)
