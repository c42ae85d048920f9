"""AdminForceStartUseCase — an admin starts the trip for every assigned driver at once."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.application.use_cases.assignment_sync import AssignmentSync
from dispatchsync.application.use_cases.notification_fanout import FanoutReport, NotificationFanout
from dispatchsync.domain.entities.dispatch import DriverAssignment
from dispatchsync.domain.errors import DispatchStateError, NotFoundError
from dispatchsync.domain.value_objects.clock import utcnow
from dispatchsync.domain.value_objects.enums import AssignmentStatusValue, DispatchStatus

logger = logging.getLogger(__name__)


@dataclass
class ForceStartResult:
    started_driver_count: int
    notifications: FanoutReport


class AdminForceStartUseCase:
    def __init__(
        self,
        dispatch_repo: DispatchRepository,
        assignment_sync: AssignmentSync,
        fanout: NotificationFanout,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._dispatches = dispatch_repo
        self._sync = assignment_sync
        self._fanout = fanout
        self._clock = clock

    async def execute(self, dispatch_key: str, admin_id: str) -> ForceStartResult:
        """Put every driver entry in progress regardless of its current state.

        The dispatch status is written directly as in-progress; with every
        entry in progress the aggregate rule gives the same answer.

        Raises:
            NotFoundError: if the dispatch does not exist.
            DispatchStateError: if nobody is assigned yet.
        """
        dispatch = await self._dispatches.get_by_key(dispatch_key)
        if dispatch is None:
            raise NotFoundError(f"Dispatch {dispatch_key} not found")
        if not dispatch.has_assignments():
            raise DispatchStateError(f"Dispatch {dispatch_key} has no assigned drivers to start")

        at = self._clock()

        def start(assignment: DriverAssignment) -> DriverAssignment:
            return replace(
                assignment,
                status=AssignmentStatusValue.IN_PROGRESS,
                updated_at=at,
                started_at=assignment.started_at or at,
                started_by="admin",
                admin_override=True,
            )

        # Applied to the stored entries under the row lock.
        started = await self._dispatches.record_admin_action(
            dispatch_key,
            DispatchStatus.IN_PROGRESS,
            at,
            update_drivers=start,
            audit={"admin_started_at": at, "started_by": admin_id},
        )
        count = len(started.driver_assignments)
        logger.info("Dispatch %s force-started by admin %s (%d drivers)", dispatch_key, admin_id, count)

        await self._sync.sync_dispatch(dispatch_key, DispatchStatus.IN_PROGRESS)

        notifications = await self._fanout.admin_started(started, admin_id)

        return ForceStartResult(started_driver_count=count, notifications=notifications)
