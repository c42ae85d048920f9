"""SetDriverAssignmentStatusUseCase — move one driver's part of a dispatch forward."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable

from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.application.use_cases.notification_fanout import FanoutReport, NotificationFanout
from dispatchsync.application.use_cases.reconcile_dispatch import (
    ReconcileDispatchUseCase,
    ReconcileResult,
)
from dispatchsync.domain.entities.actor import Actor
from dispatchsync.domain.entities.dispatch import DriverAssignment
from dispatchsync.domain.errors import DispatchStateError, NotFoundError
from dispatchsync.domain.value_objects.clock import utcnow
from dispatchsync.domain.value_objects.enums import AssignmentStatusValue, DispatchStatus

logger = logging.getLogger(__name__)


@dataclass
class DriverTransitionResult:
    assignment: DriverAssignment
    reconcile: ReconcileResult
    notifications: FanoutReport


@dataclass
class TripCompletionResult:
    dispatch_status: DispatchStatus
    transitions: list[DriverTransitionResult] = field(default_factory=list)


class SetDriverAssignmentStatusUseCase:
    def __init__(
        self,
        dispatch_repo: DispatchRepository,
        reconcile: ReconcileDispatchUseCase,
        fanout: NotificationFanout,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._dispatches = dispatch_repo
        self._reconcile = reconcile
        self._fanout = fanout
        self._clock = clock

    async def execute(
        self,
        dispatch_key: str,
        driver_id: str,
        new_status: AssignmentStatusValue,
        actor: Actor,
    ) -> DriverTransitionResult:
        """Set *driver_id*'s status, reconcile the dispatch, notify everyone involved.

        started_at / completed_at are stamped only the first time, so repeating
        a call with the same status leaves them untouched. The entry is moved
        on the locked row, never from an earlier read.

        Raises:
            NotFoundError: if the dispatch or the driver's entry does not exist.
        """
        new_status = AssignmentStatusValue(new_status)
        at = self._clock()
        before, updated = await self._dispatches.transition_driver(dispatch_key, driver_id, new_status, at)
        logger.info(
            "Dispatch %s: driver %s %s → %s (%s %s)",
            dispatch_key, driver_id, before.status.value, new_status.value,
            actor.kind.value, actor.actor_id,
        )

        reconcile = await self._reconcile.execute(dispatch_key)

        dispatch = await self._dispatches.get_by_key(dispatch_key)
        if dispatch is None:
            raise NotFoundError(f"Dispatch {dispatch_key} not found")
        snapshot = replace(
            dispatch,
            driver_assignments={**dispatch.driver_assignments, driver_id: updated},
            status=reconcile.status,
        )
        notifications = await self._fanout.driver_status_changed(snapshot, driver_id, new_status, actor)

        return DriverTransitionResult(
            assignment=updated,
            reconcile=reconcile,
            notifications=notifications,
        )

    async def complete_all(self, dispatch_key: str, actor: Actor) -> TripCompletionResult:
        """Admin "complete trip": one completion per driver not yet completed.

        Drivers who already finished are left alone. When nobody is left to
        complete, the dispatch is reconciled once so the reported status is
        still the stored aggregate.

        Raises:
            NotFoundError: if the dispatch does not exist.
            DispatchStateError: if nobody is assigned.
        """
        dispatch = await self._dispatches.get_by_key(dispatch_key)
        if dispatch is None:
            raise NotFoundError(f"Dispatch {dispatch_key} not found")
        if not dispatch.has_assignments():
            raise DispatchStateError(f"Dispatch {dispatch_key} has no assigned drivers")

        pending = [
            driver_id
            for driver_id, assignment in dispatch.driver_assignments.items()
            if assignment.status != AssignmentStatusValue.COMPLETED
        ]
        transitions = []
        for driver_id in pending:
            transitions.append(
                await self.execute(dispatch_key, driver_id, AssignmentStatusValue.COMPLETED, actor)
            )

        if transitions:
            status = transitions[-1].reconcile.status
        else:
            status = (await self._reconcile.execute(dispatch_key)).status
        return TripCompletionResult(dispatch_status=status, transitions=transitions)
