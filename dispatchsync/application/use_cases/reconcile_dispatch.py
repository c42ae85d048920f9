"""ReconcileDispatchUseCase — recompute a dispatch's aggregate status and propagate it.

This is the single state-transition function behind every trigger: the change
trigger, the periodic sweep, driver RPCs and admin buttons all end up here.
Running it again without an intervening change is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.application.use_cases.assignment_sync import AssignmentSync, SyncReport
from dispatchsync.application.use_cases.notification_fanout import FanoutReport, NotificationFanout
from dispatchsync.domain.errors import NotFoundError
from dispatchsync.domain.policies.aggregate_status import compute_aggregate_status
from dispatchsync.domain.value_objects.clock import utcnow
from dispatchsync.domain.value_objects.enums import DispatchStatus

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    dispatch_key: str
    previous_status: DispatchStatus
    status: DispatchStatus
    changed: bool
    records: SyncReport | None = None
    notifications: FanoutReport | None = None


class ReconcileDispatchUseCase:
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

    async def execute(self, dispatch_key: str) -> ReconcileResult:
        """Reconcile one dispatch.

        Pipeline:
        1. Load the dispatch (NotFoundError if missing)
        2. Apply the aggregate rule to the drivers' statuses
        3. Stop here if the status did not change (after catching up stale records)
        4. Write status + timestamps in one row update
        5. Sync schedule records (best-effort)
        6. Fan out the aggregate notifications (best-effort)
        """
        dispatch = await self._dispatches.get_by_key(dispatch_key)
        if dispatch is None:
            raise NotFoundError(f"Dispatch {dispatch_key} not found")

        current = dispatch.status
        new_status = compute_aggregate_status(dispatch.assignment_statuses(), current)

        if new_status == current:
            logger.debug("Dispatch %s already %s", dispatch_key, current.value)
            # Records may still lag behind after an earlier partial sync.
            records = None
            if dispatch.has_assignments():
                records = await self._sync.sync_dispatch(dispatch_key, current)
            return ReconcileResult(
                dispatch_key=dispatch_key,
                previous_status=current,
                status=current,
                changed=False,
                records=records,
            )

        await self._dispatches.update_status(dispatch_key, new_status, self._clock())
        dispatch.status = new_status
        logger.info("Dispatch %s status %s → %s", dispatch_key, current.value, new_status.value)

        records = await self._sync.sync_dispatch(dispatch_key, new_status)
        notifications = await self._fanout.dispatch_status_changed(dispatch, new_status)

        return ReconcileResult(
            dispatch_key=dispatch_key,
            previous_status=current,
            status=new_status,
            changed=True,
            records=records,
            notifications=notifications,
        )
