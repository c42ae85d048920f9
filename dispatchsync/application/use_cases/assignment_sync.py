"""AssignmentSync — keep schedule records in line with their dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable

from dispatchsync.application.ports.assignment_repo import AssignmentRepository
from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.domain.entities.assignment import AssignmentRecord
from dispatchsync.domain.policies.assignment_activity import (
    RecordAction,
    assess_record,
    record_status_for,
)
from dispatchsync.domain.value_objects.clock import utcnow
from dispatchsync.domain.value_objects.enums import DispatchStatus

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    updated: int = 0
    unchanged: int = 0
    failed: int = 0


@dataclass
class Availability:
    driver_conflicts: list[AssignmentRecord] = field(default_factory=list)
    truck_conflicts: list[AssignmentRecord] = field(default_factory=list)

    @property
    def driver_available(self) -> bool:
        return not self.driver_conflicts

    @property
    def truck_available(self) -> bool:
        return not self.truck_conflicts

    @property
    def available(self) -> bool:
        return self.driver_available and self.truck_available


class AssignmentSync:
    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        dispatch_repo: DispatchRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._records = assignment_repo
        self._dispatches = dispatch_repo
        self._clock = clock

    async def sync_dispatch(self, dispatch_key: str, status: DispatchStatus) -> SyncReport:
        """Force every record of *dispatch_key* to the dispatch's status.

        Best-effort: each record is written on its own and a failure is logged,
        not raised. A later reconciliation pass retries the stragglers.
        """
        report = SyncReport()
        target = record_status_for(status)
        try:
            records = await self._records.list_by_dispatch(dispatch_key)
        except Exception:
            logger.exception("Could not list schedule records for dispatch %s", dispatch_key)
            report.failed += 1
            return report

        if not records:
            logger.debug("No schedule records for dispatch %s", dispatch_key)
            return report

        at = self._clock()
        for record in records:
            if record.status == target:
                report.unchanged += 1
                continue
            try:
                await self._records.update_status(record.id, target, at)
            except Exception:
                logger.exception("Schedule record %s of dispatch %s not updated", record.id, dispatch_key)
                report.failed += 1
                continue
            record.status = target
            report.updated += 1

        if report.updated or report.failed:
            logger.info(
                "Dispatch %s: %d schedule records set to %s (%d already, %d failed)",
                dispatch_key, report.updated, target.value, report.unchanged, report.failed,
            )
        return report

    async def is_active(self, record: AssignmentRecord) -> bool:
        """True if the record still blocks its driver and truck.

        Side effects: orphans are deleted and records of finished dispatches
        are closed on the way.
        """
        status = await self._dispatches.get_status(record.dispatch_key)
        decision = assess_record(record, status)

        if decision.action == RecordAction.PURGE:
            await self._records.delete(record.id)
            logger.info("Purged orphaned schedule record %s (dispatch %s)", record.id, record.dispatch_key)
        elif decision.action == RecordAction.CLOSE:
            await self._records.update_status(record.id, decision.close_as, self._clock())
            record.status = decision.close_as

        return decision.active

    async def check_availability(self, driver_id: str, truck_id: str, day: date) -> Availability:
        availability = Availability()
        for record in await self._records.list_for_driver_on(driver_id, day):
            if await self.is_active(record):
                availability.driver_conflicts.append(record)
        for record in await self._records.list_for_truck_on(truck_id, day):
            if await self.is_active(record):
                availability.truck_conflicts.append(record)
        return availability

    async def purge_orphans(self) -> int:
        """Delete schedule records whose dispatch no longer exists."""
        purged = 0
        for record in await self._records.get_all():
            if await self._dispatches.get_status(record.dispatch_key) is not None:
                continue
            try:
                await self._records.delete(record.id)
            except Exception:
                logger.exception("Could not purge schedule record %s", record.id)
                continue
            purged += 1

        if purged:
            logger.info("Purged %d orphaned schedule records", purged)
        return purged
