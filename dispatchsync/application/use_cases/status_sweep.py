"""StatusSweepUseCase — periodic safety net that re-reconciles every active dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from dispatchsync.application.ports.dispatch_repo import DispatchRepository
from dispatchsync.application.use_cases.reconcile_dispatch import ReconcileResult
from dispatchsync.domain.value_objects.enums import ACTIVE_DISPATCH_STATUSES

logger = logging.getLogger(__name__)

ReconcileOne = Callable[[str], Awaitable[ReconcileResult]]


@dataclass
class SweepReport:
    scanned: int = 0
    skipped: int = 0
    reconciled: int = 0
    changed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class StatusSweepUseCase:
    """Reconcile every assigned / in-progress dispatch that has drivers.

    *reconcile_one* runs one dispatch's reconciliation; the caller decides
    its unit of work (the scheduler job gives each dispatch its own session).
    """

    def __init__(self, dispatch_repo: DispatchRepository, reconcile_one: ReconcileOne):
        self._dispatches = dispatch_repo
        self._reconcile_one = reconcile_one

    async def execute(self) -> SweepReport:
        report = SweepReport()
        dispatches = await self._dispatches.list_by_status(set(ACTIVE_DISPATCH_STATUSES))
        report.scanned = len(dispatches)

        for dispatch in dispatches:
            if not dispatch.has_assignments():
                report.skipped += 1
                continue
            try:
                result = await self._reconcile_one(dispatch.key)
            except Exception:
                logger.exception("Sweep: reconciliation of dispatch %s failed", dispatch.key)
                report.failed.append(dispatch.key)
                continue
            report.reconciled += 1
            if result.changed:
                report.changed.append(dispatch.key)

        logger.info(
            "Sweep complete: %d scanned, %d reconciled, %d changed, %d failed",
            report.scanned, report.reconciled, len(report.changed), len(report.failed),
        )
        return report
