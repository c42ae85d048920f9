"""Schedule endpoints — availability checks and manual sync runs."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchsync.adapters.persistence.database import get_session
from dispatchsync.application.use_cases.assignment_sync import AssignmentSync
from dispatchsync.application.use_cases.status_sweep import StatusSweepUseCase
from dispatchsync.domain.errors import DispatchSyncError
from dispatchsync.infrastructure.api.dependencies import get_assignment_sync, get_status_sweep_uc
from dispatchsync.infrastructure.api.errors import http_error

router = APIRouter(tags=["schedule"])


@router.get("/schedule/availability")
async def check_availability(
    driver_id: str = Query(...),
    truck_id: str = Query(...),
    day: date = Query(..., alias="date"),
    sync: AssignmentSync = Depends(get_assignment_sync),
    session: AsyncSession = Depends(get_session),
):
    """Is the driver / truck free on this date? Stale records are cleaned up on the way."""
    try:
        availability = await sync.check_availability(driver_id, truck_id, day)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e

    return {
        "date": day.isoformat(),
        "available": availability.available,
        "driver_available": availability.driver_available,
        "truck_available": availability.truck_available,
        "driver_conflicts": [r.dispatch_key for r in availability.driver_conflicts],
        "truck_conflicts": [r.dispatch_key for r in availability.truck_conflicts],
    }


@router.post("/sync/sweep")
async def run_sweep(
    purge_orphans: bool = False,
    sweep: StatusSweepUseCase = Depends(get_status_sweep_uc),
    sync: AssignmentSync = Depends(get_assignment_sync),
    session: AsyncSession = Depends(get_session),
):
    """Reconcile every active dispatch now (the periodic sweep, on demand)."""
    try:
        report = await sweep.execute()
        purged = await sync.purge_orphans() if purge_orphans else 0
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e

    return {
        "status": "ok",
        "scanned": report.scanned,
        "reconciled": report.reconciled,
        "skipped": report.skipped,
        "changed": report.changed,
        "failed": report.failed,
        "orphans_purged": purged,
    }
