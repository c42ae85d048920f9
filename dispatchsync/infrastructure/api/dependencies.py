"""FastAPI dependency injection — wires adapters into use cases.

The build_* functions take a plain session so the scheduler jobs and the CLI
share the same wiring as the HTTP routes.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchsync.adapters.persistence.database import async_session_factory, get_session
from dispatchsync.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlDirectoryRepository,
    SqlDispatchRepository,
    SqlNotificationGateway,
)
from dispatchsync.application.use_cases.admin_force_start import AdminForceStartUseCase
from dispatchsync.application.use_cases.assignment_sync import AssignmentSync
from dispatchsync.application.use_cases.dispatch_lifecycle import DispatchLifecycleUseCase
from dispatchsync.application.use_cases.dispatch_written import DispatchWrittenUseCase
from dispatchsync.application.use_cases.notification_fanout import NotificationFanout
from dispatchsync.application.use_cases.reconcile_dispatch import (
    ReconcileDispatchUseCase,
    ReconcileResult,
)
from dispatchsync.application.use_cases.set_driver_status import SetDriverAssignmentStatusUseCase
from dispatchsync.application.use_cases.status_sweep import StatusSweepUseCase


# ─── Builders ────────────────────────────────────────────────────────


def build_fanout(session: AsyncSession) -> NotificationFanout:
    return NotificationFanout(
        gateway=SqlNotificationGateway(session),
        directory=SqlDirectoryRepository(session),
    )


def build_assignment_sync(session: AsyncSession) -> AssignmentSync:
    return AssignmentSync(
        assignment_repo=SqlAssignmentRepository(session),
        dispatch_repo=SqlDispatchRepository(session),
    )


def build_reconcile(session: AsyncSession) -> ReconcileDispatchUseCase:
    return ReconcileDispatchUseCase(
        dispatch_repo=SqlDispatchRepository(session),
        assignment_sync=build_assignment_sync(session),
        fanout=build_fanout(session),
    )


def build_set_driver_status(session: AsyncSession) -> SetDriverAssignmentStatusUseCase:
    return SetDriverAssignmentStatusUseCase(
        dispatch_repo=SqlDispatchRepository(session),
        reconcile=build_reconcile(session),
        fanout=build_fanout(session),
    )


def build_admin_force_start(session: AsyncSession) -> AdminForceStartUseCase:
    return AdminForceStartUseCase(
        dispatch_repo=SqlDispatchRepository(session),
        assignment_sync=build_assignment_sync(session),
        fanout=build_fanout(session),
    )


def build_lifecycle(session: AsyncSession) -> DispatchLifecycleUseCase:
    return DispatchLifecycleUseCase(
        dispatch_repo=SqlDispatchRepository(session),
        assignment_repo=SqlAssignmentRepository(session),
        assignment_sync=build_assignment_sync(session),
        fanout=build_fanout(session),
    )


async def reconcile_in_own_session(dispatch_key: str) -> ReconcileResult:
    """Reconcile one dispatch in a fresh session, committed on success."""
    async with async_session_factory() as session:
        result = await build_reconcile(session).execute(dispatch_key)
        await session.commit()
        return result


def build_status_sweep(session: AsyncSession) -> StatusSweepUseCase:
    return StatusSweepUseCase(
        dispatch_repo=SqlDispatchRepository(session),
        reconcile_one=reconcile_in_own_session,
    )


# ─── FastAPI dependencies ────────────────────────────────────────────


def get_dispatch_repo(session: AsyncSession = Depends(get_session)) -> SqlDispatchRepository:
    return SqlDispatchRepository(session)


def get_notification_gateway(
    session: AsyncSession = Depends(get_session),
) -> SqlNotificationGateway:
    return SqlNotificationGateway(session)


def get_assignment_sync(session: AsyncSession = Depends(get_session)) -> AssignmentSync:
    return build_assignment_sync(session)


def get_reconcile_uc(session: AsyncSession = Depends(get_session)) -> ReconcileDispatchUseCase:
    return build_reconcile(session)


def get_set_driver_status_uc(
    session: AsyncSession = Depends(get_session),
) -> SetDriverAssignmentStatusUseCase:
    return build_set_driver_status(session)


def get_admin_force_start_uc(
    session: AsyncSession = Depends(get_session),
) -> AdminForceStartUseCase:
    return build_admin_force_start(session)


def get_lifecycle_uc(session: AsyncSession = Depends(get_session)) -> DispatchLifecycleUseCase:
    return build_lifecycle(session)


def get_dispatch_written_uc(
    session: AsyncSession = Depends(get_session),
) -> DispatchWrittenUseCase:
    return DispatchWrittenUseCase(reconcile=build_reconcile(session))


def get_status_sweep_uc(session: AsyncSession = Depends(get_session)) -> StatusSweepUseCase:
    return build_status_sweep(session)
