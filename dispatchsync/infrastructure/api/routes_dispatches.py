"""Dispatch endpoints — driver status RPC, admin actions, detail view."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchsync.adapters.persistence.database import get_session
from dispatchsync.adapters.persistence.repositories import SqlDispatchRepository
from dispatchsync.application.use_cases.admin_force_start import AdminForceStartUseCase
from dispatchsync.application.use_cases.dispatch_lifecycle import (
    AssignmentRequest,
    DispatchLifecycleUseCase,
    LifecycleResult,
)
from dispatchsync.application.use_cases.notification_fanout import FanoutReport
from dispatchsync.application.use_cases.reconcile_dispatch import (
    ReconcileDispatchUseCase,
    ReconcileResult,
)
from dispatchsync.application.use_cases.set_driver_status import (
    DriverTransitionResult,
    SetDriverAssignmentStatusUseCase,
)
from dispatchsync.domain.entities.actor import Actor
from dispatchsync.domain.entities.dispatch import Dispatch, DriverAssignment
from dispatchsync.domain.errors import DispatchSyncError
from dispatchsync.domain.value_objects.enums import ActorKind, AssignmentStatusValue
from dispatchsync.infrastructure.api.dependencies import (
    get_admin_force_start_uc,
    get_dispatch_repo,
    get_lifecycle_uc,
    get_reconcile_uc,
    get_set_driver_status_uc,
)
from dispatchsync.infrastructure.api.errors import http_error


router = APIRouter(prefix="/dispatches", tags=["dispatches"])


# ── Request schemas ─────────────────────────────────────────────────

class CreateDispatchRequest(BaseModel):
    customer_id: str
    dispatch_id: str | None = None
    source_address: str | None = None
    destination_address: str | None = None
    trucks_required: int | None = Field(default=None, ge=1)


class DriverStatusRequest(BaseModel):
    new_status: AssignmentStatusValue
    actor_kind: ActorKind = ActorKind.DRIVER
    actor_id: str
    actor_name: str | None = None


class AdminActionRequest(BaseModel):
    admin_id: str
    admin_name: str | None = None


class RejectRequest(AdminActionRequest):
    reason: str = Field(min_length=1)


class AssignmentItem(BaseModel):
    driver_id: str
    truck_id: str
    assignment_date: date
    notes: str = ""


class AssignRequest(AdminActionRequest):
    assignments: list[AssignmentItem] = Field(min_length=1)


# ── Endpoints ───────────────────────────────────────────────────────


@router.post("", status_code=201)
async def create_dispatch(
    body: CreateDispatchRequest,
    lifecycle: DispatchLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    """Register a new transport request (pending)."""
    try:
        dispatch = await lifecycle.create(
            customer_id=body.customer_id,
            source_address=body.source_address,
            destination_address=body.destination_address,
            trucks_required=body.trucks_required,
            dispatch_id=body.dispatch_id,
        )
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    return _serialize_dispatch(dispatch)


@router.get("/{dispatch_key}")
async def get_dispatch(
    dispatch_key: str,
    repo: SqlDispatchRepository = Depends(get_dispatch_repo),
):
    try:
        dispatch = await repo.get_by_key(dispatch_key)
    except DispatchSyncError as e:
        raise http_error(e) from e
    if dispatch is None:
        raise HTTPException(status_code=404, detail="Dispatch not found")
    return _serialize_dispatch(dispatch)


@router.post("/{dispatch_key}/drivers/{driver_id}/status")
async def set_driver_status(
    dispatch_key: str,
    driver_id: str,
    body: DriverStatusRequest,
    uc: SetDriverAssignmentStatusUseCase = Depends(get_set_driver_status_uc),
    session: AsyncSession = Depends(get_session),
):
    """A driver (or an admin on their behalf) moves one assignment forward."""
    if body.actor_kind == ActorKind.DRIVER and body.actor_id != driver_id:
        raise HTTPException(status_code=403, detail="Drivers can only update their own assignment")

    actor = Actor(kind=body.actor_kind, actor_id=body.actor_id, name=body.actor_name)
    try:
        result = await uc.execute(dispatch_key, driver_id, body.new_status, actor)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e

    return {"status": "ok", **_serialize_transition(result)}


@router.post("/{dispatch_key}/reconcile")
async def reconcile_dispatch(
    dispatch_key: str,
    uc: ReconcileDispatchUseCase = Depends(get_reconcile_uc),
    session: AsyncSession = Depends(get_session),
):
    """Recompute the dispatch status from its drivers' statuses."""
    try:
        result = await uc.execute(dispatch_key)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    return {"status": "ok", **_serialize_reconcile(result)}


@router.post("/{dispatch_key}/start")
async def force_start(
    dispatch_key: str,
    body: AdminActionRequest,
    uc: AdminForceStartUseCase = Depends(get_admin_force_start_uc),
    session: AsyncSession = Depends(get_session),
):
    """Admin override: start the trip for every assigned driver."""
    try:
        result = await uc.execute(dispatch_key, body.admin_id)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    return {
        "status": "ok",
        "dispatch_key": dispatch_key,
        "started_driver_count": result.started_driver_count,
        "notifications": _serialize_fanout(result.notifications),
    }


@router.post("/{dispatch_key}/complete")
async def complete_trip(
    dispatch_key: str,
    body: AdminActionRequest,
    uc: SetDriverAssignmentStatusUseCase = Depends(get_set_driver_status_uc),
    session: AsyncSession = Depends(get_session),
):
    """Admin completes the trip: every driver not yet done is completed one by one."""
    try:
        result = await uc.complete_all(dispatch_key, Actor.admin(body.admin_id, body.admin_name))
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    return {
        "status": "ok",
        "dispatch_key": dispatch_key,
        "dispatch_status": result.dispatch_status.value,
        "drivers": [_serialize_transition(r) for r in result.transitions],
    }


@router.post("/{dispatch_key}/accept")
async def accept_dispatch(
    dispatch_key: str,
    body: AdminActionRequest,
    lifecycle: DispatchLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    try:
        result = await lifecycle.accept(dispatch_key, body.admin_id)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    return _serialize_lifecycle(result)


@router.post("/{dispatch_key}/reject")
async def reject_dispatch(
    dispatch_key: str,
    body: RejectRequest,
    lifecycle: DispatchLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    try:
        result = await lifecycle.reject(dispatch_key, body.admin_id, body.reason)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    return _serialize_lifecycle(result)


@router.post("/{dispatch_key}/assign")
async def assign_dispatch(
    dispatch_key: str,
    body: AssignRequest,
    lifecycle: DispatchLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    """Assign drivers and trucks to an open request."""
    requests = [
        AssignmentRequest(
            driver_id=item.driver_id,
            truck_id=item.truck_id,
            assignment_date=item.assignment_date,
            notes=item.notes,
        )
        for item in body.assignments
    ]
    try:
        result = await lifecycle.assign(dispatch_key, body.admin_id, requests)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    return _serialize_lifecycle(result)


# ── Serializers ─────────────────────────────────────────────────────


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _serialize_assignment(a: DriverAssignment) -> dict:
    return {
        "driver_id": a.driver_id,
        "truck_id": a.truck_id,
        "status": a.status.value,
        "assigned_at": _iso(a.assigned_at),
        "started_at": _iso(a.started_at),
        "completed_at": _iso(a.completed_at),
        "updated_at": _iso(a.updated_at),
        "assigned_by": a.assigned_by,
        "assignment_date": a.assignment_date,
        "notes": a.notes,
        "started_by": a.started_by,
        "admin_override": a.admin_override,
    }


def _serialize_dispatch(d: Dispatch) -> dict:
    return {
        "key": d.key,
        "dispatch_id": d.dispatch_id,
        "customer_id": d.customer_id,
        "status": d.status.value,
        "current_status": d.current_status,
        "status_changed_at": {s: _iso(at) for s, at in d.status_changed_at.items()},
        "source_address": d.source_address,
        "destination_address": d.destination_address,
        "trucks_required": d.trucks_required,
        "driver_assignments": {
            driver_id: _serialize_assignment(a) for driver_id, a in d.driver_assignments.items()
        },
        "created_at": _iso(d.created_at),
        "updated_at": _iso(d.updated_at),
        "accepted_by": d.accepted_by,
        "rejected_by": d.rejected_by,
        "rejection_reason": d.rejection_reason,
        "assigned_by": d.assigned_by,
        "started_by": d.started_by,
        "admin_started_at": _iso(d.admin_started_at),
    }


def _serialize_fanout(r: FanoutReport | None) -> dict | None:
    if r is None:
        return None
    return {"delivered": r.delivered, "failed": r.failed, "skipped": r.skipped}


def _serialize_reconcile(r: ReconcileResult) -> dict:
    return {
        "dispatch_key": r.dispatch_key,
        "previous_status": r.previous_status.value,
        "dispatch_status": r.status.value,
        "changed": r.changed,
        "records_updated": r.records.updated if r.records else 0,
        "notifications": _serialize_fanout(r.notifications),
    }


def _serialize_transition(r: DriverTransitionResult) -> dict:
    return {
        "assignment": _serialize_assignment(r.assignment),
        "reconcile": _serialize_reconcile(r.reconcile),
        "notifications": _serialize_fanout(r.notifications),
    }


def _serialize_lifecycle(r: LifecycleResult) -> dict:
    data = {
        "status": "ok",
        "dispatch": _serialize_dispatch(r.dispatch),
        "notifications": _serialize_fanout(r.notifications),
    }
    if r.records is not None:
        data["schedule_record_ids"] = [rec.id for rec in r.records]
    return data
