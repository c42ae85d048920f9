"""Notification endpoints — per-recipient lists and read flags."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchsync.adapters.persistence.database import get_session
from dispatchsync.application.ports.notification_gateway import NotificationGateway
from dispatchsync.domain.entities.notification import Notification
from dispatchsync.domain.errors import DispatchSyncError
from dispatchsync.domain.value_objects.enums import NotificationSink
from dispatchsync.infrastructure.api.dependencies import get_notification_gateway
from dispatchsync.infrastructure.api.errors import http_error

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/{sink}")
async def list_notifications(
    sink: NotificationSink,
    recipient_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    gateway: NotificationGateway = Depends(get_notification_gateway),
):
    """Newest first. Customer and driver lists need a recipient_id; the admin feed does not."""
    if sink != NotificationSink.ADMIN and not recipient_id:
        raise HTTPException(status_code=400, detail="recipient_id is required for this list")
    try:
        items = await gateway.list_for(sink, recipient_id, limit)
    except DispatchSyncError as e:
        raise http_error(e) from e
    return {
        "total": len(items),
        "unread": sum(1 for n in items if not n.read),
        "notifications": [_serialize_notification(n) for n in items],
    }


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    gateway: NotificationGateway = Depends(get_notification_gateway),
    session: AsyncSession = Depends(get_session),
):
    try:
        found = await gateway.mark_read(notification_id)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e
    if not found:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"status": "ok", "id": notification_id}


def _serialize_notification(n: Notification) -> dict:
    return {
        "id": n.id,
        "sink": n.sink.value,
        "recipient_id": n.recipient_id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "dispatch_key": n.dispatch_key,
        "driver_id": n.driver_id,
        "priority": n.priority.value,
        "read": n.read,
        "action_required": n.action_required,
        "sender_id": n.sender_id,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }
