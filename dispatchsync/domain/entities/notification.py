"""Notification entity — one message in a customer, driver or admin list."""

from dataclasses import dataclass
from datetime import datetime

from dispatchsync.domain.value_objects.enums import NotificationPriority, NotificationSink


@dataclass
class Notification:
    id: int | None
    sink: NotificationSink
    recipient_id: str | None
    type: str
    title: str
    message: str
    dispatch_key: str | None = None
    driver_id: str | None = None
    priority: NotificationPriority = NotificationPriority.NORMAL
    read: bool = False
    action_required: bool = False
    sender_id: str | None = None
    created_at: datetime | None = None
