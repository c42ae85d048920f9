"""Port interface for notification delivery and the read side of notification lists."""

from abc import ABC, abstractmethod

from dispatchsync.domain.entities.notification import Notification
from dispatchsync.domain.value_objects.enums import NotificationSink


class NotificationGateway(ABC):
    @abstractmethod
    async def deliver(self, notification: Notification) -> Notification:
        """Append a notification to its sink.

        Raises:
            NotificationDeliveryError: if this one delivery failed.
        """
        ...

    @abstractmethod
    async def list_for(
        self, sink: NotificationSink, recipient_id: str | None = None, limit: int = 100
    ) -> list[Notification]:
        """Newest first."""
        ...

    @abstractmethod
    async def mark_read(self, notification_id: int) -> bool:
        """Flip the read flag. Returns False if the notification does not exist."""
        ...
