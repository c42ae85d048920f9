"""Domain error taxonomy."""


class DispatchSyncError(Exception):
    """Base class for all service errors."""


class NotFoundError(DispatchSyncError):
    """A dispatch or a driver entry does not exist. Terminal, never retried."""


class TransientStoreError(DispatchSyncError):
    """A read or write against the store failed.

    Not retried inside the failing call; the periodic sweep converges the
    state on its next run.
    """


class NotificationDeliveryError(DispatchSyncError):
    """Delivering a notification to one recipient failed."""

    def __init__(self, sink: str, recipient_id: str | None, reason: str):
        self.sink = sink
        self.recipient_id = recipient_id
        super().__init__(f"Delivery to {sink}:{recipient_id or '-'} failed: {reason}")


class DispatchStateError(DispatchSyncError, ValueError):
    """An admin lifecycle action is not allowed from the dispatch's current state."""
