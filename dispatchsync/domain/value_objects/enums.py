"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class DispatchStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class AssignmentStatusValue(str, Enum):
    """Status of one driver's part of a dispatch."""

    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class AssignmentRecordStatus(str, Enum):
    """Status of a schedule record in the assignments table.

    Superset of AssignmentStatusValue: records of a rejected dispatch are
    cancelled, which a driver's own sub-record never is.
    """

    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationSink(str, Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class ActorKind(str, Enum):
    DRIVER = "driver"
    ADMIN = "admin"
    SYSTEM = "system"


# Dispatch states the periodic sweep looks at.
ACTIVE_DISPATCH_STATUSES: frozenset[DispatchStatus] = frozenset(
    {DispatchStatus.ASSIGNED, DispatchStatus.IN_PROGRESS}
)
