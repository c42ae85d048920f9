"""AssignmentActivityPolicy — schedule record status mapping and liveness."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from dispatchsync.domain.entities.assignment import AssignmentRecord
from dispatchsync.domain.value_objects.enums import AssignmentRecordStatus, DispatchStatus


def record_status_for(dispatch_status: DispatchStatus) -> AssignmentRecordStatus:
    """Map a dispatch status onto the schedule-record status space.

    Raises:
        ValueError: for pending/accepted, which never have schedule records.
    """
    mapping = {
        DispatchStatus.ASSIGNED: AssignmentRecordStatus.ASSIGNED,
        DispatchStatus.IN_PROGRESS: AssignmentRecordStatus.IN_PROGRESS,
        DispatchStatus.COMPLETED: AssignmentRecordStatus.COMPLETED,
        DispatchStatus.REJECTED: AssignmentRecordStatus.CANCELLED,
    }
    try:
        return mapping[dispatch_status]
    except KeyError:
        raise ValueError(f"Dispatch status {dispatch_status.value!r} has no schedule-record equivalent")


class RecordAction(str, Enum):
    KEEP = "keep"
    PURGE = "purge"
    CLOSE = "close"


@dataclass(frozen=True)
class ActivityDecision:
    active: bool
    action: RecordAction
    close_as: AssignmentRecordStatus | None = None


def assess_record(
    record: AssignmentRecord,
    dispatch_status: DispatchStatus | None,
) -> ActivityDecision:
    """Decide whether a schedule record still blocks its driver and truck.

    *dispatch_status* is None when the parent dispatch no longer exists.

    Rules:
      1. record already completed / cancelled  →  inactive, keep.
      2. parent dispatch gone                  →  inactive, purge (orphan).
      3. parent completed                      →  inactive, close as completed.
      4. parent rejected                       →  inactive, close as cancelled.
      5. otherwise                             →  active.
    """
    if record.is_closed():
        return ActivityDecision(active=False, action=RecordAction.KEEP)

    if dispatch_status is None:
        return ActivityDecision(active=False, action=RecordAction.PURGE)

    if dispatch_status in (DispatchStatus.COMPLETED, DispatchStatus.REJECTED):
        return ActivityDecision(
            active=False,
            action=RecordAction.CLOSE,
            close_as=record_status_for(dispatch_status),
        )

    return ActivityDecision(active=True, action=RecordAction.KEEP)
