"""AggregateStatusPolicy — derive a dispatch's status from its drivers' statuses."""

from __future__ import annotations

from typing import Iterable

from dispatchsync.domain.value_objects.enums import AssignmentStatusValue, DispatchStatus


def compute_aggregate_status(
    statuses: Iterable[AssignmentStatusValue | str],
    current: DispatchStatus,
) -> DispatchStatus:
    """Pure function: map the multiset of per-driver statuses to one dispatch status.

    Business rules (first match wins):
      1. no assignments            →  *current*, unchanged.
      2. every driver completed    →  completed.
      3. any driver in-progress    →  in-progress.
      4. every driver assigned     →  assigned.
      5. anything else             →  assigned (mixed assigned/completed).

    Rule 5 keeps a partially completed dispatch at "assigned" while nobody is
    driving. Product has not confirmed this, so it stays as it always behaved.

    Raises:
        ValueError: if a status string is not a known AssignmentStatusValue.
    """
    values = [AssignmentStatusValue(s) for s in statuses]

    # Rule 1: nothing assigned yet
    if not values:
        return current

    # Rule 2: all done
    if all(v == AssignmentStatusValue.COMPLETED for v in values):
        return DispatchStatus.COMPLETED

    # Rule 3: somebody is on the road
    if any(v == AssignmentStatusValue.IN_PROGRESS for v in values):
        return DispatchStatus.IN_PROGRESS

    # Rule 4: nobody started
    if all(v == AssignmentStatusValue.ASSIGNED for v in values):
        return DispatchStatus.ASSIGNED

    # Rule 5: fallback
    return DispatchStatus.ASSIGNED
