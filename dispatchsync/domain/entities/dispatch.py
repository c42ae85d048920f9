"""Dispatch entity — a customer's transport request and its driver assignments."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from dispatchsync.domain.value_objects.enums import AssignmentStatusValue, DispatchStatus


@dataclass
class DriverAssignment:
    """One driver's part of a dispatch (embedded in Dispatch.driver_assignments)."""

    driver_id: str
    truck_id: str | None
    status: AssignmentStatusValue = AssignmentStatusValue.ASSIGNED
    assigned_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    updated_at: datetime | None = None
    assigned_by: str | None = None
    assignment_date: str | None = None
    notes: str = ""
    started_by: str | None = None
    admin_override: bool = False

    def with_status(self, status: AssignmentStatusValue, at: datetime) -> DriverAssignment:
        """Return a copy moved to *status*.

        The first-reached timestamps are only filled when still empty, so
        re-asserting a status never moves them.
        """
        updated = replace(self, status=status, updated_at=at)
        if status == AssignmentStatusValue.IN_PROGRESS and updated.started_at is None:
            updated.started_at = at
        elif status == AssignmentStatusValue.COMPLETED and updated.completed_at is None:
            updated.completed_at = at
        return updated


@dataclass
class Dispatch:
    key: str
    dispatch_id: str | None
    customer_id: str | None
    status: DispatchStatus = DispatchStatus.PENDING
    driver_assignments: dict[str, DriverAssignment] = field(default_factory=dict)
    current_status: dict | None = None
    status_changed_at: dict[str, datetime] = field(default_factory=dict)
    source_address: str | None = None
    destination_address: str | None = None
    trucks_required: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    accepted_by: str | None = None
    accepted_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    assigned_by: str | None = None
    assigned_at: datetime | None = None
    started_by: str | None = None
    admin_started_at: datetime | None = None

    @property
    def display_id(self) -> str:
        """Business-facing id used in messages; falls back to the storage key."""
        return self.dispatch_id or self.key

    @property
    def driver_ids(self) -> list[str]:
        return list(self.driver_assignments)

    def assignment_statuses(self) -> list[AssignmentStatusValue]:
        return [a.status for a in self.driver_assignments.values()]

    def has_assignments(self) -> bool:
        return bool(self.driver_assignments)

    def route_label(self) -> str:
        return f"{self.source_address or 'pickup location'} → {self.destination_address or 'destination'}"
