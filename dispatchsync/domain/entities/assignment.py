"""AssignmentRecord entity — a schedule row tying a driver and truck to a dispatch on a date."""

from dataclasses import dataclass
from datetime import date, datetime

from dispatchsync.domain.value_objects.enums import AssignmentRecordStatus


@dataclass
class AssignmentRecord:
    id: int | None
    dispatch_key: str
    driver_id: str
    truck_id: str
    assigned_date: date
    status: AssignmentRecordStatus = AssignmentRecordStatus.ASSIGNED
    notes: str | None = None
    assigned_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def assigned_date_str(self) -> str:
        """Calendar day in yyyy-MM-dd, as used by availability queries."""
        return self.assigned_date.isoformat()

    def is_closed(self) -> bool:
        return self.status in (AssignmentRecordStatus.COMPLETED, AssignmentRecordStatus.CANCELLED)
