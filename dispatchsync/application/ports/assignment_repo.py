"""Port interface for schedule (assignment record) persistence."""

from abc import ABC, abstractmethod
from datetime import date, datetime

from dispatchsync.domain.entities.assignment import AssignmentRecord
from dispatchsync.domain.value_objects.enums import AssignmentRecordStatus


class AssignmentRepository(ABC):
    @abstractmethod
    async def add(self, record: AssignmentRecord) -> AssignmentRecord:
        ...

    @abstractmethod
    async def list_by_dispatch(self, dispatch_key: str) -> list[AssignmentRecord]:
        ...

    @abstractmethod
    async def list_for_driver_on(self, driver_id: str, day: date) -> list[AssignmentRecord]:
        ...

    @abstractmethod
    async def list_for_truck_on(self, truck_id: str, day: date) -> list[AssignmentRecord]:
        ...

    @abstractmethod
    async def get_all(self) -> list[AssignmentRecord]:
        ...

    @abstractmethod
    async def update_status(
        self, record_id: int, status: AssignmentRecordStatus, at: datetime
    ) -> None:
        """Update one record.

        A failure must leave the caller free to continue with other records
        (implementations isolate each write, e.g. in a savepoint).
        """
        ...

    @abstractmethod
    async def delete(self, record_id: int) -> None:
        ...
