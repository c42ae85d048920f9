"""Port interface for dispatch persistence."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Collection
from datetime import datetime

from dispatchsync.domain.entities.dispatch import Dispatch, DriverAssignment
from dispatchsync.domain.value_objects.enums import AssignmentStatusValue, DispatchStatus


class DispatchRepository(ABC):
    @abstractmethod
    async def add(self, dispatch: Dispatch) -> Dispatch:
        ...

    @abstractmethod
    async def get_by_key(self, key: str) -> Dispatch | None:
        ...

    @abstractmethod
    async def get_status(self, key: str) -> DispatchStatus | None:
        """Return the stored status, or None if the dispatch does not exist."""
        ...

    @abstractmethod
    async def list_by_status(self, statuses: set[DispatchStatus]) -> list[Dispatch]:
        ...

    @abstractmethod
    async def update_status(self, key: str, status: DispatchStatus, at: datetime) -> None:
        """Atomically write the aggregate status of one dispatch.

        Sets status, current_status {status, updatedAt}, updated_at and
        status_changed_at[status] in a single row update.

        Raises:
            NotFoundError: if the dispatch does not exist.
        """
        ...

    @abstractmethod
    async def transition_driver(
        self, key: str, driver_id: str, status: AssignmentStatusValue, at: datetime
    ) -> tuple[DriverAssignment, DriverAssignment]:
        """Move one driver entry to *status* on the locked row; other entries stay untouched.

        The transition is computed with DriverAssignment.with_status from the
        stored entry, so first-reached timestamps survive concurrent calls.
        Returns (before, after).

        Raises:
            NotFoundError: if the dispatch or the driver's entry does not exist.
        """
        ...

    @abstractmethod
    async def record_admin_action(
        self,
        key: str,
        status: DispatchStatus,
        at: datetime,
        *,
        expected: Collection[DispatchStatus] | None = None,
        driver_assignments: dict[str, DriverAssignment] | None = None,
        update_drivers: Callable[[DriverAssignment], DriverAssignment] | None = None,
        audit: dict | None = None,
    ) -> Dispatch:
        """Write a status set directly by an admin action and return the dispatch as stored.

        Same status bookkeeping as update_status, plus an optional full
        replacement of driver_assignments (or *update_drivers* applied to
        every stored entry) and audit columns (accepted_by, rejection_reason,
        admin_started_at, ...). *expected* is checked against the locked row.

        Raises:
            NotFoundError: if the dispatch does not exist.
            DispatchStateError: if the stored status is not in *expected*.
        """
        ...
