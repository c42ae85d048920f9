"""DispatchWrittenUseCase — react to a dispatch document change from the store's change feed."""

from __future__ import annotations

import logging

from dispatchsync.application.use_cases.reconcile_dispatch import (
    ReconcileDispatchUseCase,
    ReconcileResult,
)

logger = logging.getLogger(__name__)


def assignments_changed(before: dict | None, after: dict | None) -> bool:
    """True if the driver_assignments map differs between two snapshots.

    Compares by value, so key order and re-serialisation do not count as a
    change.
    """
    return (before or {}) != (after or {})


class DispatchWrittenUseCase:
    def __init__(self, reconcile: ReconcileDispatchUseCase):
        self._reconcile = reconcile

    async def execute(
        self,
        dispatch_key: str,
        before_assignments: dict | None,
        after_assignments: dict | None,
    ) -> ReconcileResult | None:
        """Reconcile if the write touched driver_assignments; None when ignored."""
        if not assignments_changed(before_assignments, after_assignments):
            logger.debug("Dispatch %s written without assignment changes", dispatch_key)
            return None

        logger.info("Driver assignments changed for dispatch %s", dispatch_key)
        return await self._reconcile.execute(dispatch_key)
