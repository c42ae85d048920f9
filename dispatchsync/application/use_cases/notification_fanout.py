"""NotificationFanout — address and deliver the core's notifications.

Every recipient is delivered independently: a failure is logged and counted,
never raised, so the other recipients still get their message and the calling
status operation keeps its result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dispatchsync.application.ports.directory_repo import DirectoryRepository
from dispatchsync.application.ports.notification_gateway import NotificationGateway
from dispatchsync.domain.entities.actor import Actor
from dispatchsync.domain.entities.dispatch import Dispatch
from dispatchsync.domain.entities.notification import Notification
from dispatchsync.domain.policies.notification_messages import (
    Message,
    accepted_message,
    admin_start_messages,
    aggregate_messages,
    assigned_messages,
    driver_transition_messages,
    rejected_message,
)
from dispatchsync.domain.value_objects.enums import (
    AssignmentStatusValue,
    DispatchStatus,
    NotificationSink,
)

logger = logging.getLogger(__name__)

UNKNOWN_DRIVER = "Unknown Driver"


@dataclass
class FanoutReport:
    delivered: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def attempted(self) -> int:
        return self.delivered + self.failed


class NotificationFanout:
    def __init__(self, gateway: NotificationGateway, directory: DirectoryRepository):
        self._gateway = gateway
        self._directory = directory

    # ─── Reconciliation events ───────────────────────────────────────

    async def dispatch_status_changed(
        self, dispatch: Dispatch, new_status: DispatchStatus
    ) -> FanoutReport:
        """Aggregate transition: customer, every assigned driver, admin feed."""
        report = FanoutReport()
        messages = aggregate_messages(dispatch, new_status)
        if messages is None:
            logger.debug("No notifications configured for status %s", new_status.value)
            return report

        await self._to_customer(report, dispatch, messages.customer)
        for driver_id in dispatch.driver_ids:
            await self._send(report, NotificationSink.DRIVER, driver_id, messages.driver, dispatch)
        await self._send(report, NotificationSink.ADMIN, None, messages.admin, dispatch)

        logger.info(
            "Dispatch %s %s fan-out: %d delivered, %d failed, %d skipped",
            dispatch.key, new_status.value, report.delivered, report.failed, report.skipped,
        )
        return report

    async def driver_status_changed(
        self,
        dispatch: Dispatch,
        driver_id: str,
        new_status: AssignmentStatusValue,
        actor: Actor,
    ) -> FanoutReport:
        """One driver's transition: customer, the driver, co-assigned drivers, admin feed."""
        report = FanoutReport()
        driver_name = await self._driver_name(driver_id)
        messages = driver_transition_messages(dispatch, driver_name, new_status, actor)
        if messages is None:
            return report

        await self._to_customer(report, dispatch, messages.customer, driver_id=driver_id)
        await self._send(report, NotificationSink.DRIVER, driver_id, messages.driver, dispatch)
        for other_id in dispatch.driver_ids:
            if other_id != driver_id:
                await self._send(report, NotificationSink.DRIVER, other_id, messages.colleague, dispatch)
        await self._send(
            report, NotificationSink.ADMIN, None, messages.admin, dispatch, driver_id=driver_id
        )
        return report

    # ─── Admin actions ───────────────────────────────────────────────

    async def admin_started(self, dispatch: Dispatch, admin_id: str) -> FanoutReport:
        report = FanoutReport()
        messages = admin_start_messages(dispatch)
        await self._to_customer(report, dispatch, messages.customer, sender_id=admin_id)
        for driver_id in dispatch.driver_ids:
            await self._send(
                report, NotificationSink.DRIVER, driver_id, messages.driver, dispatch, sender_id=admin_id
            )
        return report

    async def dispatch_accepted(self, dispatch: Dispatch, admin_id: str) -> FanoutReport:
        report = FanoutReport()
        await self._to_customer(report, dispatch, accepted_message(dispatch), sender_id=admin_id)
        return report

    async def dispatch_rejected(self, dispatch: Dispatch, admin_id: str, reason: str) -> FanoutReport:
        report = FanoutReport()
        await self._to_customer(report, dispatch, rejected_message(dispatch, reason), sender_id=admin_id)
        return report

    async def dispatch_assigned(self, dispatch: Dispatch, admin_id: str) -> FanoutReport:
        """Assignment-time notifications: each new driver, then the customer."""
        report = FanoutReport()
        assignments = list(dispatch.driver_assignments.values())
        if not assignments:
            return report

        for assignment in assignments:
            messages = assigned_messages(dispatch, assignment.assignment_date or "", len(assignments))
            await self._send(
                report, NotificationSink.DRIVER, assignment.driver_id, messages.driver, dispatch,
                sender_id=admin_id,
            )

        first = assigned_messages(dispatch, assignments[0].assignment_date or "", len(assignments))
        await self._to_customer(report, dispatch, first.customer, sender_id=admin_id)
        return report

    # ─── Delivery helpers ────────────────────────────────────────────

    async def _driver_name(self, driver_id: str) -> str:
        try:
            return await self._directory.get_driver_name(driver_id) or UNKNOWN_DRIVER
        except Exception:
            logger.exception("Could not look up driver %s", driver_id)
            return UNKNOWN_DRIVER

    async def _to_customer(
        self,
        report: FanoutReport,
        dispatch: Dispatch,
        message: Message,
        *,
        driver_id: str | None = None,
        sender_id: str | None = None,
    ) -> None:
        if not dispatch.customer_id:
            report.skipped += 1
            return
        try:
            customer_key = await self._directory.find_customer_key(dispatch.customer_id)
        except Exception:
            logger.exception("Customer lookup failed for dispatch %s", dispatch.key)
            report.failed += 1
            return
        if customer_key is None:
            logger.warning("Customer %s not found for dispatch %s", dispatch.customer_id, dispatch.key)
            report.skipped += 1
            return
        await self._send(
            report, NotificationSink.CUSTOMER, customer_key, message, dispatch,
            driver_id=driver_id, sender_id=sender_id,
        )

    async def _send(
        self,
        report: FanoutReport,
        sink: NotificationSink,
        recipient_id: str | None,
        message: Message,
        dispatch: Dispatch,
        *,
        driver_id: str | None = None,
        sender_id: str | None = None,
    ) -> None:
        notification = Notification(
            id=None,
            sink=sink,
            recipient_id=recipient_id,
            type=message.type,
            title=message.title,
            message=message.body,
            dispatch_key=dispatch.key,
            driver_id=driver_id,
            priority=message.priority,
            action_required=message.action_required,
            sender_id=sender_id,
        )
        try:
            await self._gateway.deliver(notification)
        except Exception:
            logger.exception(
                "Notification %s to %s:%s for dispatch %s failed",
                message.type, sink.value, recipient_id or "-", dispatch.key,
            )
            report.failed += 1
            return
        report.delivered += 1
