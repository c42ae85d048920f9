"""NotificationMessagePolicy — wording, type tags and priorities of every message the core sends.

All builders are pure: they take the dispatch snapshot and event details and
return ``Message`` values. Addressing and delivery belong to the fan-out use case.
"""

from __future__ import annotations

from dataclasses import dataclass

from dispatchsync.domain.entities.actor import Actor
from dispatchsync.domain.entities.dispatch import Dispatch
from dispatchsync.domain.value_objects.enums import (
    AssignmentStatusValue,
    DispatchStatus,
    NotificationPriority,
)


@dataclass(frozen=True)
class Message:
    type: str
    title: str
    body: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_required: bool = False


@dataclass(frozen=True)
class AggregateMessages:
    customer: Message
    driver: Message
    admin: Message


@dataclass(frozen=True)
class TransitionMessages:
    customer: Message
    driver: Message
    colleague: Message
    admin: Message


@dataclass(frozen=True)
class AudienceMessages:
    customer: Message
    driver: Message


# ─── Aggregate status change ─────────────────────────────────────────


def aggregate_messages(dispatch: Dispatch, new_status: DispatchStatus) -> AggregateMessages | None:
    """Messages for an aggregate transition; None when the status is not announced.

    Only in-progress and completed are announced.
    """
    ref = dispatch.display_id
    if new_status == DispatchStatus.IN_PROGRESS:
        return AggregateMessages(
            customer=Message(
                type="dispatch_in-progress",
                title="Dispatch In Progress",
                body=f"Your dispatch #{ref} is now in progress. One or more drivers have started the trip.",
            ),
            driver=Message(
                type="dispatch_in-progress",
                title="Dispatch In Progress",
                body=f"Dispatch #{ref} is now in progress. One or more team members have started their trips.",
            ),
            admin=Message(
                type="dispatch_status_update",
                title="Dispatch Status Updated",
                body=f"Dispatch #{ref} status changed to in-progress. Trip is now in progress.",
            ),
        )
    if new_status == DispatchStatus.COMPLETED:
        return AggregateMessages(
            customer=Message(
                type="dispatch_completed",
                title="Dispatch Completed",
                body=f"Your dispatch #{ref} has been completed successfully. All drivers have finished their trips.",
                priority=NotificationPriority.HIGH,
            ),
            driver=Message(
                type="dispatch_completed",
                title="Dispatch Completed",
                body=f"Dispatch #{ref} has been completed successfully. All team members have finished their trips.",
                priority=NotificationPriority.HIGH,
            ),
            admin=Message(
                type="dispatch_status_update",
                title="Dispatch Status Updated",
                body=f"Dispatch #{ref} status changed to completed. All drivers have completed their trips.",
                priority=NotificationPriority.HIGH,
            ),
        )
    return None


# ─── Individual driver transition ────────────────────────────────────


def driver_transition_messages(
    dispatch: Dispatch,
    driver_name: str,
    new_status: AssignmentStatusValue,
    actor: Actor,
) -> TransitionMessages | None:
    """Messages for one driver's transition; None for a move back to assigned.

    Admin-initiated changes get "_by_admin" type tags, a suffix naming the
    admin, and raised priorities.
    """
    if new_status not in (AssignmentStatusValue.IN_PROGRESS, AssignmentStatusValue.COMPLETED):
        return None

    ref = dispatch.display_id
    by_admin = actor.admin_initiated
    suffix = f" by {actor.name}" if by_admin and actor.name else ""
    admin_label = f"administrator {actor.name}" if actor.name else "administrator"
    tag = "_by_admin" if by_admin else ""
    started = new_status == AssignmentStatusValue.IN_PROGRESS
    verb = "started" if started else "completed"

    if started:
        customer_body = f"Driver {driver_name} has started your trip for dispatch #{ref}{suffix}."
        customer_title = "Trip Started"
    else:
        customer_body = f"Driver {driver_name} has completed their part of dispatch #{ref}{suffix}."
        customer_title = "Trip Update"

    if by_admin:
        driver_body = f"Your trip for dispatch #{ref} has been {verb} by {admin_label}."
        driver_title = f"Trip {verb.capitalize()} by Admin"
    else:
        driver_body = f"You have {verb} the trip for dispatch #{ref}."
        driver_title = f"Trip {verb.capitalize()}"

    normal_or_high = NotificationPriority.HIGH if by_admin else NotificationPriority.NORMAL

    return TransitionMessages(
        customer=Message(
            type=f"driver_{new_status.value}{tag}",
            title=customer_title,
            body=customer_body,
            priority=normal_or_high,
        ),
        driver=Message(
            type=f"trip_{new_status.value}{tag}",
            title=driver_title,
            body=driver_body,
            priority=normal_or_high,
        ),
        colleague=Message(
            type=f"colleague_{new_status.value}{tag}",
            title="Admin Team Update" if by_admin else "Team Update",
            body=f"Driver {driver_name} has {verb} their part of dispatch #{ref}{suffix}.",
            priority=NotificationPriority.NORMAL if by_admin else NotificationPriority.LOW,
        ),
        admin=Message(
            type="driver_status_update",
            title="Driver Status Update",
            body=f"Driver {driver_name} has {verb} their trip for dispatch #{ref}.",
        ),
    )


# ─── Admin actions ───────────────────────────────────────────────────


def admin_start_messages(dispatch: Dispatch) -> AudienceMessages:
    ref = dispatch.display_id
    count = len(dispatch.driver_assignments)
    return AudienceMessages(
        customer=Message(
            type="dispatch_started",
            title="Trip Started",
            body=f"Your dispatch #{ref} has been started. All {count} drivers are now en route.",
            priority=NotificationPriority.HIGH,
        ),
        driver=Message(
            type="trip_started_admin",
            title="Trip Started by Admin",
            body=f"Your trip for dispatch #{ref} has been started by admin. Please proceed with the delivery.",
            priority=NotificationPriority.HIGH,
            action_required=True,
        ),
    )


def accepted_message(dispatch: Dispatch) -> Message:
    return Message(
        type="dispatch_accepted",
        title="Request Accepted",
        body=f"Your dispatch request #{dispatch.display_id} has been accepted. Route: {dispatch.route_label()}",
    )


def rejected_message(dispatch: Dispatch, reason: str) -> Message:
    return Message(
        type="dispatch_rejected",
        title="Request Rejected",
        body=(
            f"Your dispatch request #{dispatch.display_id} has been rejected. Reason: {reason}. "
            "Please contact support for assistance."
        ),
        priority=NotificationPriority.HIGH,
    )


def assigned_messages(dispatch: Dispatch, assignment_date: str, driver_count: int) -> AudienceMessages:
    ref = dispatch.display_id
    return AudienceMessages(
        customer=Message(
            type="dispatch_assigned",
            title="Driver Assigned",
            body=(
                f"{driver_count} driver(s) and truck(s) have been assigned to your dispatch request #{ref}. "
                f"Scheduled date: {assignment_date}. Your shipment will be processed soon."
            ),
        ),
        driver=Message(
            type="dispatch_assigned",
            title="New Assignment",
            body=f"You have been assigned to dispatch #{ref}. Route: {dispatch.route_label()}. Date: {assignment_date}",
            priority=NotificationPriority.HIGH,
            action_required=True,
        ),
    )
