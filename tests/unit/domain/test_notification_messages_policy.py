"""Tests for NotificationMessagePolicy."""

from dispatchsync.domain.entities.actor import Actor
from dispatchsync.domain.entities.dispatch import Dispatch, DriverAssignment
from dispatchsync.domain.policies.notification_messages import (
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
    NotificationPriority,
)


def _dispatch(dispatch_id: str | None = "DSP-7") -> Dispatch:
    return Dispatch(
        key="k7", dispatch_id=dispatch_id, customer_id="CUST-1",
        driver_assignments={
            "d1": DriverAssignment(driver_id="d1", truck_id="t1"),
            "d2": DriverAssignment(driver_id="d2", truck_id="t2"),
        },
        source_address="Depot A", destination_address="Site B",
    )


class TestAggregateMessages:
    def test_completed_is_high_priority(self):
        m = aggregate_messages(_dispatch(), DispatchStatus.COMPLETED)
        assert m.customer.type == "dispatch_completed"
        assert m.customer.priority == NotificationPriority.HIGH
        assert m.admin.type == "dispatch_status_update"
        assert "#DSP-7" in m.customer.body

    def test_in_progress_is_normal_priority(self):
        m = aggregate_messages(_dispatch(), DispatchStatus.IN_PROGRESS)
        assert m.driver.type == "dispatch_in-progress"
        assert m.driver.priority == NotificationPriority.NORMAL

    def test_assigned_is_not_announced(self):
        assert aggregate_messages(_dispatch(), DispatchStatus.ASSIGNED) is None

    def test_key_used_without_business_id(self):
        m = aggregate_messages(_dispatch(dispatch_id=None), DispatchStatus.COMPLETED)
        assert "#k7" in m.customer.body


class TestDriverTransitionMessages:
    def test_driver_started(self):
        m = driver_transition_messages(
            _dispatch(), "Alice", AssignmentStatusValue.IN_PROGRESS, Actor.driver("d1")
        )
        assert m.customer.type == "driver_in-progress"
        assert m.driver.type == "trip_in-progress"
        assert m.colleague.type == "colleague_in-progress"
        assert m.colleague.priority == NotificationPriority.LOW
        assert m.admin.type == "driver_status_update"
        assert "Alice" in m.customer.body

    def test_admin_initiated_tags_and_priority(self):
        m = driver_transition_messages(
            _dispatch(), "Alice", AssignmentStatusValue.COMPLETED, Actor.admin("a1", "Dana")
        )
        assert m.customer.type == "driver_completed_by_admin"
        assert m.driver.type == "trip_completed_by_admin"
        assert m.customer.priority == NotificationPriority.HIGH
        assert m.colleague.priority == NotificationPriority.NORMAL
        assert "by Dana" in m.customer.body
        assert "administrator Dana" in m.driver.body

    def test_move_back_to_assigned_is_silent(self):
        assert driver_transition_messages(
            _dispatch(), "Alice", AssignmentStatusValue.ASSIGNED, Actor.driver("d1")
        ) is None


class TestAdminMessages:
    def test_force_start(self):
        m = admin_start_messages(_dispatch())
        assert m.customer.type == "dispatch_started"
        assert "All 2 drivers" in m.customer.body
        assert m.driver.type == "trip_started_admin"
        assert m.driver.action_required

    def test_accept_reject(self):
        assert "Depot A → Site B" in accepted_message(_dispatch()).body
        rejected = rejected_message(_dispatch(), "no trucks")
        assert rejected.priority == NotificationPriority.HIGH
        assert "Reason: no trucks" in rejected.body

    def test_assigned(self):
        m = assigned_messages(_dispatch(), "2026-03-02", 2)
        assert m.driver.action_required
        assert m.driver.priority == NotificationPriority.HIGH
        assert "2 driver(s)" in m.customer.body
        assert "2026-03-02" in m.driver.body
