"""Tests for NotificationFanout delivery isolation and addressing."""

from __future__ import annotations

import pytest

from dispatchsync.domain.entities.actor import Actor
from dispatchsync.domain.value_objects.enums import (
    AssignmentStatusValue,
    DispatchStatus,
    NotificationSink,
)

A = AssignmentStatusValue.ASSIGNED
P = AssignmentStatusValue.IN_PROGRESS
C = AssignmentStatusValue.COMPLETED


@pytest.mark.asyncio
async def test_one_failing_recipient_does_not_block_the_others(world):
    dispatch = world.seed(drivers={"d1": C, "d2": C, "d3": C})
    world.gateway.fail_for.add((NotificationSink.DRIVER, "d2"))

    report = await world.fanout.dispatch_status_changed(dispatch, DispatchStatus.COMPLETED)

    assert report.failed == 1
    assert report.delivered == 4
    assert world.gateway.to(NotificationSink.DRIVER, "d1")
    assert world.gateway.to(NotificationSink.DRIVER, "d3")
    assert world.gateway.to(NotificationSink.ADMIN)
    assert world.gateway.to(NotificationSink.CUSTOMER, "cust-key-1")


@pytest.mark.asyncio
async def test_failing_recipient_does_not_change_reconcile_result(world):
    world.seed(drivers={"d1": C, "d2": C}, status=DispatchStatus.IN_PROGRESS)
    world.gateway.fail_for.add((NotificationSink.CUSTOMER, "cust-key-1"))

    result = await world.reconcile.execute("k1")

    assert result.changed is True
    assert result.status == DispatchStatus.COMPLETED
    assert result.notifications.failed == 1
    assert result.notifications.delivered == 3


@pytest.mark.asyncio
async def test_failing_recipient_during_driver_transition(world):
    world.seed(drivers={"d1": A, "d2": A})
    world.gateway.fail_for.add((NotificationSink.DRIVER, "d2"))

    result = await world.set_status.execute("k1", "d1", P, Actor.driver("d1"))

    assert result.assignment.status == P
    assert world.stored().status == DispatchStatus.IN_PROGRESS
    assert result.notifications.failed == 1


@pytest.mark.asyncio
async def test_customer_resolved_by_storage_key(world):
    dispatch = world.seed(drivers={"d1": C}, customer_id="cust-key-1")

    await world.fanout.dispatch_status_changed(dispatch, DispatchStatus.COMPLETED)

    assert world.gateway.to(NotificationSink.CUSTOMER, "cust-key-1")


@pytest.mark.asyncio
async def test_unknown_customer_is_skipped(world):
    dispatch = world.seed(drivers={"d1": C}, customer_id="CUST-404")

    report = await world.fanout.dispatch_status_changed(dispatch, DispatchStatus.COMPLETED)

    assert report.skipped == 1
    assert report.failed == 0
    assert report.delivered == 2
    assert not [n for n in world.gateway.delivered if n.sink == NotificationSink.CUSTOMER]


@pytest.mark.asyncio
async def test_dispatch_without_customer_is_skipped(world):
    dispatch = world.seed(drivers={"d1": C}, customer_id=None)

    report = await world.fanout.dispatch_status_changed(dispatch, DispatchStatus.COMPLETED)

    assert report.skipped == 1


@pytest.mark.asyncio
async def test_notification_payload(world):
    dispatch = world.seed(drivers={"d1": C})

    await world.fanout.dispatch_status_changed(dispatch, DispatchStatus.COMPLETED)

    n = world.gateway.to(NotificationSink.DRIVER, "d1")[0]
    assert n.dispatch_key == "k1"
    assert n.read is False
    assert "#DSP-1" in n.message
