"""API route tests — FastAPI TestClient with use cases wired to in-memory fakes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from dispatchsync.adapters.persistence.database import get_session
from dispatchsync.application.use_cases.dispatch_written import DispatchWrittenUseCase
from dispatchsync.application.use_cases.status_sweep import StatusSweepUseCase
from dispatchsync.domain.value_objects.enums import AssignmentStatusValue, DispatchStatus
from dispatchsync.infrastructure.api import dependencies as deps
from dispatchsync.main import app

A = AssignmentStatusValue.ASSIGNED
P = AssignmentStatusValue.IN_PROGRESS
C = AssignmentStatusValue.COMPLETED


class FakeSession:
    def __init__(self):
        self.commits = 0

    async def commit(self):
        self.commits += 1


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(world, session):
    async def _session():
        yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[deps.get_dispatch_repo] = lambda: world.dispatches
    app.dependency_overrides[deps.get_notification_gateway] = lambda: world.gateway
    app.dependency_overrides[deps.get_assignment_sync] = lambda: world.sync
    app.dependency_overrides[deps.get_reconcile_uc] = lambda: world.reconcile
    app.dependency_overrides[deps.get_set_driver_status_uc] = lambda: world.set_status
    app.dependency_overrides[deps.get_admin_force_start_uc] = lambda: world.force_start
    app.dependency_overrides[deps.get_lifecycle_uc] = lambda: world.lifecycle
    app.dependency_overrides[deps.get_dispatch_written_uc] = lambda: DispatchWrittenUseCase(world.reconcile)
    app.dependency_overrides[deps.get_status_sweep_uc] = lambda: StatusSweepUseCase(
        world.dispatches, world.reconcile.execute
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestDriverStatus:
    def test_driver_starts_trip(self, client, world, session):
        world.seed(drivers={"d1": A, "d2": A})

        resp = client.post(
            "/api/dispatches/k1/drivers/d1/status",
            json={"new_status": "in-progress", "actor_id": "d1"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["assignment"]["status"] == "in-progress"
        assert body["reconcile"]["dispatch_status"] == "in-progress"
        assert body["reconcile"]["changed"] is True
        assert session.commits == 1
        assert world.stored().status == DispatchStatus.IN_PROGRESS

    def test_driver_cannot_update_someone_else(self, client, world):
        world.seed(drivers={"d1": A, "d2": A})

        resp = client.post(
            "/api/dispatches/k1/drivers/d2/status",
            json={"new_status": "in-progress", "actor_id": "d1"},
        )

        assert resp.status_code == 403

    def test_admin_may_update_any_driver(self, client, world):
        world.seed(drivers={"d1": P})

        resp = client.post(
            "/api/dispatches/k1/drivers/d1/status",
            json={"new_status": "completed", "actor_kind": "admin", "actor_id": "a1", "actor_name": "Dana"},
        )

        assert resp.status_code == 200
        assert "trip_completed_by_admin" in world.gateway.types()

    def test_unknown_status_is_rejected(self, client, world):
        world.seed(drivers={"d1": A})

        resp = client.post(
            "/api/dispatches/k1/drivers/d1/status",
            json={"new_status": "cancelled", "actor_id": "d1"},
        )

        assert resp.status_code == 422

    def test_missing_dispatch_is_404(self, client, session):
        resp = client.post(
            "/api/dispatches/nope/drivers/d1/status",
            json={"new_status": "in-progress", "actor_id": "d1"},
        )

        assert resp.status_code == 404
        assert session.commits == 0


class TestAdminActions:
    def test_reconcile(self, client, world):
        world.seed(drivers={"d1": C}, status=DispatchStatus.IN_PROGRESS)

        resp = client.post("/api/dispatches/k1/reconcile")

        assert resp.status_code == 200
        assert resp.json()["dispatch_status"] == "completed"

    def test_force_start(self, client, world):
        world.seed(drivers={"d1": A, "d2": A})

        resp = client.post("/api/dispatches/k1/start", json={"admin_id": "a1"})

        assert resp.status_code == 200
        assert resp.json()["started_driver_count"] == 2
        assert world.stored().status == DispatchStatus.IN_PROGRESS

    def test_force_start_without_drivers_is_409(self, client, world):
        world.seed(drivers={}, status=DispatchStatus.ACCEPTED)

        resp = client.post("/api/dispatches/k1/start", json={"admin_id": "a1"})

        assert resp.status_code == 409

    def test_complete_trip(self, client, world):
        world.seed(drivers={"d1": P, "d2": P}, status=DispatchStatus.IN_PROGRESS)

        resp = client.post("/api/dispatches/k1/complete", json={"admin_id": "a1"})

        assert resp.status_code == 200
        assert resp.json()["dispatch_status"] == "completed"
        assert len(resp.json()["drivers"]) == 2

    def test_complete_trip_skips_finished_drivers(self, client, world):
        world.seed(drivers={"d1": C, "d2": C}, status=DispatchStatus.COMPLETED)

        resp = client.post("/api/dispatches/k1/complete", json={"admin_id": "a1"})

        assert resp.status_code == 200
        assert resp.json()["dispatch_status"] == "completed"
        assert resp.json()["drivers"] == []
        assert world.gateway.delivered == []

    def test_reject_after_assignment_is_409(self, client, world):
        world.seed(drivers={"d1": A}, status=DispatchStatus.ASSIGNED)

        resp = client.post("/api/dispatches/k1/reject", json={"admin_id": "a1", "reason": "late"})

        assert resp.status_code == 409
        assert world.stored().status == DispatchStatus.ASSIGNED

    def test_create_accept_assign(self, client, world):
        resp = client.post(
            "/api/dispatches",
            json={"customer_id": "CUST-1", "source_address": "Depot A", "destination_address": "Site B"},
        )
        assert resp.status_code == 201
        key = resp.json()["key"]
        assert resp.json()["status"] == "pending"

        resp = client.post(f"/api/dispatches/{key}/accept", json={"admin_id": "a1"})
        assert resp.json()["dispatch"]["status"] == "accepted"

        resp = client.post(
            f"/api/dispatches/{key}/assign",
            json={
                "admin_id": "a1",
                "assignments": [{"driver_id": "d1", "truck_id": "t1", "assignment_date": "2026-03-02"}],
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["dispatch"]["status"] == "assigned"
        assert body["dispatch"]["driver_assignments"]["d1"]["assignment_date"] == "2026-03-02"
        assert len(body["schedule_record_ids"]) == 1

    def test_reject_needs_reason(self, client, world):
        world.seed(drivers={}, status=DispatchStatus.PENDING)

        assert client.post("/api/dispatches/k1/reject", json={"admin_id": "a1", "reason": ""}).status_code == 422
        resp = client.post("/api/dispatches/k1/reject", json={"admin_id": "a1", "reason": "no capacity"})
        assert resp.status_code == 200
        assert resp.json()["dispatch"]["rejection_reason"] == "no capacity"

    def test_get_dispatch(self, client, world):
        world.seed(drivers={"d1": A})

        resp = client.get("/api/dispatches/k1")

        assert resp.status_code == 200
        assert resp.json()["driver_assignments"]["d1"]["status"] == "assigned"
        assert client.get("/api/dispatches/nope").status_code == 404


class TestTriggerAndSweep:
    def test_trigger_ignores_unchanged_assignments(self, client, world):
        world.seed(drivers={"d1": C}, status=DispatchStatus.IN_PROGRESS)
        snapshot = {"d1": {"status": "completed"}}

        resp = client.post(
            "/api/triggers/dispatch-written",
            json={"dispatch_key": "k1", "before": snapshot, "after": snapshot},
        )

        assert resp.json()["status"] == "ignored"
        assert world.stored().status == DispatchStatus.IN_PROGRESS

    def test_trigger_reconciles_on_change(self, client, world):
        world.seed(drivers={"d1": C}, status=DispatchStatus.IN_PROGRESS)

        resp = client.post(
            "/api/triggers/dispatch-written",
            json={
                "dispatch_key": "k1",
                "before": {"d1": {"status": "in-progress"}},
                "after": {"d1": {"status": "completed"}},
            },
        )

        assert resp.json()["dispatch_status"] == "completed"
        assert world.stored().status == DispatchStatus.COMPLETED

    def test_manual_sweep(self, client, world):
        world.seed(key="a", drivers={"d1": C}, status=DispatchStatus.IN_PROGRESS)

        resp = client.post("/api/sync/sweep")

        assert resp.status_code == 200
        assert resp.json()["changed"] == ["a"]

    def test_availability(self, client, world):
        world.seed(drivers={"d1": A})

        resp = client.get(
            "/api/schedule/availability",
            params={"driver_id": "d1", "truck_id": "t-free", "date": "2026-03-02"},
        )

        body = resp.json()
        assert body["driver_available"] is False
        assert body["truck_available"] is True
        assert body["driver_conflicts"] == ["k1"]


class TestNotifications:
    def test_list_and_mark_read(self, client, world):
        world.seed(drivers={"d1": C}, status=DispatchStatus.IN_PROGRESS)
        client.post("/api/dispatches/k1/reconcile")

        resp = client.get("/api/notifications/driver", params={"recipient_id": "d1"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["unread"] == 1
        notification_id = body["notifications"][0]["id"]

        assert client.post(f"/api/notifications/{notification_id}/read").status_code == 200
        assert client.get("/api/notifications/driver", params={"recipient_id": "d1"}).json()["unread"] == 0

    def test_recipient_required_for_personal_lists(self, client):
        assert client.get("/api/notifications/customer").status_code == 400
        assert client.get("/api/notifications/admin").status_code == 200

    def test_mark_unknown_is_404(self, client):
        assert client.post("/api/notifications/999/read").status_code == 404
