"""Tests for the HTTP surface, daily reset endpoints in particular."""

import pytest
from fastapi.testclient import TestClient

from api import create_app
from conftest import make_room
from models import SYSTEM_USER_ID


@pytest.fixture
def client(store, clock):
    app = create_app(store, clock=clock, enable_scheduler=False)
    with TestClient(app) as c:
        yield c


class TestDailyResetEndpoints:

    def test_last_report_missing(self, client):
        res = client.get("/api/daily-reset/last-report")
        assert res.status_code == 404

    def test_manual_reset_returns_report(self, client, store):
        room = make_room(store, "101", "ready")
        res = client.post("/api/daily-reset/manual")

        assert res.status_code == 200
        body = res.json()
        assert body["date"] == "2025-06-14"
        assert body["trigger"] == "manual"
        assert body["roomMetrics"]["readyRooms"] == 1
        assert body["roomStatuses"][0]["roomNumber"] == "101"
        assert body["roomStatuses"][0]["finalStatus"] == "ready"
        assert client.get("/api/rooms").json()[0]["status"] == "dirty"
        assert room["id"] == body["roomStatuses"][0]["roomId"]

    def test_last_report_matches_manual_result(self, client, store):
        make_room(store, "101", "ready")
        produced = client.post("/api/daily-reset/manual").json()
        assert client.get("/api/daily-reset/last-report").json() == produced

    def test_manual_reset_repeats(self, client, store):
        make_room(store, "101", "ready")
        client.post("/api/daily-reset/manual")
        client.post("/api/daily-reset/manual")
        assert len(client.get("/api/daily-reset/reports").json()) == 2

    def test_reports_limit_validation(self, client):
        assert client.get("/api/daily-reset/reports", params={"limit": 0}).status_code == 400

    def test_status(self, client):
        before = client.get("/api/daily-reset/status").json()
        assert before == {"lastResetDate": None, "nextRunAt": None, "schedulerRunning": False}

        client.post("/api/daily-reset/manual")
        assert client.get("/api/daily-reset/status").json()["lastResetDate"] == "2025-06-14"

    def test_manual_failure_surfaces(self, memory_store, clock):
        app = create_app(memory_store, clock=clock, enable_scheduler=False)

        def broken(*args, **kwargs):
            raise OSError("disk unavailable")

        memory_store.list_rooms = broken
        with TestClient(app) as c:
            res = c.post("/api/daily-reset/manual")
        assert res.status_code == 500
        assert "aggregation" in res.json()["detail"]


class TestCrudEndpoints:

    def test_create_room_and_duplicate(self, client):
        payload = {"number": "301", "type": "Suite", "floor": 3}
        created = client.post("/api/rooms", json=payload)
        assert created.status_code == 201
        assert created.json()["status"] == "dirty"
        assert client.post("/api/rooms", json=payload).status_code == 409

    def test_update_room_status(self, client, store):
        room = make_room(store, "101", "dirty")
        res = client.patch(f"/api/rooms/{room['id']}", json={"status": "clean_inspected"})
        assert res.status_code == 200
        assert res.json()["status"] == "clean_inspected"

    def test_update_room_rejects_unknown_status(self, client, store):
        room = make_room(store, "101", "dirty")
        res = client.patch(f"/api/rooms/{room['id']}", json={"status": "vacant"})
        assert res.status_code == 422

    def test_update_missing_room(self, client):
        assert client.patch("/api/rooms/nope", json={"status": "ready"}).status_code == 404

    def test_archived_task_listing_and_restore(self, client, store):
        room = make_room(store, "101", "dirty")
        task = client.post("/api/tasks", json={"title": "Clean 101", "room_id": room["id"]}).json()
        client.patch(f"/api/tasks/{task['id']}", json={"status": "completed"})

        client.post("/api/daily-reset/manual")
        assert client.get("/api/tasks").json() == []
        archived = client.get("/api/tasks", params={"include_deleted": True}).json()
        assert [t["id"] for t in archived] == [task["id"]]

        restored = client.post(f"/api/tasks/{task['id']}/restore").json()
        assert restored["is_deleted"] is False
        assert [t["id"] for t in client.get("/api/tasks").json()] == [task["id"]]

    def test_blank_task_title(self, client):
        assert client.post("/api/tasks", json={"title": "   "}).status_code == 400

    def test_comment_flow(self, client, store, staff):
        room = make_room(store, "101", "dirty")
        created = client.post("/api/room-comments", json={
            "room_id": room["id"], "user_id": staff["alice"]["id"], "comment": "Lamp broken",
        })
        assert created.status_code == 201
        comment = created.json()
        assert comment["is_system"] is False

        resolved = client.patch(f"/api/room-comments/{comment['id']}", json={"is_resolved": True})
        assert resolved.json()["is_resolved"] is True

        report = client.post("/api/daily-reset/manual").json()
        assert report["roomStatuses"][0]["openComments"] == 0

    def test_system_identity_is_reserved(self, client, store):
        room = make_room(store, "101", "dirty")
        res = client.post("/api/room-comments", json={
            "room_id": room["id"], "user_id": SYSTEM_USER_ID, "comment": "spoof",
        })
        assert res.status_code == 400
        assert client.post("/api/users", json={"name": "X", "email": "x@example.com", "role": "system"}).status_code == 400

    def test_work_orders(self, client):
        created = client.post("/api/workorders", json={"title": "Broken AC", "priority": "urgent"})
        assert created.status_code == 201
        assert created.json()["status"] == "pending"
        assert len(client.get("/api/workorders").json()) == 1

    def test_state_snapshot(self, client, store):
        make_room(store, "101", "dirty")
        state = client.get("/state").json()
        assert set(state) == {"rooms", "tasks", "work_orders", "users"}
        assert len(state["rooms"]) == 1
