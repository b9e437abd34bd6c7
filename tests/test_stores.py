"""Contract tests shared by MemoryStore and DbStore."""

import pytest

from conftest import make_room
from models import SYSTEM_USER_ID


class TestRooms:

    def test_status_stored_as_value(self, store):
        room = make_room(store, "101", "clean_inspected")
        assert room["status"] == "clean_inspected"
        assert store.list_rooms()[0]["status"] == "clean_inspected"

    def test_update_unknown_room(self, store):
        with pytest.raises(LookupError):
            store.update_room("missing", {"status": "ready"})

    def test_update_rejects_bad_status(self, store):
        room = make_room(store, "101", "dirty")
        with pytest.raises(ValueError):
            store.update_room(room["id"], {"status": "vacant"})

    def test_update_rejects_unknown_field(self, store):
        room = make_room(store, "101", "dirty")
        with pytest.raises(ValueError):
            store.update_room(room["id"], {"colour": "blue"})

    def test_duplicate_number(self, store):
        make_room(store, "101", "dirty")
        with pytest.raises(ValueError):
            make_room(store, "101", "ready")

    def test_update_touches_updated_at(self, store):
        room = make_room(store, "101", "dirty")
        updated = store.update_room(room["id"], {"status": "ready"})
        assert updated["updated_at"] >= room["updated_at"]
        assert updated["created_at"] == room["created_at"]


class TestTasks:

    def test_soft_deleted_hidden_by_default(self, store):
        keep = store.create_task({"title": "Keep"})
        gone = store.create_task({"title": "Gone"})
        store.update_task(gone["id"], {"is_deleted": True})

        assert [t["id"] for t in store.list_tasks()] == [keep["id"]]
        assert {t["id"] for t in store.list_tasks(include_deleted=True)} == {keep["id"], gone["id"]}

    def test_defaults(self, store):
        task = store.create_task({"title": "Clean"})
        assert task["status"] == "pending"
        assert task["type"] == "cleaning"
        assert task["priority"] == "medium"
        assert task["is_deleted"] is False

    def test_unknown_room_rejected(self, store):
        with pytest.raises(LookupError):
            store.create_task({"title": "Clean", "room_id": "missing"})


class TestComments:

    def test_system_user_present(self, store):
        users = {u["id"]: u for u in store.list_users()}
        assert users[SYSTEM_USER_ID]["role"] == "system"

    def test_system_comment_flagged(self, store, staff):
        room = make_room(store, "101", "dirty")
        auto = store.create_room_comment({"room_id": room["id"], "user_id": SYSTEM_USER_ID, "comment": "auto"})
        human = store.create_room_comment({"room_id": room["id"], "user_id": staff["bob"]["id"], "comment": "hi"})
        assert auto["is_system"] is True
        assert human["is_system"] is False
        assert auto["priority"] == "low"
        assert auto["is_resolved"] is False

    def test_newest_first_and_filtered(self, store, staff):
        a = make_room(store, "101", "dirty")
        b = make_room(store, "102", "dirty")
        first = store.create_room_comment({"room_id": a["id"], "user_id": staff["bob"]["id"], "comment": "1"})
        second = store.create_room_comment({"room_id": a["id"], "user_id": staff["bob"]["id"], "comment": "2"})
        store.create_room_comment({"room_id": b["id"], "user_id": staff["bob"]["id"], "comment": "3"})

        assert [c["id"] for c in store.list_room_comments(room_id=a["id"])] == [second["id"], first["id"]]
        assert len(store.list_room_comments()) == 3

    def test_unknown_room_rejected(self, store, staff):
        with pytest.raises(LookupError):
            store.create_room_comment({"room_id": "missing", "user_id": staff["bob"]["id"], "comment": "x"})


class TestReportRuns:

    def test_append_only_history(self, store):
        first = store.create_report_run({"type": "daily_reset", "params": {"date": "2025-06-14"}, "results": {"a": 1}})
        store.create_report_run({"type": "daily_reset", "params": {"date": "2025-06-15"}, "results": {"a": 2}})

        runs = store.list_report_runs()
        assert [r["results"] for r in runs] == [{"a": 1}, {"a": 2}]
        assert runs[0]["id"] == first["id"]
        assert runs[0]["params"] == {"date": "2025-06-14"}

    def test_results_isolated_from_caller(self, memory_store):
        payload = {"rows": [1]}
        memory_store.create_report_run({"type": "daily_reset", "params": {}, "results": payload})
        payload["rows"].append(2)
        memory_store.list_report_runs()[0]["results"]["rows"].append(3)
        assert memory_store.list_report_runs()[0]["results"] == {"rows": [1]}
