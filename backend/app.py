# ------------------------------------------------------------
# app.py — Standalone in-memory backend for the
#          Housekeeping Management System
#          (no database; state lives for the life of the process)
# ------------------------------------------------------------
import copy
import threading
from typing import Dict, List

import config
from api import create_app
from models import (
    UserRoleEnum, RoomStatusEnum, TaskTypeEnum, TaskStatusEnum, PriorityEnum, WorkOrderStatusEnum,
    SYSTEM_USER_ID, SYSTEM_USER_NAME, is_system_author, new_id, utcnow,
)

# ------------------------------------------------------------
# Field rules shared by every collection
# ------------------------------------------------------------
FIELDS = {
    "users": {"name", "email", "role", "created_at"},
    "rooms": {"number", "type", "floor", "square_footage", "status", "created_at", "updated_at"},
    "tasks": {
        "title", "description", "type", "status", "priority", "room_id", "assignee_id", "created_by_id",
        "due_at", "started_at", "paused_at", "finished_at", "notes", "is_deleted", "created_at", "updated_at",
    },
    "work_orders": {
        "title", "description", "priority", "status", "room_id", "assignee_id",
        "sla_due_at", "closed_at", "created_at", "updated_at",
    },
    "room_comments": {"room_id", "user_id", "comment", "priority", "is_resolved", "created_at", "updated_at"},
}

DEFAULTS = {
    "users": {"role": UserRoleEnum.RoomAttendant.value},
    "rooms": {"floor": None, "square_footage": None, "status": RoomStatusEnum.Dirty.value},
    "tasks": {
        "description": None, "type": TaskTypeEnum.Cleaning.value, "status": TaskStatusEnum.Pending.value,
        "priority": PriorityEnum.Medium.value, "room_id": None, "assignee_id": None, "created_by_id": None,
        "due_at": None, "started_at": None, "paused_at": None, "finished_at": None, "notes": None,
        "is_deleted": False,
    },
    "work_orders": {
        "description": "", "priority": PriorityEnum.Medium.value, "status": WorkOrderStatusEnum.Pending.value,
        "room_id": None, "assignee_id": None, "sla_due_at": None, "closed_at": None,
    },
    "room_comments": {"priority": PriorityEnum.Low.value, "is_resolved": False},
}

ENUMS = {
    "users": {"role": UserRoleEnum},
    "rooms": {"status": RoomStatusEnum},
    "tasks": {"type": TaskTypeEnum, "status": TaskStatusEnum, "priority": PriorityEnum},
    "work_orders": {"priority": PriorityEnum, "status": WorkOrderStatusEnum},
    "room_comments": {"priority": PriorityEnum},
}

LABELS = {"users": "User", "rooms": "Room", "tasks": "Task", "work_orders": "Work order", "room_comments": "Comment"}


class MemoryStore:
    """Data-access collaborator keeping every collection in process memory.

    Records go in and come out as copies, and report payloads are kept in
    their JSON form, so callers see the same boundary as with DbStore.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._data: Dict[str, List[dict]] = {name: [] for name in FIELDS}
        self._report_runs: List[dict] = []
        self._insert(
            "users",
            {"id": SYSTEM_USER_ID, "name": SYSTEM_USER_NAME, "email": "system@localhost", "role": UserRoleEnum.System.value},
        )

    # ---------------- internals ----------------
    def _clean(self, collection: str, fields: dict) -> dict:
        allowed = FIELDS[collection]
        enums = ENUMS.get(collection, {})
        out = {}
        for k, v in fields.items():
            if k not in allowed:
                raise ValueError(f"Unknown field '{k}' for {collection}.")
            if k in enums and v is not None:
                v = enums[k](getattr(v, "value", v)).value
            out[k] = v
        return out

    def _find(self, collection: str, record_id) -> dict:
        for rec in self._data[collection]:
            if rec["id"] == record_id:
                return rec
        raise LookupError(f"{LABELS[collection]} not found.")

    def _insert(self, collection: str, fields: dict) -> dict:
        record_id = fields.pop("id", None) or new_id()
        now = utcnow()
        rec = {"id": record_id, **DEFAULTS.get(collection, {}), **self._clean(collection, fields)}
        rec.setdefault("created_at", now)
        if "updated_at" in FIELDS[collection]:
            rec.setdefault("updated_at", now)
        self._data[collection].append(rec)
        return rec

    def _update(self, collection: str, record_id, partial: dict) -> dict:
        fields = self._clean(collection, partial)
        if "created_at" in fields:
            raise ValueError("Field 'created_at' cannot be changed.")
        rec = self._find(collection, record_id)
        rec.update(fields)
        rec["updated_at"] = utcnow()
        return rec

    @staticmethod
    def _comment_view(rec: dict) -> dict:
        return {**rec, "is_system": is_system_author(rec["user_id"])}

    # ---------------- users ----------------
    def list_users(self) -> List[dict]:
        with self._lock:
            return [dict(u) for u in self._data["users"]]

    def create_user(self, data: dict) -> dict:
        with self._lock:
            email = (data.get("email") or "").lower()
            if any(u["email"].lower() == email for u in self._data["users"]):
                raise ValueError("User already exists.")
            return dict(self._insert("users", dict(data)))

    # ---------------- rooms ----------------
    def list_rooms(self) -> List[dict]:
        with self._lock:
            return [dict(r) for r in sorted(self._data["rooms"], key=lambda r: r["number"])]

    def create_room(self, data: dict) -> dict:
        with self._lock:
            if any(r["number"] == data.get("number") for r in self._data["rooms"]):
                raise ValueError("Room number already exists.")
            return dict(self._insert("rooms", dict(data)))

    def update_room(self, room_id, partial: dict) -> dict:
        with self._lock:
            return dict(self._update("rooms", room_id, partial))

    # ---------------- tasks ----------------
    def list_tasks(self, include_deleted: bool = False) -> List[dict]:
        with self._lock:
            return [dict(t) for t in self._data["tasks"] if include_deleted or not t["is_deleted"]]

    def create_task(self, data: dict) -> dict:
        with self._lock:
            if data.get("room_id") is not None:
                self._find("rooms", data["room_id"])
            if data.get("assignee_id") is not None:
                self._find("users", data["assignee_id"])
            return dict(self._insert("tasks", dict(data)))

    def update_task(self, task_id, partial: dict) -> dict:
        with self._lock:
            return dict(self._update("tasks", task_id, partial))

    # ---------------- work orders ----------------
    def list_work_orders(self) -> List[dict]:
        with self._lock:
            return [dict(w) for w in self._data["work_orders"]]

    def create_work_order(self, data: dict) -> dict:
        with self._lock:
            if data.get("room_id") is not None:
                self._find("rooms", data["room_id"])
            return dict(self._insert("work_orders", dict(data)))

    # ---------------- room comments ----------------
    def list_room_comments(self, room_id=None) -> List[dict]:
        with self._lock:
            comments = [c for c in self._data["room_comments"] if room_id is None or c["room_id"] == room_id]
            # newest first; reversed() keeps later inserts ahead on equal timestamps
            ordered = sorted(reversed(comments), key=lambda c: c["created_at"], reverse=True)
            return [self._comment_view(c) for c in ordered]

    def create_room_comment(self, data: dict) -> dict:
        with self._lock:
            self._find("rooms", data.get("room_id"))
            self._find("users", data.get("user_id"))
            return self._comment_view(self._insert("room_comments", dict(data)))

    def update_room_comment(self, comment_id, partial: dict) -> dict:
        with self._lock:
            return self._comment_view(self._update("room_comments", comment_id, partial))

    # ---------------- report runs ----------------
    def create_report_run(self, data: dict) -> dict:
        with self._lock:
            run = {
                "id": new_id(),
                "type": data["type"],
                "params": copy.deepcopy(data.get("params", {})),
                "results": copy.deepcopy(data.get("results")),
                "created_at": utcnow(),
            }
            self._report_runs.append(run)
            return copy.deepcopy(run)

    def list_report_runs(self) -> List[dict]:
        with self._lock:
            return copy.deepcopy(self._report_runs)


# ------------------------------------------------------------
# Sample data for demos and local development
# ------------------------------------------------------------
SAMPLE_USERS = [
    {"name": "Alice Johnson", "email": "alice@example.com", "role": "room_attendant"},
    {"name": "Bob Smith", "email": "bob@example.com", "role": "room_attendant"},
    {"name": "Grace Taylor", "email": "grace@example.com", "role": "head_housekeeper"},
    {"name": "Diana Miller", "email": "diana@example.com", "role": "front_desk_manager"},
]

SAMPLE_ROOMS = [
    {"number": "101", "type": "Standard", "floor": 1, "square_footage": 300, "status": "ready"},
    {"number": "102", "type": "Standard", "floor": 1, "square_footage": 300, "status": "dirty"},
    {"number": "103", "type": "Double", "floor": 1, "square_footage": 380, "status": "roll"},
    {"number": "104", "type": "Double", "floor": 1, "square_footage": 380, "status": "clean_inspected"},
    {"number": "201", "type": "Suite", "floor": 2, "square_footage": 520, "status": "out_of_order"},
    {"number": "202", "type": "Suite", "floor": 2, "square_footage": 520, "status": "maintenance"},
    {"number": "203", "type": "Standard", "floor": 2, "square_footage": 300, "status": "out"},
]


def sample_store() -> MemoryStore:
    store = MemoryStore()
    users = {u["name"]: store.create_user(u) for u in SAMPLE_USERS}
    rooms = {r["number"]: store.create_room(r) for r in SAMPLE_ROOMS}
    manager = users["Grace Taylor"]["id"]

    store.create_task({"title": "Room 102 – Standard Clean", "room_id": rooms["102"]["id"],
                       "assignee_id": users["Alice Johnson"]["id"], "created_by_id": manager})
    store.create_task({"title": "Room 104 – Deep Clean", "room_id": rooms["104"]["id"],
                       "assignee_id": users["Bob Smith"]["id"], "created_by_id": manager,
                       "status": "completed", "finished_at": utcnow()})
    store.create_task({"title": "Room 103 – Towels", "room_id": rooms["103"]["id"],
                       "assignee_id": users["Bob Smith"]["id"], "created_by_id": manager, "status": "in_progress"})
    store.create_work_order({"title": "AC unit rattling", "description": "Guest reported noise from the AC.",
                             "room_id": rooms["202"]["id"], "priority": "high"})
    store.create_room_comment({"room_id": rooms["201"]["id"], "user_id": users["Diana Miller"]["id"],
                               "comment": "Water damage under the window.", "priority": "high"})
    return store


# ------------------------------------------------------------
# FastAPI app
# ------------------------------------------------------------
config.configure_logging()
app = create_app(sample_store(), title="Housekeeping Management System API")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
