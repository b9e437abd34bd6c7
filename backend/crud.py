# crud.py
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import select
from models import (
    User, Room, Task, WorkOrder, RoomComment, ReportRun,
    UserRoleEnum, RoomStatusEnum, TaskTypeEnum, TaskStatusEnum, PriorityEnum, WorkOrderStatusEnum,
    SYSTEM_USER_ID, SYSTEM_USER_NAME, is_system_author, utcnow,
)

# Columns holding enums, per model, so callers may pass plain strings
ENUM_FIELDS = {
    User: {"role": UserRoleEnum},
    Room: {"status": RoomStatusEnum},
    Task: {"type": TaskTypeEnum, "status": TaskStatusEnum, "priority": PriorityEnum},
    WorkOrder: {"priority": PriorityEnum, "status": WorkOrderStatusEnum},
    RoomComment: {"priority": PriorityEnum},
}
READ_ONLY_FIELDS = {"id", "created_at"}


# ----- Helpers: serializers -----
def _value(v):
    return v.value if hasattr(v, "value") else v

def s_user(u: User) -> dict:
    return {"id": u.id, "name": u.name, "email": u.email, "role": _value(u.role), "created_at": u.created_at}

def s_room(r: Room) -> dict:
    return {
        "id": r.id, "number": r.number, "type": r.type, "floor": r.floor,
        "square_footage": r.square_footage, "status": _value(r.status),
        "created_at": r.created_at, "updated_at": r.updated_at,
    }

def s_task(t: Task) -> dict:
    return {
        "id": t.id, "title": t.title, "description": t.description, "type": _value(t.type),
        "status": _value(t.status), "priority": _value(t.priority), "room_id": t.room_id,
        "assignee_id": t.assignee_id, "created_by_id": t.created_by_id, "due_at": t.due_at,
        "started_at": t.started_at, "paused_at": t.paused_at, "finished_at": t.finished_at,
        "notes": t.notes, "is_deleted": bool(t.is_deleted),
        "created_at": t.created_at, "updated_at": t.updated_at,
    }

def s_work_order(w: WorkOrder) -> dict:
    return {
        "id": w.id, "title": w.title, "description": w.description, "priority": _value(w.priority),
        "status": _value(w.status), "room_id": w.room_id, "assignee_id": w.assignee_id,
        "sla_due_at": w.sla_due_at, "closed_at": w.closed_at,
        "created_at": w.created_at, "updated_at": w.updated_at,
    }

def s_comment(c: RoomComment) -> dict:
    return {
        "id": c.id, "room_id": c.room_id, "user_id": c.user_id, "comment": c.comment,
        "priority": _value(c.priority), "is_resolved": bool(c.is_resolved), "is_system": c.is_system,
        "created_at": c.created_at, "updated_at": c.updated_at,
    }

def s_report_run(r: ReportRun) -> dict:
    return {"id": r.id, "type": r.type, "params": r.params, "results": r.results, "created_at": r.created_at}


def _coerce(model, fields: dict) -> dict:
    columns = model.__table__.c
    enums = ENUM_FIELDS.get(model, {})
    out = {}
    for k, v in fields.items():
        if k not in columns:
            raise ValueError(f"Unknown field '{k}' for {model.__tablename__}.")
        if k in enums and v is not None:
            v = enums[k](_value(v))
        out[k] = v
    return out

def _apply_updates(obj, fields: dict):
    for k, v in _coerce(type(obj), fields).items():
        if k in READ_ONLY_FIELDS:
            raise ValueError(f"Field '{k}' cannot be changed.")
        setattr(obj, k, v)
    if "updated_at" in type(obj).__table__.c:
        obj.updated_at = utcnow()

def _require(db: Session, model, obj_id, label: str):
    obj = db.get(model, obj_id) if obj_id is not None else None
    if not obj:
        raise LookupError(f"{label} not found.")
    return obj


# ----- Users -----
def ensure_system_user(db: Session) -> User:
    u = db.get(User, SYSTEM_USER_ID)
    if not u:
        u = User(id=SYSTEM_USER_ID, name=SYSTEM_USER_NAME, email="system@localhost", role=UserRoleEnum.System)
        db.add(u)
        db.commit()
    return u

def list_users(db: Session) -> List[dict]:
    return [s_user(u) for u in db.execute(select(User)).scalars().all()]

def create_user(db: Session, **fields) -> dict:
    exists = db.execute(select(User).where(User.email.ilike(fields.get("email", "")))).scalar_one_or_none()
    if exists:
        raise ValueError("User already exists.")
    u = User(**_coerce(User, fields))
    db.add(u)
    db.commit()
    return s_user(u)


# ----- Rooms -----
def list_rooms(db: Session) -> List[dict]:
    return [s_room(r) for r in db.execute(select(Room).order_by(Room.number)).scalars().all()]

def create_room(db: Session, **fields) -> dict:
    exists = db.execute(select(Room).where(Room.number == fields.get("number"))).scalar_one_or_none()
    if exists:
        raise ValueError("Room number already exists.")
    r = Room(**_coerce(Room, fields))
    db.add(r)
    db.commit()
    return s_room(r)

def update_room(db: Session, room_id: str, fields: dict) -> dict:
    r = _require(db, Room, room_id, "Room")
    _apply_updates(r, fields)
    db.commit()
    return s_room(r)


# ----- Tasks -----
def list_tasks(db: Session, include_deleted: bool = False) -> List[dict]:
    stmt = select(Task).order_by(Task.created_at)
    if not include_deleted:
        stmt = stmt.where(Task.is_deleted.is_(False))
    return [s_task(t) for t in db.execute(stmt).scalars().all()]

def create_task(db: Session, **fields) -> dict:
    if fields.get("room_id") is not None:
        _require(db, Room, fields["room_id"], "Room")
    if fields.get("assignee_id") is not None:
        _require(db, User, fields["assignee_id"], "Assignee")
    t = Task(**_coerce(Task, fields))
    db.add(t)
    db.commit()
    return s_task(t)

def update_task(db: Session, task_id: str, fields: dict) -> dict:
    t = _require(db, Task, task_id, "Task")
    _apply_updates(t, fields)
    db.commit()
    return s_task(t)


# ----- Work orders -----
def list_work_orders(db: Session) -> List[dict]:
    return [s_work_order(w) for w in db.execute(select(WorkOrder).order_by(WorkOrder.created_at)).scalars().all()]

def create_work_order(db: Session, **fields) -> dict:
    if fields.get("room_id") is not None:
        _require(db, Room, fields["room_id"], "Room")
    w = WorkOrder(**_coerce(WorkOrder, fields))
    db.add(w)
    db.commit()
    return s_work_order(w)


# ----- Room comments -----
def list_room_comments(db: Session, room_id: Optional[str] = None) -> List[dict]:
    stmt = select(RoomComment).order_by(RoomComment.created_at.desc())
    if room_id is not None:
        stmt = stmt.where(RoomComment.room_id == room_id)
    return [s_comment(c) for c in db.execute(stmt).scalars().all()]

def create_room_comment(db: Session, **fields) -> dict:
    _require(db, Room, fields.get("room_id"), "Room")
    if is_system_author(fields.get("user_id")):
        ensure_system_user(db)
    else:
        _require(db, User, fields.get("user_id"), "User")
    c = RoomComment(**_coerce(RoomComment, fields))
    db.add(c)
    db.commit()
    return s_comment(c)

def update_room_comment(db: Session, comment_id: str, fields: dict) -> dict:
    c = _require(db, RoomComment, comment_id, "Comment")
    _apply_updates(c, fields)
    db.commit()
    return s_comment(c)


# ----- Report runs -----
def create_report_run(db: Session, type_: str, params: dict, results: Optional[dict] = None) -> dict:
    r = ReportRun(type=type_, params=params, results=results)
    db.add(r)
    db.commit()
    return s_report_run(r)

def list_report_runs(db: Session) -> List[dict]:
    return [s_report_run(r) for r in db.execute(select(ReportRun).order_by(ReportRun.created_at)).scalars().all()]


class DbStore:
    """Data-access collaborator over SQLAlchemy.

    Every call opens its own session and commits on its own, so a room
    update and the audit comment that follows it are two separate writes.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _call(self, fn, *args, **kwargs):
        with self.session_factory() as db:
            return fn(db, *args, **kwargs)

    def list_users(self):
        return self._call(list_users)

    def create_user(self, data: dict):
        return self._call(create_user, **data)

    def list_rooms(self):
        return self._call(list_rooms)

    def create_room(self, data: dict):
        return self._call(create_room, **data)

    def update_room(self, room_id, partial: dict):
        return self._call(update_room, room_id, partial)

    def list_tasks(self, include_deleted: bool = False):
        return self._call(list_tasks, include_deleted=include_deleted)

    def create_task(self, data: dict):
        return self._call(create_task, **data)

    def update_task(self, task_id, partial: dict):
        return self._call(update_task, task_id, partial)

    def list_work_orders(self):
        return self._call(list_work_orders)

    def create_work_order(self, data: dict):
        return self._call(create_work_order, **data)

    def list_room_comments(self, room_id=None):
        return self._call(list_room_comments, room_id=room_id)

    def create_room_comment(self, data: dict):
        return self._call(create_room_comment, **data)

    def update_room_comment(self, comment_id, partial: dict):
        return self._call(update_room_comment, comment_id, partial)

    def create_report_run(self, data: dict):
        return self._call(create_report_run, data["type"], data.get("params", {}), data.get("results"))

    def list_report_runs(self):
        return self._call(list_report_runs)
