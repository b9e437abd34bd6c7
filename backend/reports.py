# reports.py — end-of-day snapshot taken by the daily reset
from datetime import date, datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from models import RoomStatusEnum, TaskStatusEnum, WorkOrderStatusEnum

OPEN_TASK_STATUSES = (TaskStatusEnum.Pending.value, TaskStatusEnum.InProgress.value)
OPEN_WORK_ORDER_STATUSES = (WorkOrderStatusEnum.Pending.value, WorkOrderStatusEnum.InProgress.value)


class ReportModel(BaseModel):
    # camelCase on the wire and in storage, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RoomStatusRow(ReportModel):
    room_id: str
    room_number: str
    final_status: RoomStatusEnum
    assigned_user: Optional[str] = None
    completed_tasks: int = 0
    open_comments: int = 0


class TasksSummary(ReportModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0


class WorkOrdersSummary(ReportModel):
    total_work_orders: int = 0
    completed_work_orders: int = 0
    pending_work_orders: int = 0


class RoomMetrics(ReportModel):
    total_rooms: int = 0
    dirty_rooms: int = 0
    clean_rooms: int = 0
    ready_rooms: int = 0
    roll_rooms: int = 0
    out_rooms: int = 0
    clean_inspected_rooms: int = 0
    out_of_order_rooms: int = 0
    maintenance_rooms: int = 0


class DailyResetReport(ReportModel):
    date: date
    room_statuses: List[RoomStatusRow] = []
    tasks_summary: TasksSummary = TasksSummary()
    work_orders_summary: WorkOrdersSummary = WorkOrdersSummary()
    room_metrics: RoomMetrics = RoomMetrics()
    reset_time: datetime
    trigger: Optional[str] = None

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_storage(cls, payload: dict) -> "DailyResetReport":
        return cls.model_validate(payload)


def _status(room: dict) -> RoomStatusEnum:
    return RoomStatusEnum(room.get("status") or RoomStatusEnum.Dirty)


def aggregate(
    as_of_date: date,
    rooms: Iterable[dict],
    tasks: Iterable[dict],
    work_orders: Iterable[dict],
    comments: Iterable[dict],
    users: Iterable[dict],
    reset_time: datetime,
    trigger: Optional[str] = None,
) -> DailyResetReport:
    """Build the daily report from one snapshot of the collections.

    Pure: nothing is read or written here. Soft-deleted tasks are ignored.
    Every room gets exactly one row, and an assignee id that no longer
    resolves to a user leaves ``assigned_user`` empty.
    """
    rooms = list(rooms)
    tasks = [t for t in tasks if not t.get("is_deleted")]
    work_orders = list(work_orders)
    user_names = {u["id"]: u.get("name") for u in users}

    tasks_by_room = {}
    for t in tasks:
        if t.get("room_id") is not None:
            tasks_by_room.setdefault(t["room_id"], []).append(t)

    open_comments = {}
    for c in comments:
        if not c.get("is_resolved"):
            open_comments[c["room_id"]] = open_comments.get(c["room_id"], 0) + 1

    rows = []
    for room in rooms:
        room_tasks = tasks_by_room.get(room["id"], [])
        active = next((t for t in room_tasks if t.get("status") in OPEN_TASK_STATUSES), None)
        assignee = user_names.get(active.get("assignee_id")) if active else None
        rows.append(RoomStatusRow(
            room_id=room["id"],
            room_number=room["number"],
            final_status=_status(room),
            assigned_user=assignee,
            completed_tasks=sum(1 for t in room_tasks if t.get("status") == TaskStatusEnum.Completed.value),
            open_comments=open_comments.get(room["id"], 0),
        ))

    tasks_summary = TasksSummary(
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.get("status") == TaskStatusEnum.Completed.value),
        pending_tasks=sum(1 for t in tasks if t.get("status") in OPEN_TASK_STATUSES),
    )
    work_orders_summary = WorkOrdersSummary(
        total_work_orders=len(work_orders),
        completed_work_orders=sum(1 for w in work_orders if w.get("status") == WorkOrderStatusEnum.Completed.value),
        pending_work_orders=sum(1 for w in work_orders if w.get("status") in OPEN_WORK_ORDER_STATUSES),
    )

    counts = {s: 0 for s in RoomStatusEnum}
    for room in rooms:
        counts[_status(room)] += 1
    room_metrics = RoomMetrics(
        total_rooms=len(rooms),
        **{f"{status.value}_rooms": n for status, n in counts.items()},
    )

    return DailyResetReport(
        date=as_of_date,
        room_statuses=rows,
        tasks_summary=tasks_summary,
        work_orders_summary=work_orders_summary,
        room_metrics=room_metrics,
        reset_time=reset_time,
        trigger=trigger,
    )
