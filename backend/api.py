# api.py — FastAPI routes over any data-access store (memory or database)
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

import config
from daily_reset import DailyResetError, DailyResetService, ResetTrigger
from models import (
    UserRoleEnum, RoomStatusEnum, TaskTypeEnum, TaskStatusEnum, PriorityEnum, WorkOrderStatusEnum,
    is_system_author,
)
from reports import DailyResetReport, ReportModel
from scheduler import ResetScheduler

logger = logging.getLogger(__name__)


# ----- Pydantic payloads -----
class UserIn(BaseModel):
    name: str
    email: str
    role: UserRoleEnum = UserRoleEnum.RoomAttendant

class RoomIn(BaseModel):
    number: str
    type: str
    floor: Optional[int] = None
    square_footage: Optional[int] = None
    status: RoomStatusEnum = RoomStatusEnum.Dirty

class RoomUpdate(BaseModel):
    status: RoomStatusEnum

class TaskIn(BaseModel):
    title: str
    description: Optional[str] = None
    type: TaskTypeEnum = TaskTypeEnum.Cleaning
    priority: PriorityEnum = PriorityEnum.Medium
    room_id: Optional[str] = None
    assignee_id: Optional[str] = None
    created_by_id: Optional[str] = None
    due_at: Optional[datetime] = None
    notes: Optional[str] = None

class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatusEnum] = None
    priority: Optional[PriorityEnum] = None
    assignee_id: Optional[str] = None
    started_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    notes: Optional[str] = None

class WorkOrderIn(BaseModel):
    title: str
    description: str = ""
    priority: PriorityEnum = PriorityEnum.Medium
    status: WorkOrderStatusEnum = WorkOrderStatusEnum.Pending
    room_id: Optional[str] = None
    assignee_id: Optional[str] = None
    sla_due_at: Optional[datetime] = None

class CommentIn(BaseModel):
    room_id: str
    user_id: str
    comment: str
    priority: PriorityEnum = PriorityEnum.Low

class CommentUpdate(BaseModel):
    comment: Optional[str] = None
    priority: Optional[PriorityEnum] = None
    is_resolved: Optional[bool] = None

class ResetStatus(ReportModel):
    last_reset_date: Optional[date] = None
    next_run_at: Optional[datetime] = None
    scheduler_running: bool = False


def _payload(model: BaseModel) -> dict:
    """Only the fields the caller actually sent."""
    return model.model_dump(exclude_unset=True)


# ----- Dependencies -----
def get_store(request: Request):
    return request.app.state.store

def get_reset_service(request: Request) -> DailyResetService:
    return request.app.state.reset_service

def get_scheduler(request: Request) -> ResetScheduler:
    return request.app.state.scheduler


def create_app(store, *, title: str = "Housekeeping Management System API", clock=None,
               enable_scheduler: Optional[bool] = None) -> FastAPI:
    """Build the app around one store, one reset service and one scheduler."""
    if enable_scheduler is None:
        enable_scheduler = config.DAILY_RESET_ENABLED

    reset_service = DailyResetService(store, clock=clock)
    scheduler = ResetScheduler(reset_service, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if enable_scheduler:
            scheduler.start()
        else:
            logger.info("Daily reset scheduler disabled")
        try:
            yield
        finally:
            scheduler.stop()

    app = FastAPI(title=title, lifespan=lifespan)
    app.state.store = store
    app.state.reset_service = reset_service
    app.state.scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----- Routes -----
    @app.get("/")
    def root():
        return {"message": "Housekeeping Management System API is running"}

    @app.get("/state")
    def get_state(store=Depends(get_store)):
        """Rooms, tasks, work orders and users in one call."""
        return {
            "rooms": store.list_rooms(),
            "tasks": store.list_tasks(),
            "work_orders": store.list_work_orders(),
            "users": store.list_users(),
        }

    # Users
    @app.get("/api/users")
    def list_users(store=Depends(get_store)):
        return store.list_users()

    @app.post("/api/users", status_code=201)
    def add_user(payload: UserIn, store=Depends(get_store)):
        if payload.role is UserRoleEnum.System:
            raise HTTPException(400, "The system role is reserved.")
        try:
            return store.create_user(_payload(payload) | {"name": payload.name.strip(), "role": payload.role.value})
        except ValueError as e:
            raise HTTPException(409, str(e))

    # Rooms
    @app.get("/api/rooms")
    def list_rooms(store=Depends(get_store)):
        return store.list_rooms()

    @app.post("/api/rooms", status_code=201)
    def add_room(payload: RoomIn, store=Depends(get_store)):
        try:
            return store.create_room(payload.model_dump())
        except ValueError as e:
            raise HTTPException(409, str(e))

    @app.patch("/api/rooms/{room_id}")
    def update_room(room_id: str, payload: RoomUpdate, store=Depends(get_store)):
        try:
            return store.update_room(room_id, _payload(payload))
        except LookupError as e:
            raise HTTPException(404, str(e))

    # Tasks
    @app.get("/api/tasks")
    def list_tasks(include_deleted: bool = False, store=Depends(get_store)):
        return store.list_tasks(include_deleted=include_deleted)

    @app.post("/api/tasks", status_code=201)
    def add_task(payload: TaskIn, store=Depends(get_store)):
        if not payload.title.strip():
            raise HTTPException(400, "Task title required.")
        try:
            return store.create_task(_payload(payload) | {"title": payload.title.strip()})
        except LookupError as e:
            raise HTTPException(404, str(e))

    @app.patch("/api/tasks/{task_id}")
    def update_task(task_id: str, payload: TaskUpdate, store=Depends(get_store)):
        try:
            return store.update_task(task_id, _payload(payload))
        except LookupError as e:
            raise HTTPException(404, str(e))
        except ValueError as e:
            raise HTTPException(400, str(e))

    @app.post("/api/tasks/{task_id}/restore")
    def restore_task(task_id: str, store=Depends(get_store)):
        """Bring an archived task back into default listings."""
        try:
            return store.update_task(task_id, {"is_deleted": False})
        except LookupError as e:
            raise HTTPException(404, str(e))

    # Work orders
    @app.get("/api/workorders")
    def list_work_orders(store=Depends(get_store)):
        return store.list_work_orders()

    @app.post("/api/workorders", status_code=201)
    def add_work_order(payload: WorkOrderIn, store=Depends(get_store)):
        try:
            return store.create_work_order(payload.model_dump())
        except LookupError as e:
            raise HTTPException(404, str(e))

    # Room comments
    @app.get("/api/room-comments")
    def list_room_comments(room_id: Optional[str] = None, store=Depends(get_store)):
        return store.list_room_comments(room_id=room_id)

    @app.post("/api/room-comments", status_code=201)
    def add_room_comment(payload: CommentIn, store=Depends(get_store)):
        if is_system_author(payload.user_id):
            raise HTTPException(400, "The system identity is reserved for automated comments.")
        if not payload.comment.strip():
            raise HTTPException(400, "Comment text required.")
        try:
            return store.create_room_comment(payload.model_dump())
        except LookupError as e:
            raise HTTPException(404, str(e))

    @app.patch("/api/room-comments/{comment_id}")
    def update_room_comment(comment_id: str, payload: CommentUpdate, store=Depends(get_store)):
        try:
            return store.update_room_comment(comment_id, _payload(payload))
        except LookupError as e:
            raise HTTPException(404, str(e))

    # Daily reset
    @app.post("/api/daily-reset/manual", response_model=DailyResetReport)
    def manual_reset(service: DailyResetService = Depends(get_reset_service)):
        """Force a reset now, even if one already ran today."""
        try:
            return service.run(ResetTrigger.Manual)
        except DailyResetError as e:
            logger.error("Manual daily reset failed: %s", e)
            raise HTTPException(500, str(e))

    @app.get("/api/daily-reset/last-report", response_model=DailyResetReport)
    def last_reset_report(service: DailyResetService = Depends(get_reset_service)):
        report = service.last_report()
        if report is None:
            raise HTTPException(404, "No daily reset report yet.")
        return report

    @app.get("/api/daily-reset/reports", response_model=List[DailyResetReport])
    def recent_reset_reports(limit: int = 4, service: DailyResetService = Depends(get_reset_service)):
        if limit < 1:
            raise HTTPException(400, "limit must be positive.")
        return service.recent_reports(limit)

    @app.get("/api/daily-reset/status", response_model=ResetStatus)
    def reset_status(service: DailyResetService = Depends(get_reset_service),
                     scheduler: ResetScheduler = Depends(get_scheduler)):
        return ResetStatus(
            last_reset_date=service.last_reset_date,
            next_run_at=scheduler.next_run_at,
            scheduler_running=scheduler.running,
        )

    return app
