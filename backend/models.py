# models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey, JSON
from sqlalchemy.orm import relationship
from database import Base

# Reserved author of automated audit comments; never a real login.
SYSTEM_USER_ID = "system"
SYSTEM_USER_NAME = "System"

REPORT_TYPE_DAILY_RESET = "daily_reset"


def is_system_author(user_id) -> bool:
    return user_id == SYSTEM_USER_ID


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    # Naive UTC, which is what SQLite hands back for DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRoleEnum(str, enum.Enum):
    SiteAdmin = "site_admin"
    HeadHousekeeper = "head_housekeeper"
    RoomAttendant = "room_attendant"
    FrontDeskManager = "front_desk_manager"
    System = "system"

class RoomStatusEnum(str, enum.Enum):
    Dirty = "dirty"
    Clean = "clean"
    Ready = "ready"
    Roll = "roll"
    Out = "out"
    CleanInspected = "clean_inspected"
    OutOfOrder = "out_of_order"
    Maintenance = "maintenance"

class TaskTypeEnum(str, enum.Enum):
    Cleaning = "cleaning"
    Maintenance = "maintenance"
    Alert = "alert"

class TaskStatusEnum(str, enum.Enum):
    Pending = "pending"
    InProgress = "in_progress"
    Paused = "paused"
    Completed = "completed"
    Failed = "failed"

class PriorityEnum(str, enum.Enum):
    Low = "low"
    Medium = "medium"
    High = "high"
    Urgent = "urgent"

class WorkOrderStatusEnum(str, enum.Enum):
    Pending = "pending"
    InProgress = "in_progress"
    OnHold = "on_hold"
    Completed = "completed"
    Cancelled = "cancelled"


def _enum_column(enum_cls, **kwargs):
    # Persist the wire value ("in_progress"), not the member name
    return Column(
        Enum(enum_cls, native_enum=False, values_callable=lambda e: [m.value for m in e], length=32),
        **kwargs,
    )


class User(Base):
    __tablename__ = "users"
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    role = _enum_column(UserRoleEnum, nullable=False, default=UserRoleEnum.RoomAttendant)
    created_at = Column(DateTime, default=utcnow)

class Room(Base):
    __tablename__ = "rooms"
    id = Column(String(32), primary_key=True, default=new_id)
    number = Column(String(20), unique=True, nullable=False)
    type = Column(String(100), nullable=False)
    floor = Column(Integer, nullable=True)
    square_footage = Column(Integer, nullable=True)
    status = _enum_column(RoomStatusEnum, nullable=False, default=RoomStatusEnum.Dirty)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    tasks = relationship("Task", back_populates="room_rel", foreign_keys="Task.room_id")
    comments = relationship("RoomComment", back_populates="room_rel", cascade="all,delete-orphan")

class Task(Base):
    __tablename__ = "tasks"
    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    type = _enum_column(TaskTypeEnum, nullable=False, default=TaskTypeEnum.Cleaning)
    status = _enum_column(TaskStatusEnum, nullable=False, default=TaskStatusEnum.Pending)
    priority = _enum_column(PriorityEnum, nullable=False, default=PriorityEnum.Medium)
    room_id = Column(String(32), ForeignKey("rooms.id"), nullable=True)
    assignee_id = Column(String(32), ForeignKey("users.id"), nullable=True)
    created_by_id = Column(String(32), ForeignKey("users.id"), nullable=True)
    due_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    paused_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    room_rel = relationship("Room", back_populates="tasks", foreign_keys=[room_id])

class WorkOrder(Base):
    __tablename__ = "work_orders"
    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False, default="")
    priority = _enum_column(PriorityEnum, nullable=False, default=PriorityEnum.Medium)
    status = _enum_column(WorkOrderStatusEnum, nullable=False, default=WorkOrderStatusEnum.Pending)
    room_id = Column(String(32), ForeignKey("rooms.id"), nullable=True)
    assignee_id = Column(String(32), ForeignKey("users.id"), nullable=True)
    sla_due_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

class RoomComment(Base):
    __tablename__ = "room_comments"
    id = Column(String(32), primary_key=True, default=new_id)
    room_id = Column(String(32), ForeignKey("rooms.id"), nullable=False)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    priority = _enum_column(PriorityEnum, nullable=False, default=PriorityEnum.Low)
    is_resolved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    room_rel = relationship("Room", back_populates="comments")

    @property
    def is_system(self) -> bool:
        return is_system_author(self.user_id)

class ReportRun(Base):
    """Append-only report history; rows are never updated."""
    __tablename__ = "report_runs"
    id = Column(String(32), primary_key=True, default=new_id)
    type = Column(String(50), nullable=False, index=True)
    params = Column(JSON, nullable=False, default=dict)
    results = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
