# daily_reset.py — the nightly room turnover and report run
import enum
import logging
import threading
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional

import config
from models import REPORT_TYPE_DAILY_RESET, SYSTEM_USER_ID, PriorityEnum, RoomStatusEnum, TaskStatusEnum
from reports import DailyResetReport, aggregate
from room_status import next_status

logger = logging.getLogger(__name__)


class ResetTrigger(str, enum.Enum):
    Scheduled = "scheduled"
    Manual = "manual"


class DailyResetError(RuntimeError):
    """A reset step failed; the original error is chained as __cause__."""

    def __init__(self, step: str, message: str = ""):
        self.step = step
        super().__init__(f"Daily reset failed during {step}" + (f": {message}" if message else ""))


def archivable_tasks(tasks: Iterable[dict]) -> List[dict]:
    """Completed tasks not yet soft-deleted. Age is not considered."""
    return [
        t for t in tasks
        if t.get("status") == TaskStatusEnum.Completed.value and not t.get("is_deleted")
    ]


def transition_comment(old, new) -> str:
    return f"Daily reset: Status changed from {old.value.upper()} to {new.value.upper()}"


class DailyResetService:
    """Runs the daily reset against a data-access store.

    ``last_reset_date`` is the same-day guard for scheduled runs. It is
    seeded from the newest stored daily_reset report when the service is
    built, set again after every successful run, and only forgotten when
    the process restarts. Manual runs ignore it.
    """

    def __init__(self, store, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or config.local_now
        self._lock = threading.Lock()
        last = self.last_report()
        self.last_reset_date: Optional[date] = last.date if last else None

    # ---------------- reading reports ----------------
    def _reset_runs(self) -> List[dict]:
        runs = [r for r in self.store.list_report_runs() if r["type"] == REPORT_TYPE_DAILY_RESET]
        # stable sort: equal timestamps keep insertion order
        return sorted(runs, key=lambda r: r["created_at"])

    def last_report(self) -> Optional[DailyResetReport]:
        runs = self._reset_runs()
        if not runs:
            return None
        return DailyResetReport.from_storage(runs[-1]["results"])

    def recent_reports(self, limit: int = 4) -> List[DailyResetReport]:
        runs = self._reset_runs()[::-1][:limit]
        return [DailyResetReport.from_storage(r["results"]) for r in runs]

    # ---------------- the run ----------------
    def run(self, trigger=ResetTrigger.Scheduled, as_of: Optional[datetime] = None) -> Optional[DailyResetReport]:
        """Run the reset; returns None when a scheduled run already happened today."""
        trigger = ResetTrigger(trigger)
        with self._lock:
            now = as_of or self.clock()
            today = now.date()
            if trigger is ResetTrigger.Scheduled and self.last_reset_date == today:
                logger.info("Daily reset already performed for %s; skipping scheduled run", today)
                return None

            logger.info("Starting %s daily reset for %s", trigger.value, today)
            report = self._step("aggregation", self.build_report, today, now, trigger)
            self._step("report persistence", self.save_report, report)
            changed = self._step("room status transitions", self.apply_status_transitions)
            archived = self._step("task archival", self.archive_completed_tasks)

            self.last_reset_date = today
            logger.info(
                "Daily reset for %s completed: %d room(s) changed status, %d task(s) archived",
                today, changed, archived,
            )
            return report

    def _step(self, name: str, fn, *args):
        try:
            return fn(*args)
        except Exception as exc:
            raise DailyResetError(name, str(exc)) from exc

    def build_report(self, today: date, now: datetime, trigger: ResetTrigger) -> DailyResetReport:
        logger.info("Generating daily report for %s", today)
        return aggregate(
            today,
            rooms=self.store.list_rooms(),
            tasks=self.store.list_tasks(),
            work_orders=self.store.list_work_orders(),
            comments=self.store.list_room_comments(),
            users=self.store.list_users(),
            reset_time=now,
            trigger=trigger.value,
        )

    def save_report(self, report: DailyResetReport):
        run = self.store.create_report_run({
            "type": REPORT_TYPE_DAILY_RESET,
            "params": {"date": report.date.isoformat(), "trigger": report.trigger},
            "results": report.to_storage(),
        })
        logger.info("Saved daily report %s for %s", run["id"], report.date)
        return run

    def apply_status_transitions(self) -> int:
        changed = 0
        for room in self.store.list_rooms():
            old = RoomStatusEnum(room["status"] or RoomStatusEnum.Dirty)
            new = next_status(old)
            if new is old:
                continue
            # two separate writes: the status, then its audit comment
            self.store.update_room(room["id"], {"status": new.value})
            self.store.create_room_comment({
                "room_id": room["id"],
                "user_id": SYSTEM_USER_ID,
                "comment": transition_comment(old, new),
                "priority": PriorityEnum.Low.value,
                "is_resolved": False,
            })
            changed += 1
        logger.info("Room statuses reset: %d changed", changed)
        return changed

    def archive_completed_tasks(self) -> int:
        tasks = archivable_tasks(self.store.list_tasks())
        for task in tasks:
            self.store.update_task(task["id"], {"is_deleted": True})
        logger.info("Archived %d completed task(s)", len(tasks))
        return len(tasks)
