# scheduler.py — fires the daily reset at each local midnight
import logging
import threading
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

import config
from daily_reset import DailyResetError, ResetTrigger

logger = logging.getLogger(__name__)


def next_local_midnight(now: datetime) -> datetime:
    """First midnight strictly after ``now``, in ``now``'s zone.

    A fixed offset (host local time from ``astimezone()``) may not hold
    at the boundary, so that midnight is localized by the host instead.
    """
    tomorrow = now.date() + timedelta(days=1)
    if isinstance(now.tzinfo, ZoneInfo):
        return datetime.combine(tomorrow, time.min, tzinfo=now.tzinfo)
    return datetime.combine(tomorrow, time.min).astimezone()


def seconds_until(boundary: datetime, now: datetime) -> float:
    # Compare in UTC; same-zone subtraction ignores DST offset changes
    return max(0.0, (boundary.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds())


class ResetScheduler:
    """One-shot timer re-armed after every run, successful or not.

    Nothing survives a restart: on start the next boundary is worked out
    from the wall clock again, and a boundary missed while the process
    was down is not replayed.
    """

    def __init__(self, service, clock: Optional[Callable[[], datetime]] = None, timer_factory=threading.Timer):
        self.service = service
        self.clock = clock or config.local_now
        self.timer_factory = timer_factory
        self.next_run_at: Optional[datetime] = None
        self._timer = None
        self._stopped = True
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return not self._stopped

    def start(self):
        with self._lock:
            if not self._stopped:
                return
            self._stopped = False
        self._arm()

    def stop(self):
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self.next_run_at = None

    def _arm(self):
        now = self.clock()
        boundary = next_local_midnight(now)
        delay = seconds_until(boundary, now)
        with self._lock:
            if self._stopped:
                return
            timer = self.timer_factory(delay, self._fire, args=(boundary,))
            timer.daemon = True
            self._timer = timer
            self.next_run_at = boundary
            timer.start()
        logger.info("Next daily reset scheduled for %s (in %.0fs)", boundary.isoformat(), delay)

    def _fire(self, boundary: datetime):
        try:
            now = self.clock()
            # a timer that wakes a little early still belongs to the new day
            self.service.run(ResetTrigger.Scheduled, as_of=max(now, boundary))
        except DailyResetError:
            logger.exception("Scheduled daily reset failed; will try again at the next boundary")
        except Exception:
            logger.exception("Unexpected error in scheduled daily reset; will try again at the next boundary")
        finally:
            self._arm()
