"""
Reporting Scheduler - periodic operational notifications.

Two independent loops:
- Heartbeat every 8 hours with uptime and job totals
- Status poll every 60 seconds; at 09:00 and 18:00 local time a per-job
  status report is pushed once per slot per date
"""

import logging
import threading
import time
from datetime import date, datetime
from typing import Callable, Optional

from . import messages
from .notifications import NotificationSink
from .pacer import RecurringTask, TaskFactory
from .registry import JobRegistry


logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL_SECONDS = 8 * 60 * 60
STATUS_POLL_INTERVAL_SECONDS = 60
STATUS_SLOTS = ((9, 0), (18, 0))

# Uptime reference; the package is imported once at process start
PROCESS_STARTED_AT = time.monotonic()


def slot_label(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


class ReportingScheduler:
    """
    Owns the heartbeat and twice-daily status loops.

    Args:
        registry: Source of totals and per-job status
        notifications: Where reports are pushed
        task_factory: Creates the recurring tasks (injectable for tests)
        clock: Local wall clock used for the status slots
        monotonic: Clock used for uptime
        started_at: Uptime origin on the monotonic clock; defaults to process start
    """

    def __init__(
        self,
        registry: JobRegistry,
        notifications: NotificationSink,
        task_factory: TaskFactory = RecurringTask,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
        heartbeat_interval: float = HEARTBEAT_INTERVAL_SECONDS,
        status_poll_interval: float = STATUS_POLL_INTERVAL_SECONDS,
        started_at: Optional[float] = None,
    ):
        self.registry = registry
        self.notifications = notifications
        self.task_factory = task_factory
        self.heartbeat_interval = heartbeat_interval
        self.status_poll_interval = status_poll_interval
        self._clock = clock
        self._monotonic = monotonic
        self._started_at = PROCESS_STARTED_AT if started_at is None else started_at

        self._last_sent: dict[str, Optional[date]] = {
            slot_label(hour, minute): None for hour, minute in STATUS_SLOTS
        }
        self._slot_lock = threading.Lock()
        self._tasks: list[RecurringTask] = []

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Arm both loops. Calling start twice is a no-op."""
        if self._tasks:
            return

        heartbeat = self.task_factory(
            name="heartbeat",
            interval_seconds=self.heartbeat_interval,
            callback=lambda: self._safe_call(self.send_heartbeat, "heartbeat"),
        )
        status = self.task_factory(
            name="twice-daily-status",
            interval_seconds=self.status_poll_interval,
            callback=lambda: self._safe_call(self.check_status_slots, "twice_daily_status"),
        )
        self._tasks = [heartbeat, status]
        for task in self._tasks:
            task.start()

        logger.info(
            f"Reporting started (heartbeat every {self.heartbeat_interval:g}s, "
            f"status poll every {self.status_poll_interval:g}s)"
        )

    def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []

    def _safe_call(self, fn: Callable[[], object], context: str) -> None:
        try:
            fn()
        except Exception as e:
            logger.error(f"Error in {context}: {e}", exc_info=True)

    # =========================================================================
    # Loop bodies
    # =========================================================================

    def uptime_seconds(self) -> float:
        return self._monotonic() - self._started_at

    def send_heartbeat(self) -> bool:
        totals = self.registry.totals()
        return self.notifications.push(messages.heartbeat(self.uptime_seconds(), totals))

    def check_status_slots(self, now: Optional[datetime] = None) -> list[str]:
        """
        Push a status report if `now` is exactly on an unsent slot.

        Returns:
            Labels of the slots reported by this call
        """
        now = now or self._clock()
        today = now.date()
        reported = []

        for hour, minute in STATUS_SLOTS:
            if now.hour != hour or now.minute != minute:
                continue

            label = slot_label(hour, minute)
            with self._slot_lock:
                if self._last_sent[label] == today:
                    continue
                self._last_sent[label] = today

            rows = self.registry.status_per_job()
            self.notifications.push(messages.status_report(label, rows, now))
            logger.info(f"Status report {label} pushed for {today.isoformat()} ({len(rows)} jobs)")
            reported.append(label)

        return reported
