"""
Pacer - turns a batch and a duration into a recurring per-job schedule.

Each job gets one RecurringTask firing every interval_ms. The task only
carries the job_id; every tick looks the job up again through the
Dispatcher, so a cancelled or deleted job is never touched by a stale
reference.
"""

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from . import messages
from .entities import (
    Job,
    JobRequest,
    LogLevel,
    LogType,
    StartedJob,
    generate_job_id,
    utc_now,
)
from .log_sink import LogSink
from .notifications import NotificationSink
from .registry import JobRegistry


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def compute_interval_ms(days: float, total: int) -> float:
    """
    Delay between ticks so `total` records span `days`.

    total > 0 is the caller's precondition.
    """
    return (days * SECONDS_PER_DAY * 1000) / total


class RecurringTask:
    """
    Cancellable fixed-rate timer on a daemon thread.

    Deadlines are computed from a monotonic clock so a slow callback does
    not shift the whole schedule. If a callback overruns one or more
    periods, the next call happens immediately and the schedule resumes
    from there.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], object],
    ):
        self.name = name
        self.interval_seconds = interval_seconds
        self.callback = callback

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"Task {self.name} already started")

        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Stop future firings. Safe to call more than once."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        next_fire = time.monotonic() + self.interval_seconds

        while not self._stop_event.wait(max(0.0, next_fire - time.monotonic())):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Error in task {self.name}: {e}", exc_info=True)

            next_fire = max(next_fire + self.interval_seconds, time.monotonic())


class TaskFactory(Protocol):
    def __call__(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], object],
    ) -> RecurringTask:
        ...


class Pacer:
    """
    Creates jobs and owns their recurring tasks.

    The dispatch callback must be set before starting jobs, via
    set_dispatcher().
    """

    def __init__(
        self,
        registry: JobRegistry,
        log_sink: LogSink,
        notifications: NotificationSink,
        task_factory: TaskFactory = RecurringTask,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.registry = registry
        self.log_sink = log_sink
        self.notifications = notifications
        self.task_factory = task_factory
        self._clock = clock
        self._tick: Optional[Callable[[str], object]] = None

    def set_dispatcher(self, dispatcher) -> None:
        """Route every tick to dispatcher.tick(job_id)."""
        self._tick = dispatcher.tick

    def start(self, request: JobRequest) -> StartedJob:
        """
        Register a job and arm its recurring task.

        Raises:
            RuntimeError: If no dispatcher is set
        """
        if self._tick is None:
            raise RuntimeError("Dispatcher not set. Call set_dispatcher() first.")

        total = request.total
        interval_ms = compute_interval_ms(request.days, total)
        created_at = self._clock()

        job = Job(
            job_id=generate_job_id(),
            bundle=request.bundle,
            credential=request.credential,
            records=tuple(request.records),
            file_name=request.file_name,
            total=total,
            interval_ms=interval_ms,
            days=request.days,
            created_at=created_at,
            expected_end_at=created_at + timedelta(days=request.days),
        )
        job = self.registry.register(job)

        interval_sec = interval_ms / 1000
        self.log_sink.append(
            LogLevel.INFO,
            LogType.JOB_START,
            (
                f"Job started for bundle={job.bundle}, file={job.file_name}, "
                f"total={job.total}, days={request.days:g}, interval={interval_sec:.2f}s"
            ),
            job_id=job.job_id,
            bundle=job.bundle,
            meta={
                "file_name": job.file_name,
                "total": job.total,
                "days": request.days,
                "interval_sec": interval_sec,
            },
        )
        self.notifications.push(messages.job_started(job))

        tick = self._tick
        job_id = job.job_id
        task = self.task_factory(
            name=f"job-{job_id}",
            interval_seconds=interval_sec,
            callback=lambda: tick(job_id),
        )
        self.registry.attach_timer(job_id, task)
        task.start()

        return StartedJob(job_id=job_id, total=total, interval_ms=interval_ms)

    def cancel(self, job_id: str) -> bool:
        """
        Stop the job's task. No-op if already cancelled.

        Returns:
            True if a task was cancelled
        """
        return self.registry.cancel_timer(job_id)
