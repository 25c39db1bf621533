"""
Dispatch Service - main entry point for the dispatch engine.

This service wires the engine components:
- JobRegistry (job state)
- LogSink (structured event log)
- NotificationSink (best-effort notifications)
- Pacer (per-job recurring tasks)
- Dispatcher (per-tick send)
- ReportingScheduler (heartbeat and status reports)

Usage:
    service = DispatchService.create(transport, notifier)
    service.start_reporting()
    started = service.start_job(request)
    ...
    service.shutdown()
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from . import messages
from .dispatcher import Dispatcher, DeliveryTransport
from .entities import Job, JobRequest, JobSummary, LogEntry, StartedJob, utc_now
from .log_sink import LogSink, MAX_LOGS
from .notifications import NotificationSink, Notifier
from .pacer import Pacer, RecurringTask, TaskFactory
from .registry import JobRegistry
from .reporting import ReportingScheduler


logger = logging.getLogger(__name__)


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    RUNNING = "running"


@dataclass(frozen=True)
class DeleteResult:
    outcome: DeleteOutcome
    job: Optional[Job] = None

    @property
    def deleted(self) -> bool:
        return self.outcome == DeleteOutcome.DELETED


class DispatchService:
    """
    Coordinates the engine components and exposes job operations.

    Not-found and conflict outcomes are returned, never raised.
    """

    def __init__(
        self,
        registry: JobRegistry,
        log_sink: LogSink,
        notifications: NotificationSink,
        pacer: Pacer,
        dispatcher: Dispatcher,
        reporting: ReportingScheduler,
    ):
        """
        Initialize DispatchService with all components.

        Use DispatchService.create() for convenient construction.
        """
        self.registry = registry
        self.log_sink = log_sink
        self.notifications = notifications
        self.pacer = pacer
        self.dispatcher = dispatcher
        self.reporting = reporting

    @classmethod
    def create(
        cls,
        transport: DeliveryTransport,
        notifier: Notifier,
        background_notifications: bool = True,
        task_factory: TaskFactory = RecurringTask,
        clock: Callable[[], datetime] = utc_now,
        local_clock: Callable[[], datetime] = datetime.now,
        max_logs: int = MAX_LOGS,
    ) -> "DispatchService":
        """
        Create a DispatchService with all components wired together.

        Args:
            transport: Delivery transport for event payloads
            notifier: Notification transport
            background_notifications: Push notifications from daemon threads
            task_factory: Creates recurring tasks for jobs and reports
            clock: UTC clock for job and log timestamps
            local_clock: Local wall clock for event times and report slots
            max_logs: Log sink capacity

        Returns:
            Configured DispatchService
        """
        registry = JobRegistry(clock=clock)
        log_sink = LogSink(max_logs=max_logs, clock=clock)
        notifications = NotificationSink(notifier, background=background_notifications)

        pacer = Pacer(
            registry=registry,
            log_sink=log_sink,
            notifications=notifications,
            task_factory=task_factory,
            clock=clock,
        )
        dispatcher = Dispatcher(
            registry=registry,
            log_sink=log_sink,
            notifications=notifications,
            transport=transport,
            pacer=pacer,
            local_clock=local_clock,
        )
        pacer.set_dispatcher(dispatcher)

        reporting = ReportingScheduler(
            registry=registry,
            notifications=notifications,
            task_factory=task_factory,
            clock=local_clock,
        )

        return cls(
            registry=registry,
            log_sink=log_sink,
            notifications=notifications,
            pacer=pacer,
            dispatcher=dispatcher,
            reporting=reporting,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start_reporting(self) -> None:
        self.reporting.start()

    def notify_server_started(self, port: int) -> bool:
        return self.notifications.push(messages.server_started(port))

    def shutdown(self) -> None:
        """Stop reporting loops and every job task. Job state is kept."""
        self.reporting.stop()
        cancelled = self.registry.cancel_all_timers()
        logger.info(f"Dispatch service shut down ({cancelled} job tasks cancelled)")

    # =========================================================================
    # Job Operations
    # =========================================================================

    def start_job(self, request: JobRequest) -> StartedJob:
        """
        Start pacing a batch.

        The caller guarantees a non-empty batch and days > 0.
        """
        started = self.pacer.start(request)
        logger.info(
            f"Job {started.job_id} created: bundle={request.bundle}, "
            f"total={started.total}, interval={started.interval_ms / 1000:.2f}s"
        )
        return started

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.registry.get(job_id)

    def list_jobs(self) -> list[JobSummary]:
        """Job summaries ordered by creation time."""
        jobs = sorted(self.registry.list_jobs(), key=lambda job: job.created_at)
        return [JobSummary.from_job(job) for job in jobs]

    def stop_job(self, job_id: str) -> Optional[Job]:
        """
        Stop a job.

        Returns:
            The job, or None if not found
        """
        job = self.registry.stop(job_id)
        if job is not None:
            self.dispatcher.forget(job_id)
        return job

    def delete_job(self, job_id: str) -> DeleteResult:
        """
        Delete a finished or stopped job.

        Running jobs are refused; they must be stopped first.
        """
        job = self.registry.get(job_id)
        if job is None:
            return DeleteResult(DeleteOutcome.NOT_FOUND)

        if job.is_running:
            return DeleteResult(DeleteOutcome.RUNNING, job)

        removed = self.registry.delete(job_id)
        if removed is None:
            return DeleteResult(DeleteOutcome.NOT_FOUND)

        self.dispatcher.forget(job_id)
        return DeleteResult(DeleteOutcome.DELETED, removed)

    def query_logs(
        self,
        bundle: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[LogEntry]:
        return self.log_sink.query(bundle=bundle, limit=limit)
