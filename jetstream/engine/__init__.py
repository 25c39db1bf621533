"""
Job Scheduling & Dispatch Engine.

Paces a finite batch of records across a time window, one record per
tick, with in-memory job state, a rolling event log, and best-effort
notifications.
"""

from .entities import (
    Job,
    JobRequest,
    JobStatus,
    JobStatusRow,
    JobSummary,
    JobTotals,
    LogEntry,
    LogLevel,
    LogType,
    StartedJob,
)
from .errors import EngineError, DeliveryError
from .log_sink import LogSink, MAX_LOGS
from .registry import JobRegistry
from .notifications import NotificationSink, Notifier, NotifyResult
from .pacer import Pacer, RecurringTask, compute_interval_ms
from .dispatcher import (
    Dispatcher,
    DeliveryTransport,
    TickOutcome,
    build_event_payload,
    format_event_time,
)
from .reporting import ReportingScheduler
from .service import DispatchService, DeleteOutcome, DeleteResult

__all__ = [
    # Entities
    "Job",
    "JobRequest",
    "JobStatus",
    "JobStatusRow",
    "JobSummary",
    "JobTotals",
    "LogEntry",
    "LogLevel",
    "LogType",
    "StartedJob",
    # Errors
    "EngineError",
    "DeliveryError",
    # Log sink
    "LogSink",
    "MAX_LOGS",
    # Registry
    "JobRegistry",
    # Notifications
    "NotificationSink",
    "Notifier",
    "NotifyResult",
    # Pacer
    "Pacer",
    "RecurringTask",
    "compute_interval_ms",
    # Dispatcher
    "Dispatcher",
    "DeliveryTransport",
    "TickOutcome",
    "build_event_payload",
    "format_event_time",
    # Reporting
    "ReportingScheduler",
    # Service
    "DispatchService",
    "DeleteOutcome",
    "DeleteResult",
]
