"""
Dispatch Engine Domain Entities.

- Job: one paced batch-dispatch run over a fixed set of records
- LogEntry: one structured observability record
- JobTotals / JobStatusRow / JobSummary: derived views, never stored
- JobRequest / StartedJob: input and output of job creation
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional
import uuid


class JobStatus(str, Enum):
    """
    Job status values.

    Transitions are one-way:
    - RUNNING → FINISHED (records exhausted)
    - RUNNING → STOPPED (external stop request)
    """

    RUNNING = "running"
    STOPPED = "stopped"
    FINISHED = "finished"


class LogLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


class LogType(str, Enum):
    JOB_START = "job_start"
    JOB_FINISH = "job_finish"
    SEND_ATTEMPT = "send_attempt"
    SEND_SUCCESS = "send_success"
    SEND_ERROR = "send_error"


def generate_job_id() -> str:
    """Generate a new job ID."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime for JSON output, passing None through."""
    if value is None:
        return None
    return value.isoformat()


@dataclass
class Job:
    """
    One dispatch batch.

    Only the JobRegistry mutates index, sent, status and the terminal
    timestamps. Everything else is fixed at creation.
    """

    job_id: str
    bundle: str
    credential: str = field(repr=False)
    records: tuple[Mapping[str, Any], ...] = field(repr=False)
    file_name: str
    total: int
    interval_ms: float
    days: float
    created_at: datetime
    expected_end_at: datetime
    index: int = 0
    sent: int = 0
    status: JobStatus = JobStatus.RUNNING
    finished_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    first_error_notified: bool = False

    @property
    def is_running(self) -> bool:
        return self.status == JobStatus.RUNNING

    @property
    def is_exhausted(self) -> bool:
        return self.index >= self.total

    def snapshot(self) -> "Job":
        """Shallow copy safe to hand out of the registry."""
        return replace(self)


@dataclass(frozen=True)
class JobRequest:
    """Everything needed to start a job."""

    bundle: str
    credential: str = field(repr=False)
    days: float
    records: tuple[Mapping[str, Any], ...] = field(repr=False)
    file_name: str

    @property
    def total(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class StartedJob:
    """Result of starting a job."""

    job_id: str
    total: int
    interval_ms: float


@dataclass(frozen=True)
class JobTotals:
    """Job counts by status, used by the heartbeat."""

    total: int = 0
    running: int = 0
    finished: int = 0
    stopped: int = 0


@dataclass(frozen=True)
class JobStatusRow:
    """Per-job projection for the twice-daily status report."""

    job_id: str
    bundle: str
    file_name: str
    status: JobStatus
    sent: int
    total: int
    created_at: datetime
    expected_end_at: datetime
    finished_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusRow":
        return cls(
            job_id=job.job_id,
            bundle=job.bundle,
            file_name=job.file_name,
            status=job.status,
            sent=job.sent,
            total=job.total,
            created_at=job.created_at,
            expected_end_at=job.expected_end_at,
            finished_at=job.finished_at,
            stopped_at=job.stopped_at,
        )


@dataclass(frozen=True)
class JobSummary:
    """Job listing row exposed to the HTTP layer."""

    job_id: str
    bundle: str
    file_name: str
    created_at: datetime
    expected_end_at: datetime
    sent: int
    total: int
    status: JobStatus

    @classmethod
    def from_job(cls, job: Job) -> "JobSummary":
        return cls(
            job_id=job.job_id,
            bundle=job.bundle,
            file_name=job.file_name,
            created_at=job.created_at,
            expected_end_at=job.expected_end_at,
            sent=job.sent,
            total=job.total,
            status=job.status,
        )


@dataclass(frozen=True)
class LogEntry:
    """One structured log record kept by the LogSink."""

    ts: str
    level: LogLevel
    type: LogType
    message: str
    job_id: Optional[str] = None
    bundle: Optional[str] = None
    meta: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "ts": self.ts,
            "level": self.level.value,
            "type": self.type.value,
            "job_id": self.job_id,
            "bundle": self.bundle,
            "message": self.message,
            "meta": dict(self.meta),
        }
