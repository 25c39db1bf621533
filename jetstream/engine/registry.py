"""
Job Registry - authoritative in-memory job state.

The registry exclusively owns every Job record. Callers receive snapshot
copies; all mutation goes through methods guarded by a single lock.

Invariants enforced here:
- 0 <= sent <= index <= total
- status moves only RUNNING → FINISHED or RUNNING → STOPPED
- finished_at / stopped_at set exactly once, on the matching transition
- no index/sent mutation once the job has left RUNNING
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional, Protocol

from .entities import (
    Job,
    JobStatus,
    JobStatusRow,
    JobTotals,
    utc_now,
)


logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Cancellable handle of a job's recurring task."""

    def cancel(self) -> None:
        ...


class JobRegistry:
    """Thread-safe mapping of job_id → Job plus the job's timer handle."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._jobs: dict[str, Job] = {}
        self._timers: dict[str, TimerHandle] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # Registration & Query
    # =========================================================================

    def register(self, job: Job) -> Job:
        """
        Insert a new job and return a snapshot of it.

        Registering an existing job_id again is a caller error.
        """
        with self._lock:
            self._jobs[job.job_id] = job
            return job.snapshot()

    def get(self, job_id: str) -> Optional[Job]:
        """Snapshot of a job, or None if unknown."""
        with self._lock:
            job = self._jobs.get(job_id)
            return job.snapshot() if job is not None else None

    def list_jobs(self) -> list[Job]:
        """Snapshots of all jobs in registration order."""
        with self._lock:
            return [job.snapshot() for job in self._jobs.values()]

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    # =========================================================================
    # Dispatch Mutations
    # =========================================================================

    def increment_sent(self, job_id: str) -> bool:
        """
        Count one successful delivery.

        Caller must hold the job's dispatch guard.

        Returns:
            False if the job is unknown
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            job.sent += 1
            return True

    def record_result(self, job_id: str, delivered: bool) -> bool:
        """
        Advance the cursor past the current record.

        Commits are refused once the job is gone, no longer RUNNING, or
        already exhausted, so an in-flight delivery that completes after
        stop/delete leaves the job untouched.

        Args:
            job_id: Job whose current record was attempted
            delivered: Whether the record was accepted by the transport

        Returns:
            True if the result was committed
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or not job.is_running or job.is_exhausted:
                return False

            job.index += 1
            if delivered:
                self.increment_sent(job_id)
            return True

    def claim_first_error(self, job_id: str) -> bool:
        """
        Mark that the job's first delivery error was notified.

        Returns:
            True only for the first call per job
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.first_error_notified:
                return False
            job.first_error_notified = True
            return True

    def mark_finished(self, job_id: str) -> bool:
        """
        Transition RUNNING → FINISHED.

        Safe to call repeatedly and after a stop; only the first call on a
        running job has any effect.

        Returns:
            True if the transition happened
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or not job.is_running:
                return False
            job.status = JobStatus.FINISHED
            job.finished_at = self._clock()
            self.cancel_timer(job_id)
            return True

    # =========================================================================
    # Timer Handles
    # =========================================================================

    def attach_timer(self, job_id: str, handle: TimerHandle) -> None:
        with self._lock:
            self._timers[job_id] = handle

    def cancel_timer(self, job_id: str) -> bool:
        """
        Cancel and forget the job's timer.

        Returns:
            True if a timer was attached
        """
        with self._lock:
            handle = self._timers.pop(job_id, None)

        if handle is None:
            return False

        handle.cancel()
        return True

    def has_timer(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._timers

    # =========================================================================
    # External Requests
    # =========================================================================

    def stop(self, job_id: str) -> Optional[Job]:
        """
        Cancel the job's timer, then mark it STOPPED.

        A job that already finished or stopped keeps its status and
        timestamps.

        Returns:
            Snapshot of the job, or None if not found
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None

            self.cancel_timer(job_id)

            if job.is_running:
                job.status = JobStatus.STOPPED
                job.stopped_at = self._clock()
                logger.info(f"Job {job_id} stopped at {job.index}/{job.total}")

            return job.snapshot()

    def delete(self, job_id: str) -> Optional[Job]:
        """
        Cancel the job's timer and remove the job.

        Refusing deletion of a running job is the caller's policy.

        Returns:
            The removed job, or None if not found
        """
        with self._lock:
            if job_id not in self._jobs:
                return None

            self.cancel_timer(job_id)
            job = self._jobs.pop(job_id)
            logger.info(f"Job {job_id} deleted (status={job.status.value})")
            return job

    def cancel_all_timers(self) -> int:
        """Cancel every attached timer. Used on shutdown."""
        with self._lock:
            job_ids = list(self._timers)

        for job_id in job_ids:
            self.cancel_timer(job_id)
        return len(job_ids)

    # =========================================================================
    # Aggregate Views
    # =========================================================================

    def totals(self) -> JobTotals:
        """Counts by status."""
        with self._lock:
            statuses = [job.status for job in self._jobs.values()]

        return JobTotals(
            total=len(statuses),
            running=statuses.count(JobStatus.RUNNING),
            finished=statuses.count(JobStatus.FINISHED),
            stopped=statuses.count(JobStatus.STOPPED),
        )

    def status_per_job(self) -> list[JobStatusRow]:
        """Per-job status projection for reporting."""
        with self._lock:
            return [JobStatusRow.from_job(job) for job in self._jobs.values()]
