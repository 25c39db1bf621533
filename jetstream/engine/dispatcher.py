"""
Dispatcher - one unit of work per tick.

Per tick for a job:
1. Job gone → cancel its task
2. Job not RUNNING or records exhausted → cancel task, mark FINISHED, notify
3. Otherwise send records[index] once:
   - success → index += 1, sent += 1
   - delivery error → index += 1 (record skipped, never retried),
     first error per job notified

What Dispatcher MUST NOT do:
- Retry a failed record (would break the fixed pacing)
- Run two ticks of the same job at once
- Let any failure escape the tick and kill the job's task
"""

import json
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol

from . import messages
from .entities import Job, LogLevel, LogType
from .errors import DeliveryError
from .log_sink import LogSink
from .notifications import NotificationSink
from .pacer import Pacer
from .registry import JobRegistry


logger = logging.getLogger(__name__)

DEFAULT_EVENT_NAME = "confirmed"
EVENT_VALUE = json.dumps({"af_revenue": "70", "af_currency": "USD"}, separators=(",", ":"))
ERROR_BODY_LIMIT = 300


class TickOutcome(str, Enum):
    """What a single tick did."""

    SENT = "sent"
    FAILED = "failed"
    FINISHED = "finished"
    SKIPPED = "skipped"
    MISSING = "missing"
    ERROR = "error"


class DeliveryTransport(Protocol):
    """Transport delivering one event payload."""

    def deliver(self, bundle: str, credential: str, payload: dict) -> None:
        """
        Deliver one payload.

        Raises:
            DeliveryError: If the record was not accepted
        """
        ...


def format_event_time(moment: datetime) -> str:
    """Format as YYYY-MM-DD HH:MM:SS.mmm."""
    return moment.strftime("%Y-%m-%d %H:%M:%S") + f".{moment.microsecond // 1000:03d}"


def build_event_payload(row: Mapping[str, Any], now: datetime) -> dict:
    """
    Build the in-app event body for one record.

    Missing eventname defaults to "confirmed", missing eventtime to now.
    An empty android_id is left out entirely.
    """
    payload = {
        "appsflyer_id": row.get("appsflyer_id"),
        "advertising_id": row.get("advertising_id"),
        "country": row.get("country"),
        "eventName": row.get("eventname") or DEFAULT_EVENT_NAME,
        "eventTime": row.get("eventtime") or format_event_time(now),
        "eventValue": EVENT_VALUE,
        "ip": row.get("user_ip"),
    }

    android_id = row.get("android_id")
    if android_id:
        payload["android_id"] = android_id

    return payload


class Dispatcher:
    """
    Performs the per-tick send for every job.

    Args:
        registry: Authoritative job state
        log_sink: Structured event log
        notifications: Lifecycle and first-error notifications
        transport: Delivery transport for event payloads
        pacer: Owner of the jobs' recurring tasks
        local_clock: Source of "now" for default event times
    """

    def __init__(
        self,
        registry: JobRegistry,
        log_sink: LogSink,
        notifications: NotificationSink,
        transport: DeliveryTransport,
        pacer: Pacer,
        local_clock: Callable[[], datetime] = datetime.now,
    ):
        self.registry = registry
        self.log_sink = log_sink
        self.notifications = notifications
        self.transport = transport
        self.pacer = pacer
        self._local_clock = local_clock

        self._guards: dict[str, threading.Lock] = {}
        self._guards_lock = threading.Lock()

    def _guard_for(self, job_id: str) -> threading.Lock:
        with self._guards_lock:
            guard = self._guards.get(job_id)
            if guard is None:
                guard = threading.Lock()
                self._guards[job_id] = guard
            return guard

    def forget(self, job_id: str) -> None:
        """Drop the single-flight guard of a job that will not tick again."""
        with self._guards_lock:
            self._guards.pop(job_id, None)

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self, job_id: str) -> TickOutcome:
        """
        Run one tick for a job.

        A tick arriving while the previous one for the same job is still in
        flight is skipped. Unexpected errors are logged and swallowed here.
        """
        guard = self._guard_for(job_id)
        if not guard.acquire(blocking=False):
            logger.debug(f"Tick for job {job_id} skipped: previous tick still in flight")
            return TickOutcome.SKIPPED

        try:
            return self._tick(job_id)
        except Exception as e:
            logger.error(f"[JOB {job_id}] Unexpected error: {e}", exc_info=True)
            job = self.registry.get(job_id)
            self.log_sink.append(
                LogLevel.ERROR,
                LogType.SEND_ERROR,
                f"Unexpected error: {e}",
                job_id=job_id,
                bundle=job.bundle if job is not None else None,
            )
            return TickOutcome.ERROR
        finally:
            guard.release()

    def _tick(self, job_id: str) -> TickOutcome:
        job = self.registry.get(job_id)

        if job is None:
            self.pacer.cancel(job_id)
            self.forget(job_id)
            return TickOutcome.MISSING

        if not job.is_running or job.is_exhausted:
            self._finish(job)
            return TickOutcome.FINISHED

        position = job.index + 1
        row = job.records[job.index]
        payload = build_event_payload(row, self._local_clock())

        self.log_sink.append(
            LogLevel.INFO,
            LogType.SEND_ATTEMPT,
            f"Attempt {position}/{job.total} to bundle {job.bundle}",
            job_id=job.job_id,
            bundle=job.bundle,
            meta={
                "index": position,
                "total": job.total,
                "eventName": payload["eventName"],
                "advertising_id": payload["advertising_id"],
            },
        )

        try:
            self.transport.deliver(job.bundle, job.credential, payload)
        except DeliveryError as e:
            self._on_failure(job, position, e)
            return TickOutcome.FAILED

        self._on_success(job, position, payload)
        return TickOutcome.SENT

    # =========================================================================
    # Outcomes
    # =========================================================================

    def _on_success(self, job: Job, position: int, payload: dict) -> None:
        if not self.registry.record_result(job.job_id, delivered=True):
            logger.info(f"[JOB {job.job_id}] Result of record {position} dropped: job no longer running")
            return

        logger.debug(f"[JOB {job.job_id}] Sent {position}/{job.total} for bundle={job.bundle}")
        self.log_sink.append(
            LogLevel.INFO,
            LogType.SEND_SUCCESS,
            f"Success {position}/{job.total}",
            job_id=job.job_id,
            bundle=job.bundle,
            meta={"index": position, "total": job.total, "eventName": payload["eventName"]},
        )

    def _on_failure(self, job: Job, position: int, error: DeliveryError) -> None:
        committed = self.registry.record_result(job.job_id, delivered=False)
        body = (error.body or "")[:ERROR_BODY_LIMIT]
        status = error.status_code if error.status_code is not None else "n/a"

        self.log_sink.append(
            LogLevel.ERROR,
            LogType.SEND_ERROR,
            f"Error {position}/{job.total}: status={status} msg={body}",
            job_id=job.job_id,
            bundle=job.bundle,
            meta={
                "index": position,
                "total": job.total,
                "status": error.status_code,
                "data": body,
            },
        )

        if committed and self.registry.claim_first_error(job.job_id):
            self.notifications.push(
                messages.send_error(job, position, error.status_code, error.body)
            )

    def _finish(self, job: Job) -> None:
        self.pacer.cancel(job.job_id)

        finished_now = self.registry.mark_finished(job.job_id)
        self.forget(job.job_id)
        if not finished_now:
            # Stopped or already finished; nothing to announce
            return

        finished = self.registry.get(job.job_id) or job
        logger.info(f"[JOB {job.job_id}] Finished. Sent {finished.sent}/{finished.total}")

        self.log_sink.append(
            LogLevel.INFO,
            LogType.JOB_FINISH,
            f"Job finished for bundle={job.bundle}, file={job.file_name}, total={job.total}",
            job_id=job.job_id,
            bundle=job.bundle,
            meta={"total": job.total, "sent": finished.sent},
        )
        self.notifications.push(messages.job_finished(finished))
