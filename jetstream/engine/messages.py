"""
Notification texts (Telegram Markdown).
"""

from datetime import datetime
from typing import Optional, Sequence

from .entities import Job, JobStatusRow, JobTotals, to_iso


ERROR_MESSAGE_LIMIT = 400


def _seconds(interval_ms: float) -> str:
    return f"{interval_ms / 1000:.2f}"


def _format_uptime(uptime_seconds: float) -> str:
    total_minutes = int(uptime_seconds // 60)
    hours, minutes = divmod(total_minutes, 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h {minutes}m"
    return f"{hours}h {minutes}m"


def server_started(port: int) -> str:
    return f"✅ *JetStream server started*\nPort: `{port}`"


def job_started(job: Job) -> str:
    return (
        "▶️ *Sharing started*\n"
        f"Bundle: `{job.bundle}`\n"
        f"File: `{job.file_name}`\n"
        f"Records: *{job.total}*\n"
        f"Days: *{job.days:g}*\n"
        f"Interval: ~*{_seconds(job.interval_ms)}s*\n"
        f"Expected end: `{to_iso(job.expected_end_at)}`\n"
        f"Job ID: `{job.job_id}`"
    )


def job_finished(job: Job) -> str:
    return (
        "✅ *Sharing finished*\n"
        f"Bundle: `{job.bundle}`\n"
        f"File: `{job.file_name}`\n"
        f"Sent: *{job.sent}* / *{job.total}*\n"
        f"Job ID: `{job.job_id}`"
    )


def send_error(
    job: Job,
    position: int,
    status_code: Optional[int],
    message: str,
) -> str:
    """First delivery error of a job."""
    short_message = (message or "")[:ERROR_MESSAGE_LIMIT]
    status = status_code if status_code is not None else "n/a"
    return (
        "❌ *AppsFlyer error*\n"
        f"Bundle: `{job.bundle}`\n"
        f"File: `{job.file_name}`\n"
        f"Job ID: `{job.job_id}`\n"
        f"Record: *{position}* / *{job.total}*\n"
        f"Status: *{status}*\n"
        "Message:\n"
        f"```{short_message}```"
    )


def heartbeat(uptime_seconds: float, totals: JobTotals) -> str:
    return (
        "🟢 *JetStream heartbeat*\n"
        "Server is alive and processing jobs.\n"
        f"Uptime: *{_format_uptime(uptime_seconds)}*\n"
        f"Jobs: *{totals.total}* "
        f"(running *{totals.running}*, finished *{totals.finished}*, "
        f"stopped *{totals.stopped}*)"
    )


def status_line(row: JobStatusRow) -> str:
    return (
        f"`{row.bundle}` `{row.file_name}`: {row.status.value} "
        f"{row.sent}/{row.total}"
    )


def status_report(slot: str, rows: Sequence[JobStatusRow], now: datetime) -> str:
    """Twice-daily status summary, one bullet per job."""
    lines = [status_line(row) for row in rows] or ["No jobs registered"]
    return (
        f"📊 *JetStream status report {slot}*\n"
        f"Date: `{now.strftime('%Y-%m-%d')}`\n"
        + "\n".join(f"• {line}" for line in lines)
    )
