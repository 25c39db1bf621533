"""
Jobs router for paced dispatch jobs.

- POST /api/jobs - Upload a CSV batch and start pacing it
- GET /api/jobs - List jobs ordered by creation
- POST /api/jobs/{job_id}/stop - Stop a running job
- DELETE /api/jobs/{job_id} - Delete a finished or stopped job
"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from jetstream.engine.entities import JobRequest
from jetstream.engine.service import DeleteOutcome
from jetstream.infra.csv_records import RecordParseError, parse_csv_records

from .._service_state import get_dispatch_service
from ..schemas.jobs import (
    JobActionResponse,
    JobCreateResponse,
    JobListResponse,
    JobSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_FILE_NAME = "file.csv"


def _parse_days(days: Optional[str]) -> float:
    try:
        value = float(days)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail='Invalid "days" value')

    if not math.isfinite(value) or value <= 0:
        raise HTTPException(status_code=400, detail='Invalid "days" value')
    return value


@router.post("", response_model=JobCreateResponse, status_code=201)
async def create_job(
    bundle: Optional[str] = Form(default=None),
    dev_key: Optional[str] = Form(default=None),
    days: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
):
    """
    Start a paced job from an uploaded CSV.

    The batch is spread evenly over `days`; one record is sent per
    interval of `days * 86400 / records` seconds.
    """
    if not bundle or not dev_key or not days or file is None:
        raise HTTPException(status_code=400, detail="Missing required fields")

    days_value = _parse_days(days)
    file_name = file.filename or DEFAULT_FILE_NAME

    content = await file.read()
    try:
        records = parse_csv_records(content)
    except RecordParseError as e:
        logger.warning(f"CSV parse error for {file_name}: {e}")
        raise HTTPException(status_code=400, detail=f"Error parsing CSV: {e}")

    if not records:
        raise HTTPException(status_code=400, detail="CSV file is empty")

    service = get_dispatch_service()
    started = service.start_job(
        JobRequest(
            bundle=bundle,
            credential=dev_key,
            days=days_value,
            records=tuple(records),
            file_name=file_name,
        )
    )

    return JobCreateResponse(
        job_id=started.job_id,
        bundle=bundle,
        file_name=file_name,
        total=started.total,
        days=days_value,
        interval_ms=started.interval_ms,
        interval_sec=round(started.interval_ms / 1000, 2),
    )


@router.get("", response_model=JobListResponse)
async def list_jobs():
    """List all jobs ordered by creation time."""
    service = get_dispatch_service()
    jobs = [JobSummaryResponse.from_summary(summary) for summary in service.list_jobs()]
    return JobListResponse(jobs=jobs, total=len(jobs))


@router.post("/{job_id}/stop", response_model=JobActionResponse)
async def stop_job(job_id: str):
    """Stop a job. Already finished or stopped jobs are left as they are."""
    service = get_dispatch_service()
    job = service.stop_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="not_found")

    return JobActionResponse(job_id=job_id, status=job.status.value)


@router.delete("/{job_id}", response_model=JobActionResponse)
async def delete_job(job_id: str):
    """Delete a job. Running jobs must be stopped first (409)."""
    service = get_dispatch_service()
    result = service.delete_job(job_id)

    if result.outcome == DeleteOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="not_found")

    if result.outcome == DeleteOutcome.RUNNING:
        raise HTTPException(status_code=409, detail="running")

    return JobActionResponse(job_id=job_id, status=result.job.status.value)
