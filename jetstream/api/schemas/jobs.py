"""
Job operation schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from jetstream.engine.entities import JobSummary


class JobCreateResponse(BaseModel):
    """Response from job creation (CSV upload)."""

    job_id: str = Field(..., description="Created job ID")
    bundle: str = Field(..., description="Target app bundle")
    file_name: str = Field(..., description="Uploaded file name")
    total: int = Field(..., description="Number of records to send")
    days: float = Field(..., description="Window the batch is spread over")
    interval_ms: float = Field(..., description="Delay between two records in milliseconds")
    interval_sec: float = Field(..., description="Delay between two records in seconds, rounded")


class JobSummaryResponse(BaseModel):
    """One row of the job list."""

    job_id: str
    bundle: str
    file_name: str
    created_at: datetime
    expected_end_at: datetime
    sent: int = 0
    total: int
    status: str

    @classmethod
    def from_summary(cls, summary: JobSummary) -> "JobSummaryResponse":
        return cls(
            job_id=summary.job_id,
            bundle=summary.bundle,
            file_name=summary.file_name,
            created_at=summary.created_at,
            expected_end_at=summary.expected_end_at,
            sent=summary.sent,
            total=summary.total,
            status=summary.status.value,
        )


class JobListResponse(BaseModel):
    """Response from job list endpoint."""

    jobs: List[JobSummaryResponse] = Field(default=[])
    total: int


class JobActionResponse(BaseModel):
    """Response from stop/delete endpoints."""

    ok: bool = True
    job_id: str
    status: Optional[str] = None
