"""
API request/response schemas.
"""

from .jobs import (
    JobCreateResponse,
    JobSummaryResponse,
    JobListResponse,
    JobActionResponse,
)
from .logs import LogEntryResponse, LogListResponse

__all__ = [
    "JobCreateResponse",
    "JobSummaryResponse",
    "JobListResponse",
    "JobActionResponse",
    "LogEntryResponse",
    "LogListResponse",
]
