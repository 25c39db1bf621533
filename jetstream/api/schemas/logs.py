"""
Log query schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from jetstream.engine.entities import LogEntry


class LogEntryResponse(BaseModel):
    """One dispatch log entry."""

    ts: str
    level: str
    type: str
    job_id: Optional[str] = None
    bundle: Optional[str] = None
    message: str
    meta: dict = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: LogEntry) -> "LogEntryResponse":
        return cls(**entry.to_dict())


class LogListResponse(BaseModel):
    """Response from log query endpoint."""

    logs: List[LogEntryResponse] = Field(default=[])
    count: int
