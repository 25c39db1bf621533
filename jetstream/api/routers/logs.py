"""
Logs router - query the in-memory dispatch log.
"""

from typing import Optional

from fastapi import APIRouter, Query

from jetstream.config import DEFAULT_LOG_LIMIT

from .._service_state import get_dispatch_service
from ..schemas.logs import LogEntryResponse, LogListResponse

router = APIRouter()


@router.get("", response_model=LogListResponse)
async def query_logs(
    bundle: Optional[str] = Query(default=None, description="Exact bundle match"),
    limit: int = Query(default=DEFAULT_LOG_LIMIT, ge=0, description="Most recent N entries (0 = all)"),
):
    """Dispatch log entries, oldest to newest."""
    service = get_dispatch_service()
    entries = service.query_logs(bundle=bundle, limit=limit)
    logs = [LogEntryResponse.from_entry(entry) for entry in entries]
    return LogListResponse(logs=logs, count=len(logs))
