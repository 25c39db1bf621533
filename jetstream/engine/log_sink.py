"""
In-memory rolling log of dispatch events.

Keeps the most recent MAX_LOGS entries, oldest evicted first. Each entry
is also mirrored to the standard logging module.
"""

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Callable, Optional

from .entities import LogEntry, LogLevel, LogType, utc_now


logger = logging.getLogger(__name__)

MAX_LOGS = 5000


class LogSink:
    """Bounded, thread-safe, append-only log of LogEntry records."""

    def __init__(
        self,
        max_logs: int = MAX_LOGS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.max_logs = max_logs
        self._clock = clock
        self._entries: deque[LogEntry] = deque(maxlen=max_logs)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(
        self,
        level: LogLevel,
        type: LogType,
        message: str,
        job_id: Optional[str] = None,
        bundle: Optional[str] = None,
        meta: Optional[dict] = None,
    ) -> LogEntry:
        """
        Stamp and store a new entry.

        Returns:
            The stored LogEntry
        """
        entry = LogEntry(
            ts=self._clock().isoformat(),
            level=level,
            type=type,
            message=message,
            job_id=job_id,
            bundle=bundle,
            meta=dict(meta or {}),
        )

        with self._lock:
            self._entries.append(entry)

        bundle_part = f" bundle={bundle}" if bundle else ""
        logger.log(
            logging.ERROR if level == LogLevel.ERROR else logging.INFO,
            f"[{type.value}]{bundle_part} - {message}",
        )
        return entry

    def query(
        self,
        bundle: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[LogEntry]:
        """
        Return entries oldest to newest.

        Args:
            bundle: Keep only entries whose bundle matches exactly
            limit: Keep only the most recent N matches (falsy = all)
        """
        with self._lock:
            result = list(self._entries)

        if bundle:
            result = [entry for entry in result if entry.bundle == bundle]

        if limit and limit > 0:
            result = result[-limit:]

        return result
