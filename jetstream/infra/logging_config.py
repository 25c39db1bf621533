"""
Logging configuration for the jetstream package logger.

Log files roll over at local midnight and are named
<log_dir>/jetstream_YYYYMMDD_<START_HHMMSS>.log, where START_HHMMSS is the
process start time and stays the same for every file the process writes.
"""

import logging
import os
from datetime import datetime
from logging.handlers import BaseRotatingHandler
from pathlib import Path
from typing import Callable, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_PREFIX = "jetstream"

_PROCESS_START_STAMP: Optional[str] = None


def process_start_stamp() -> str:
    """HHMMSS of the first call in this process."""
    global _PROCESS_START_STAMP
    if _PROCESS_START_STAMP is None:
        _PROCESS_START_STAMP = datetime.now().strftime("%H%M%S")
    return _PROCESS_START_STAMP


class DailyRotatingFileHandler(BaseRotatingHandler):
    """
    One log file per calendar day.

    Rollover is checked on every record against the injected clock, so
    tests can move the date without waiting for midnight.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        encoding: str = "utf-8",
        prefix: str = LOG_FILE_PREFIX,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self._clock = clock
        self._start_stamp = process_start_stamp()
        self.current_day = self._today()

        super().__init__(self.path_for(self.current_day), mode="a", encoding=encoding)

    def _today(self) -> str:
        return self._clock().strftime("%Y%m%d")

    def path_for(self, day: str) -> str:
        return str(self.log_dir / f"{self.prefix}_{day}_{self._start_stamp}.log")

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        return self._today() != self.current_day

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        self.current_day = self._today()
        self.baseFilename = os.path.abspath(self.path_for(self.current_day))
        self.stream = self._open()


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs") -> logging.Logger:
    """
    Configure the `jetstream` package logger and return it.

    Every module logger under jetstream.* propagates here.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for daily log files (None = console only)

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger("jetstream")
    logger.setLevel(numeric_level)

    # Prevent propagation to root logger (avoid duplicate logs under uvicorn)
    logger.propagate = False

    if logger.handlers:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        file_handler = DailyRotatingFileHandler(log_dir=log_dir, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logging started - level: {log_level}, file: {file_handler.baseFilename}")
    else:
        logger.info(f"Logging started - level: {log_level}, console only")

    return logger
