"""
Infrastructure module - logging, outbound transports, CSV ingestion.
"""

from .logging_config import setup_logging, DailyRotatingFileHandler

from .telegram import TelegramNotifier

from .appsflyer import AppsFlyerTransport, build_event_url

from .csv_records import parse_csv_records, RecordParseError

__all__ = [
    # logging
    "setup_logging",
    "DailyRotatingFileHandler",
    # telegram
    "TelegramNotifier",
    # appsflyer
    "AppsFlyerTransport",
    "build_event_url",
    # csv
    "parse_csv_records",
    "RecordParseError",
]
