"""
Notification Sink - best-effort text notifications.

The engine only needs "send a text somewhere". A Notifier performs the
actual send and reports the outcome as a NotifyResult instead of raising.
The sink pushes each text from a background thread and discards the
result after logging it; nothing here can affect job state.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Protocol


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifyResult:
    """Outcome of a single notification send."""

    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "NotifyResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> "NotifyResult":
        return cls(ok=False, error=error)


class Notifier(Protocol):
    """Transport for human-readable notifications."""

    def send(self, text: str) -> NotifyResult:
        """Send text. Must not raise."""
        ...


class NotificationSink:
    """
    Fire-and-forget front of a Notifier.

    Args:
        notifier: Transport used for each push
        background: Push from a daemon thread (False runs inline, for tests)
    """

    def __init__(self, notifier: Notifier, background: bool = True):
        self.notifier = notifier
        self.background = background

    def push(self, text: str) -> bool:
        """
        Queue a notification.

        Returns:
            True if the push was started (or completed, when inline)
        """
        if not text:
            return False

        if not self.background:
            self._deliver(text)
            return True

        thread = threading.Thread(
            target=self._deliver,
            args=(text,),
            name="notification-push",
            daemon=True,
        )
        thread.start()
        return True

    def _deliver(self, text: str) -> None:
        try:
            result = self.notifier.send(text)
        except Exception as e:
            result = NotifyResult.failure(f"Unexpected error: {e}")

        # Result is intentionally dropped here
        if not result.ok:
            logger.warning(f"Notification not delivered: {result.error}")
