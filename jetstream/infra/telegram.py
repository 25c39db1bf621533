"""
Telegram notification transport.

Sends Markdown text through the Bot API sendMessage method. Never raises:
every failure comes back as a NotifyResult.
"""

import logging
from typing import Optional

import httpx

from jetstream.engine.notifications import NotifyResult


logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
TELEGRAM_TIMEOUT_SECONDS = 10


class TelegramNotifier:
    """
    Notifier posting to a single Telegram chat.

    A notifier without token or chat id is "not configured": send() returns
    a failure result without touching the network.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout: float = TELEGRAM_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self._client = client

    def __repr__(self) -> str:
        return f"TelegramNotifier(chat_id={self.chat_id!r}, configured={self.configured})"

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    @property
    def url(self) -> str:
        return f"{TELEGRAM_API_BASE}/bot{self.bot_token}/sendMessage"

    def build_payload(self, text: str) -> dict:
        return {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "Markdown",
        }

    def send(self, text: str) -> NotifyResult:
        if not self.configured:
            return NotifyResult.failure("Telegram not configured")

        try:
            if self._client is not None:
                response = self._client.post(self.url, json=self.build_payload(text), timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.url, json=self.build_payload(text))

            if 200 <= response.status_code < 300:
                logger.debug(f"Telegram message sent (status={response.status_code})")
                return NotifyResult.success()

            error = f"HTTP {response.status_code}: {response.text[:200]}"
            logger.warning(f"Telegram send failed: {error}")
            return NotifyResult.failure(error)

        except httpx.TimeoutException:
            logger.warning(f"Telegram send timeout after {self.timeout}s")
            return NotifyResult.failure(f"Timeout after {self.timeout}s")

        except httpx.RequestError as e:
            logger.warning(f"Telegram request error: {e}")
            return NotifyResult.failure(f"Request error: {e}")
