"""
AppsFlyer in-app-event delivery transport.

POST https://api2.appsflyer.com/inappevent/<bundle> with the dev key in the
`authentication` header. Any non-2xx response, timeout or network failure
is raised as DeliveryError.
"""

import json
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from jetstream.engine.errors import DeliveryError


logger = logging.getLogger(__name__)

APPSFLYER_API_BASE = "https://api2.appsflyer.com/inappevent"
DELIVERY_TIMEOUT_SECONDS = 15


def build_event_url(bundle: str) -> str:
    return f"{APPSFLYER_API_BASE}/{quote(bundle, safe='')}"


def _response_body(response: httpx.Response) -> str:
    """Response body as text; JSON bodies re-serialized compactly."""
    try:
        data = response.json()
    except ValueError:
        return response.text

    if isinstance(data, str):
        return data
    return json.dumps(data, ensure_ascii=False)


class AppsFlyerTransport:
    """DeliveryTransport for the AppsFlyer server-to-server event API."""

    def __init__(
        self,
        timeout: float = DELIVERY_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def deliver(self, bundle: str, credential: str, payload: dict) -> None:
        """
        Send one event.

        Raises:
            DeliveryError: On non-2xx response, timeout or request error
        """
        url = build_event_url(bundle)
        headers = {
            "authentication": credential,
            "Content-Type": "application/json",
        }

        try:
            response = self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException:
            raise DeliveryError(None, f"Timeout after {self.timeout}s")
        except httpx.RequestError as e:
            raise DeliveryError(None, f"Request error: {e}")

        if not 200 <= response.status_code < 300:
            raise DeliveryError(response.status_code, _response_body(response))
