"""Tests for the AppsFlyer delivery transport."""

from unittest.mock import MagicMock

import httpx
import pytest

from jetstream.engine import DeliveryError
from jetstream.infra.appsflyer import AppsFlyerTransport, build_event_url


PAYLOAD = {"advertising_id": "adv-1", "eventName": "confirmed"}


def make_response(status_code: int, **kwargs) -> httpx.Response:
    return httpx.Response(
        status_code,
        request=httpx.Request("POST", "https://api2.appsflyer.com/inappevent/x"),
        **kwargs,
    )


@pytest.fixture
def http_client():
    client = MagicMock(spec=httpx.Client)
    client.post.return_value = make_response(200, text="ok")
    return client


@pytest.fixture
def transport(http_client):
    return AppsFlyerTransport(timeout=15, client=http_client)


class TestEventUrl:
    def test_plain_bundle(self):
        assert build_event_url("com.example.app") == "https://api2.appsflyer.com/inappevent/com.example.app"

    def test_bundle_is_escaped(self):
        assert build_event_url("id123/a b") == "https://api2.appsflyer.com/inappevent/id123%2Fa%20b"


class TestDeliver:
    def test_posts_with_dev_key_header(self, transport, http_client):
        transport.deliver("com.example.app", "dev-key", PAYLOAD)

        http_client.post.assert_called_once_with(
            "https://api2.appsflyer.com/inappevent/com.example.app",
            json=PAYLOAD,
            headers={"authentication": "dev-key", "Content-Type": "application/json"},
            timeout=15,
        )

    def test_non_2xx_raises_with_text_body(self, transport, http_client):
        http_client.post.return_value = make_response(401, text="Unauthorized")

        with pytest.raises(DeliveryError) as exc_info:
            transport.deliver("com.example.app", "bad-key", PAYLOAD)

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "Unauthorized"

    def test_non_2xx_json_body_serialized(self, transport, http_client):
        http_client.post.return_value = make_response(400, json={"error": "invalid appsflyer_id"})

        with pytest.raises(DeliveryError) as exc_info:
            transport.deliver("com.example.app", "dev-key", PAYLOAD)

        assert exc_info.value.status_code == 400
        assert exc_info.value.body == '{"error": "invalid appsflyer_id"}'

    def test_timeout(self, transport, http_client):
        http_client.post.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(DeliveryError) as exc_info:
            transport.deliver("com.example.app", "dev-key", PAYLOAD)

        assert exc_info.value.status_code is None
        assert exc_info.value.body == "Timeout after 15s"

    def test_network_error(self, transport, http_client):
        http_client.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(DeliveryError) as exc_info:
            transport.deliver("com.example.app", "dev-key", PAYLOAD)

        assert exc_info.value.status_code is None
        assert "connection refused" in exc_info.value.body

    def test_close_closes_client(self, transport, http_client):
        transport.close()

        http_client.close.assert_called_once()
