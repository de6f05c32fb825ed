"""
Unit tests for the pywebpush delivery service.

WHAT: Tests payload shaping and the mapping of pywebpush errors to
DeliveryResult.

HOW: ``webpush`` is patched so no request leaves the process.
"""

import json

import pytest
from unittest.mock import MagicMock, patch
from pywebpush import WebPushException

from pushrelay.core.config import Settings
from pushrelay.core.exceptions import ConfigurationError
from pushrelay.models.push_subscription import PushSubscription
from pushrelay.services.push_delivery import (
    DeliveryPayload,
    DeliveryResult,
    WebPushDeliveryService,
    build_delivery_service,
)


@pytest.fixture
def subscription() -> PushSubscription:
    return PushSubscription(
        id=1,
        endpoint="https://push.example/a",
        p256dh_key="p256dh",
        auth_key="auth",
    )


@pytest.fixture
def service() -> WebPushDeliveryService:
    return WebPushDeliveryService(
        vapid_private_key="private-key",
        vapid_subject="mailto:ops@example.com",
        timeout=5.0,
    )


def _webpush_error(status_code):
    response = MagicMock()
    response.status_code = status_code
    return WebPushException(f"Push failed: {status_code}", response=response)


class TestDeliveryPayload:
    """Tests for payload validation and shaping."""

    @pytest.mark.parametrize(
        "title,body,valid",
        [
            ("Hi", "Hello", True),
            ("", "Hello", False),
            ("Hi", "", False),
            ("   ", "Hello", False),
            ("Hi", "\n", False),
        ],
    )
    def test_is_valid(self, title, body, valid):
        assert DeliveryPayload(title=title, body=body).is_valid is valid

    def test_to_dict_full(self):
        payload = DeliveryPayload(title="Hi", body="Hello", icon="/i.png", url="/inbox")
        assert payload.to_dict() == {
            "title": "Hi",
            "body": "Hello",
            "icon": "/i.png",
            "data": {"url": "/inbox"},
        }

    def test_to_dict_minimal(self):
        assert DeliveryPayload(title="Hi", body="Hello").to_dict() == {
            "title": "Hi",
            "body": "Hello",
            "data": {},
        }


class TestWebPushDeliveryService:
    """Tests for WebPushDeliveryService.send."""

    @pytest.mark.asyncio
    async def test_send_success(self, service, subscription):
        payload = DeliveryPayload(title="Hi", body="Hello", url="/x")

        with patch("pushrelay.services.push_delivery.webpush") as mock_webpush:
            result = await service.send(subscription, payload)

        assert result == DeliveryResult.delivered()
        kwargs = mock_webpush.call_args.kwargs
        assert kwargs["subscription_info"] == {
            "endpoint": "https://push.example/a",
            "keys": {"p256dh": "p256dh", "auth": "auth"},
        }
        assert json.loads(kwargs["data"]) == payload.to_dict()
        assert kwargs["vapid_private_key"] == "private-key"
        assert kwargs["vapid_claims"] == {"sub": "mailto:ops@example.com"}
        assert kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_send_gone(self, service, subscription):
        with patch(
            "pushrelay.services.push_delivery.webpush",
            side_effect=_webpush_error(410),
        ):
            result = await service.send(subscription, DeliveryPayload(title="Hi", body="Hello"))

        assert result.success is False
        assert result.status_code == 410
        assert result.error

    @pytest.mark.asyncio
    async def test_send_server_error(self, service, subscription):
        with patch(
            "pushrelay.services.push_delivery.webpush",
            side_effect=_webpush_error(503),
        ):
            result = await service.send(subscription, DeliveryPayload(title="Hi", body="Hello"))

        assert result.success is False
        assert result.status_code == 503

    @pytest.mark.asyncio
    async def test_send_without_response(self, service, subscription):
        """A pywebpush error with no HTTP response has no status code."""
        with patch(
            "pushrelay.services.push_delivery.webpush",
            side_effect=WebPushException("no response"),
        ):
            result = await service.send(subscription, DeliveryPayload(title="Hi", body="Hello"))

        assert result.success is False
        assert result.status_code is None

    @pytest.mark.asyncio
    async def test_send_transport_error(self, service, subscription):
        """Unexpected errors are reported, never raised."""
        with patch(
            "pushrelay.services.push_delivery.webpush",
            side_effect=ConnectionError("connection reset"),
        ):
            result = await service.send(subscription, DeliveryPayload(title="Hi", body="Hello"))

        assert result.success is False
        assert result.status_code is None
        assert "connection reset" in result.error


class TestBuildDeliveryService:
    """Tests for building the service from settings."""

    def test_requires_vapid_keys(self):
        config = Settings(VAPID_PUBLIC_KEY=None, VAPID_PRIVATE_KEY=None)
        with pytest.raises(ConfigurationError):
            build_delivery_service(config)

    def test_builds_from_settings(self):
        config = Settings(
            VAPID_PUBLIC_KEY="pub",
            VAPID_PRIVATE_KEY="priv",
            VAPID_SUBJECT="mailto:me@example.com",
            PUSH_TIMEOUT_SECONDS=3.0,
        )
        service = build_delivery_service(config)

        assert service.vapid_private_key == "priv"
        assert service.vapid_subject == "mailto:me@example.com"
        assert service.timeout == 3.0

    @pytest.mark.parametrize(
        "public_key,private_key",
        [("pub", None), (None, "priv")],
    )
    def test_requires_both_keys(self, public_key, private_key):
        """The public key is never used to sign, but startup still requires it."""
        config = Settings(VAPID_PUBLIC_KEY=public_key, VAPID_PRIVATE_KEY=private_key)
        with pytest.raises(ConfigurationError):
            build_delivery_service(config)
