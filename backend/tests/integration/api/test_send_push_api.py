"""
Integration tests for the on-demand push API.

WHAT: Tests POST /send-push/{id} with a stubbed delivery collaborator.

WHY: These tests ensure:
1. A valid payload reaches the delivery collaborator
2. Missing title or body gives 400 without a send
3. A 410 from the push service removes the subscription (410, then 404)
4. Other failures give 500 and keep the subscription

HOW: Uses pytest-asyncio with AsyncClient; the delivery dependency is the
recording StubDeliveryService.
"""

import pytest
from httpx import AsyncClient

from pushrelay.services.push_delivery import DeliveryPayload, DeliveryResult
from tests.stubs import StubDeliveryService


async def _subscribe(client: AsyncClient, endpoint: str = "https://push.example/a") -> str:
    response = await client.post(
        "/subscriptions",
        json={"endpoint": endpoint, "keys": {"p256dh": "p256dh", "auth": "auth"}},
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestSendPush:
    """Integration tests for POST /send-push/{id}."""

    @pytest.mark.asyncio
    async def test_send_push(self, client: AsyncClient, stub_delivery: StubDeliveryService):
        subscription_id = await _subscribe(client)

        response = await client.post(
            f"/send-push/{subscription_id}",
            json={"title": "Hi", "body": "Hello", "icon": "/i.png", "data": {"url": "/inbox"}},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Push notification sent"}
        assert len(stub_delivery.calls) == 1
        subscription, payload = stub_delivery.calls[0]
        assert str(subscription.id) == subscription_id
        assert payload == DeliveryPayload(title="Hi", body="Hello", icon="/i.png", url="/inbox")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"title": "Hi"},
            {"body": "Hello"},
            {"title": "", "body": "Hello"},
            {"title": "Hi", "body": "   "},
        ],
    )
    async def test_missing_fields(self, client: AsyncClient, stub_delivery: StubDeliveryService, body: dict):
        subscription_id = await _subscribe(client)

        response = await client.post(f"/send-push/{subscription_id}", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidPayloadError"
        assert response.json()["message"] == "Missing required fields: title, body"
        assert stub_delivery.calls == []

    @pytest.mark.asyncio
    async def test_unknown_subscription(self, client: AsyncClient, stub_delivery: StubDeliveryService):
        response = await client.post("/send-push/999", json={"title": "Hi", "body": "Hello"})

        assert response.status_code == 404
        assert response.json()["error"] == "SubscriptionNotFoundError"
        assert stub_delivery.calls == []

    @pytest.mark.asyncio
    async def test_gone_subscription_removed(self, client: AsyncClient, stub_delivery: StubDeliveryService):
        """
        Test the expired subscription flow.

        WHY: The push service answers 410 for an uninstalled endpoint. The
        caller learns it was removed, and the id stops existing.
        """
        subscription_id = await _subscribe(client)
        stub_delivery.default_result = DeliveryResult.failed("Gone", status_code=410)

        response = await client.post(
            f"/send-push/{subscription_id}", json={"title": "Hi", "body": "Hello"}
        )

        assert response.status_code == 410
        assert response.json()["error"] == "SubscriptionGoneError"
        assert response.json()["message"] == "Subscription expired and was removed"

        fetched = await client.get(f"/subscriptions/{subscription_id}")
        assert fetched.status_code == 404

        retry = await client.post(
            f"/send-push/{subscription_id}", json={"title": "Hi", "body": "Hello"}
        )
        assert retry.status_code == 404
        assert len(stub_delivery.calls) == 1

    @pytest.mark.asyncio
    async def test_delivery_failure_keeps_subscription(
        self, client: AsyncClient, stub_delivery: StubDeliveryService
    ):
        subscription_id = await _subscribe(client)
        stub_delivery.default_result = DeliveryResult.failed("Internal", status_code=500)

        response = await client.post(
            f"/send-push/{subscription_id}", json={"title": "Hi", "body": "Hello"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "PushDeliveryError"
        assert response.json()["message"] == "Failed to send push notification"

        fetched = await client.get(f"/subscriptions/{subscription_id}")
        assert fetched.status_code == 200

    @pytest.mark.asyncio
    async def test_collaborator_exception(
        self, client: AsyncClient, stub_delivery: StubDeliveryService
    ):
        """A delivery collaborator that raises gives the delivery-failed body."""
        subscription_id = await _subscribe(client)
        stub_delivery.errors["https://push.example/a"] = RuntimeError("connection reset")

        response = await client.post(
            f"/send-push/{subscription_id}", json={"title": "Hi", "body": "Hello"}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "PushDeliveryError"
        assert body["details"]["error"] == "connection reset"

        fetched = await client.get(f"/subscriptions/{subscription_id}")
        assert fetched.status_code == 200

    @pytest.mark.asyncio
    async def test_endpoint_can_resubscribe_after_gone(
        self, client: AsyncClient, stub_delivery: StubDeliveryService
    ):
        subscription_id = await _subscribe(client)
        stub_delivery.default_result = DeliveryResult.failed("Gone", status_code=410)
        await client.post(f"/send-push/{subscription_id}", json={"title": "Hi", "body": "Hello"})

        new_id = await _subscribe(client)

        assert new_id != subscription_id
