"""
Integration tests for the per-request database session.

WHAT: Runs the API through the real lifespan and the real get_db against a
file-backed SQLite database. Only the delivery collaborator is stubbed.

WHY: The API tests share one session across requests, which hides whether
get_db commits a successful request, rolls back a failed one, and still
keeps a removal made before a 410.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from pushrelay.core.config import Settings
from pushrelay.core.deps import get_delivery_service
from pushrelay.main import create_app
from pushrelay.services.push_delivery import DeliveryResult
from tests.stubs import StubDeliveryService

ENDPOINT = "https://push.example/a"
SUBSCRIPTION = {"endpoint": ENDPOINT, "keys": {"p256dh": "p256dh", "auth": "auth"}}
MESSAGE = {"title": "Hi", "body": "Hello"}


@pytest.fixture
def delivery() -> StubDeliveryService:
    return StubDeliveryService()


@pytest_asyncio.fixture
async def live_client(tmp_path, delivery):
    app = create_app(
        Settings(
            DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'push.db'}",
            DATABASE_AUTO_CREATE=True,
            VAPID_PUBLIC_KEY="public-key",
            VAPID_PRIVATE_KEY="private-key",
            PUSH_SWEEP_ENABLED=False,
        )
    )
    app.dependency_overrides[get_delivery_service] = lambda: delivery

    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client


class TestRequestSession:
    @pytest.mark.asyncio
    async def test_create_is_committed(self, live_client: AsyncClient):
        created = await live_client.post("/subscriptions", json=SUBSCRIPTION)
        assert created.status_code == 201

        fetched = await live_client.get(f"/subscriptions/{created.json()['id']}")

        assert fetched.status_code == 200
        assert fetched.json()["endpoint"] == ENDPOINT

    @pytest.mark.asyncio
    async def test_duplicate_rejected_across_sessions(self, live_client: AsyncClient):
        first = await live_client.post("/subscriptions", json=SUBSCRIPTION)

        second = await live_client.post("/subscriptions", json=SUBSCRIPTION)

        assert second.status_code == 409
        assert second.json()["details"]["subscription_id"] == first.json()["id"]

    @pytest.mark.asyncio
    async def test_gone_removal_survives_error_response(
        self, live_client: AsyncClient, delivery: StubDeliveryService
    ):
        """
        The 410 response rolls back the request session, yet the row is gone.

        WHY: The removal is committed before the error is raised.
        """
        subscription_id = (await live_client.post("/subscriptions", json=SUBSCRIPTION)).json()["id"]
        delivery.default_result = DeliveryResult.failed("Gone", status_code=410)

        response = await live_client.post(f"/send-push/{subscription_id}", json=MESSAGE)

        assert response.status_code == 410
        fetched = await live_client.get(f"/subscriptions/{subscription_id}")
        assert fetched.status_code == 404

    @pytest.mark.asyncio
    async def test_failed_delivery_keeps_subscription(
        self, live_client: AsyncClient, delivery: StubDeliveryService
    ):
        subscription_id = (await live_client.post("/subscriptions", json=SUBSCRIPTION)).json()["id"]
        delivery.errors[ENDPOINT] = RuntimeError("connection reset")

        response = await live_client.post(f"/send-push/{subscription_id}", json=MESSAGE)

        assert response.status_code == 500
        fetched = await live_client.get(f"/subscriptions/{subscription_id}")
        assert fetched.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_is_committed(self, live_client: AsyncClient):
        subscription_id = (await live_client.post("/subscriptions", json=SUBSCRIPTION)).json()["id"]

        deleted = await live_client.delete(f"/subscriptions/{subscription_id}")

        assert deleted.status_code == 200
        assert (await live_client.get(f"/subscriptions/{subscription_id}")).status_code == 404
