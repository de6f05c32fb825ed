"""
FastAPI dependencies for services.

WHY: Resolving collaborators through dependencies lets tests swap the
database session and the delivery collaborator with
``app.dependency_overrides`` without touching the routes.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pushrelay.core.exceptions import ConfigurationError
from pushrelay.db.session import get_db
from pushrelay.services.push_delivery import PushDeliveryService
from pushrelay.services.push_dispatch import PushDispatchService
from pushrelay.services.subscription_registry import SubscriptionRegistry


def get_delivery_service(request: Request) -> PushDeliveryService:
    """
    Get the application's delivery collaborator.

    Raises:
        ConfigurationError: If startup did not configure push delivery
    """
    delivery = getattr(request.app.state, "delivery", None)
    if delivery is None:
        raise ConfigurationError("Push delivery is not configured")
    return delivery


async def get_registry(db: AsyncSession = Depends(get_db)) -> SubscriptionRegistry:
    """Subscription registry bound to the request session."""
    return SubscriptionRegistry(db)


async def get_dispatch_service(
    registry: SubscriptionRegistry = Depends(get_registry),
    delivery: PushDeliveryService = Depends(get_delivery_service),
) -> PushDispatchService:
    """On-demand dispatch service for the request."""
    return PushDispatchService(registry, delivery)
