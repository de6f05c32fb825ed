"""
Push Subscription API endpoints.

WHAT: REST API for registering, listing, reading and removing push
subscriptions.

HOW: FastAPI router on top of SubscriptionRegistry. Errors are raised as
AppException subclasses and rendered by the global exception handlers.
"""

from typing import List
from fastapi import APIRouter, Depends, status

from pushrelay.core.deps import get_registry
from pushrelay.core.exceptions import SubscriptionNotFoundError
from pushrelay.schemas.subscription import (
    MessageResponse,
    SubscriptionCreateRequest,
    SubscriptionCreatedResponse,
    SubscriptionResponse,
)
from pushrelay.services.subscription_registry import SubscriptionRegistry


router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post(
    "",
    response_model=SubscriptionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a push subscription",
    description="Store a browser push subscription. Duplicate endpoints are rejected with 409.",
)
async def create_subscription(
    subscription: SubscriptionCreateRequest,
    registry: SubscriptionRegistry = Depends(get_registry),
) -> SubscriptionCreatedResponse:
    """
    Register a push subscription.

    Args:
        subscription: Web Push subscription from browser
        registry: Subscription registry

    Returns:
        Id of the new subscription

    Raises:
        SubscriptionAlreadyExistsError: The endpoint is already registered
    """
    subscription_id = await registry.create(
        endpoint=subscription.endpoint,
        auth_key=subscription.keys.auth,
        p256dh_key=subscription.keys.p256dh,
    )
    return SubscriptionCreatedResponse(id=str(subscription_id))


@router.get(
    "",
    response_model=List[SubscriptionResponse],
    summary="List push subscriptions",
)
async def list_subscriptions(
    registry: SubscriptionRegistry = Depends(get_registry),
) -> List[SubscriptionResponse]:
    """List every live subscription."""
    subscriptions = await registry.get_all()
    return [SubscriptionResponse.from_model(sub) for sub in subscriptions]


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get a push subscription",
)
async def get_subscription(
    subscription_id: str,
    registry: SubscriptionRegistry = Depends(get_registry),
) -> SubscriptionResponse:
    """
    Get one subscription.

    Raises:
        SubscriptionNotFoundError: Unknown or malformed id
    """
    subscription = await registry.get_by_id(subscription_id)
    if subscription is None:
        raise SubscriptionNotFoundError(subscription_id=subscription_id)
    return SubscriptionResponse.from_model(subscription)


@router.delete(
    "/{subscription_id}",
    response_model=MessageResponse,
    summary="Delete a push subscription",
)
async def delete_subscription(
    subscription_id: str,
    registry: SubscriptionRegistry = Depends(get_registry),
) -> MessageResponse:
    """
    Remove a subscription.

    Raises:
        SubscriptionNotFoundError: Unknown or malformed id
    """
    deleted = await registry.delete(subscription_id)
    if not deleted:
        raise SubscriptionNotFoundError(subscription_id=subscription_id)
    return MessageResponse(message="Subscription deleted")
