"""
Push Subscription Pydantic Schemas.

WHAT: Request/Response models for the subscription endpoints.

HOW: The request body is the browser's PushSubscription JSON. Responses
mirror the stored record with ``id`` serialized as a string and
``createdAt`` in camelCase.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from pushrelay.models.push_subscription import PushSubscription


class SubscriptionKeys(BaseModel):
    """Encryption keys from the browser subscription."""

    p256dh: str = Field(..., min_length=1, description="Client public key (P-256 ECDH)")
    auth: str = Field(..., min_length=1, description="Client auth secret")


# ============================================================================
# Request Schemas
# ============================================================================


class SubscriptionCreateRequest(BaseModel):
    """
    Request schema for registering a push subscription.

    WHAT: Missing or empty fields are rejected with 400.
    """

    endpoint: str = Field(..., min_length=1, description="Push service endpoint URL")
    keys: SubscriptionKeys = Field(..., description="Encryption keys (p256dh, auth)")


# ============================================================================
# Response Schemas
# ============================================================================


class SubscriptionResponse(BaseModel):
    """Stored subscription as returned by the API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Subscription id")
    endpoint: str
    keys: SubscriptionKeys
    created_at: datetime = Field(..., serialization_alias="createdAt")

    @classmethod
    def from_model(cls, subscription: PushSubscription) -> "SubscriptionResponse":
        return cls(
            id=str(subscription.id),
            endpoint=subscription.endpoint,
            keys=SubscriptionKeys(
                p256dh=subscription.p256dh_key,
                auth=subscription.auth_key,
            ),
            created_at=subscription.created_at,
        )


class SubscriptionCreatedResponse(BaseModel):
    """Response for a newly registered subscription."""

    message: str = "Subscription created"
    id: str


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
