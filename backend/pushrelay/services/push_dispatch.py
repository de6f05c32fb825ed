"""
On-demand push dispatch.

WHAT: Sends a caller-supplied payload to a single subscription and
reports the result as either success or a typed exception.

HOW:
1. Validate the payload (before any lookup or send)
2. Look up the subscription
3. Send through the delivery collaborator; an exception counts as a failed delivery
4. Apply the delivery outcome policy
5. Translate the outcome for the caller
"""

import logging

from pushrelay.core.exceptions import (
    InvalidPayloadError,
    PushDeliveryError,
    SubscriptionGoneError,
    SubscriptionNotFoundError,
)
from pushrelay.services.delivery_outcome import DeliveryOutcome, apply_delivery_outcome
from pushrelay.services.push_delivery import DeliveryPayload, DeliveryResult, PushDeliveryService
from pushrelay.services.subscription_registry import SubscriptionId, SubscriptionRegistry

logger = logging.getLogger(__name__)


class PushDispatchService:
    """
    Service for sending one notification to one subscription.
    """

    def __init__(self, registry: SubscriptionRegistry, delivery: PushDeliveryService):
        """
        Args:
            registry: Subscription registry bound to the request session
            delivery: Delivery collaborator
        """
        self.registry = registry
        self.delivery = delivery

    async def send_to_subscription(
        self,
        subscription_id: SubscriptionId,
        payload: DeliveryPayload,
    ) -> None:
        """
        Deliver a notification to a subscription.

        Args:
            subscription_id: Target subscription id
            payload: Notification content

        Raises:
            InvalidPayloadError: Title or body missing
            SubscriptionNotFoundError: No live subscription with this id
            SubscriptionGoneError: Push service answered 410; subscription removed
            PushDeliveryError: Any other delivery failure; subscription retained
        """
        if not payload.is_valid:
            raise InvalidPayloadError()

        subscription = await self.registry.get_by_id(subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError(subscription_id=str(subscription_id))

        try:
            result = await self.delivery.send(subscription, payload)
        except Exception as e:
            logger.error(f"Delivery to subscription {subscription.id} raised: {e}")
            result = DeliveryResult.failed(error=str(e) or "Unknown error")

        applied = await apply_delivery_outcome(self.registry, subscription.id, result)

        if applied.outcome is DeliveryOutcome.GONE:
            # The request transaction rolls back on error, so persist the removal first
            await self.registry.commit()
            raise SubscriptionGoneError(subscription_id=str(subscription.id))

        if applied.outcome is DeliveryOutcome.FAILED:
            raise PushDeliveryError(
                error=result.error or "Unknown error",
                push_status=result.status_code,
            )

        logger.debug(f"Notification delivered to subscription {subscription.id}")
