"""
Delivery Outcome Handler.

WHAT: Per-subscription policy applied after every send attempt.

HOW: A subscription is either live or removed. The only automatic
transition is live -> removed, taken when the push service answers 410
Gone. Any other failure leaves the subscription in place for the next
attempt; success changes nothing.
"""

import enum
import logging
from dataclasses import dataclass

from pushrelay.services.push_delivery import DeliveryResult
from pushrelay.services.subscription_registry import SubscriptionId, SubscriptionRegistry

logger = logging.getLogger(__name__)

# Push service answer for an endpoint that will never accept messages again
GONE_STATUS_CODE = 410


class DeliveryOutcome(str, enum.Enum):
    """What a send attempt means for its subscription."""

    DELIVERED = "delivered"
    GONE = "gone"
    FAILED = "failed"


@dataclass(frozen=True)
class AppliedOutcome:
    """Classified outcome, and whether this call removed the subscription."""

    outcome: DeliveryOutcome
    removed: bool = False


def classify_delivery(result: DeliveryResult) -> DeliveryOutcome:
    """
    Map a delivery result to an outcome. Pure, no side effects.

    Args:
        result: Result reported by the delivery collaborator

    Returns:
        DELIVERED on success, GONE on a 410 failure, FAILED otherwise
    """
    if result.success:
        return DeliveryOutcome.DELIVERED
    if result.status_code == GONE_STATUS_CODE:
        return DeliveryOutcome.GONE
    return DeliveryOutcome.FAILED


async def apply_delivery_outcome(
    registry: SubscriptionRegistry,
    subscription_id: SubscriptionId,
    result: DeliveryResult,
) -> AppliedOutcome:
    """
    Apply the outcome policy for one subscription.

    Args:
        registry: Registry to delete from on GONE
        subscription_id: Subscription the result belongs to
        result: Delivery result

    Returns:
        The classified outcome. ``removed`` is False on GONE when the
        subscription was already deleted by someone else.
    """
    outcome = classify_delivery(result)

    if outcome is DeliveryOutcome.GONE:
        removed = await registry.delete(subscription_id)
        if removed:
            logger.info(f"Expired subscription {subscription_id} removed")
        else:
            logger.debug(f"Expired subscription {subscription_id} was already removed")
        return AppliedOutcome(outcome, removed=removed)
    if outcome is DeliveryOutcome.FAILED:
        logger.warning(
            f"Delivery to subscription {subscription_id} failed "
            f"(status={result.status_code}): {result.error}; subscription retained"
        )

    return AppliedOutcome(outcome)
