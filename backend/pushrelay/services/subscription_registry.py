"""
Subscription Registry.

WHAT: Business rules for the subscription lifecycle: create with
one-subscription-per-endpoint, lookup, listing and delete.

HOW: Wraps PushSubscriptionDAO. Ids arrive from the HTTP layer as
strings; anything that is not a positive integer is treated as an unknown
id (lookups return None, deletes return False) rather than an error.

Uniqueness is checked by an explicit lookup before insert so a duplicate is
reported as SubscriptionAlreadyExistsError. Two concurrent creates can both
pass the lookup; the unique index then rejects the second insert and that
IntegrityError is reported as the same SubscriptionAlreadyExistsError.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pushrelay.core.exceptions import SubscriptionAlreadyExistsError
from pushrelay.dao.push_subscription import PushSubscriptionDAO
from pushrelay.models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)

# Largest value a BIGINT / SQLite INTEGER can hold
MAX_SUBSCRIPTION_ID = 2**63 - 1

SubscriptionId = Union[int, str]


def parse_subscription_id(raw: SubscriptionId) -> Optional[int]:
    """
    Parse an external subscription id.

    Args:
        raw: Id as received from a caller (path parameter or int)

    Returns:
        The integer id, or None if the value is malformed
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not text.isascii() or not text.isdigit():
            return None
        value = int(text)
    else:
        return None

    if value <= 0 or value > MAX_SUBSCRIPTION_ID:
        return None
    return value


class SubscriptionRegistry:
    """
    Registry of live push subscriptions.

    Example:
        registry = SubscriptionRegistry(session)
        sub_id = await registry.create(endpoint, auth_key, p256dh_key)
        sub = await registry.get_by_id(str(sub_id))
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.dao = PushSubscriptionDAO(session)

    async def get_all(self) -> List[PushSubscription]:
        """Return all live subscriptions; order is not guaranteed."""
        return await self.dao.list_all()

    async def get_by_id(self, subscription_id: SubscriptionId) -> Optional[PushSubscription]:
        """
        Look up a subscription.

        Args:
            subscription_id: External id (string or int)

        Returns:
            The subscription, or None when the id is malformed or absent
        """
        parsed = parse_subscription_id(subscription_id)
        if parsed is None:
            return None
        return await self.dao.get_by_id(parsed)

    async def create(self, endpoint: str, auth_key: str, p256dh_key: str) -> int:
        """
        Register a new subscription.

        Args:
            endpoint: Push service endpoint URL
            auth_key: Client auth secret
            p256dh_key: Client public key

        Returns:
            Id of the new subscription

        Raises:
            SubscriptionAlreadyExistsError: A live subscription uses the endpoint
        """
        existing = await self.dao.get_by_endpoint(endpoint)
        if existing is not None:
            raise SubscriptionAlreadyExistsError(subscription_id=str(existing.id))

        try:
            subscription = await self.dao.create_subscription(
                endpoint=endpoint,
                p256dh_key=p256dh_key,
                auth_key=auth_key,
            )
        except IntegrityError:
            # Lost the race against a concurrent create for the same endpoint
            await self.session.rollback()
            logger.warning("Concurrent create rejected by unique endpoint index")
            raise SubscriptionAlreadyExistsError()

        logger.info(f"Subscription {subscription.id} created")
        return subscription.id

    async def delete(self, subscription_id: SubscriptionId) -> bool:
        """
        Remove a subscription.

        Args:
            subscription_id: External id (string or int)

        Returns:
            True if a subscription was removed, False otherwise
        """
        parsed = parse_subscription_id(subscription_id)
        if parsed is None:
            return False

        deleted = await self.dao.delete(parsed)
        if deleted:
            logger.info(f"Subscription {parsed} deleted")
        return deleted

    async def commit(self) -> None:
        """Commit pending registry changes."""
        await self.session.commit()
