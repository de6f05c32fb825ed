"""
Push Subscription Data Access Object (DAO).

WHAT: Database operations for the push subscription model.

HOW: Extends BaseDAO with endpoint lookups. Business rules (one
subscription per endpoint, id parsing) live in SubscriptionRegistry.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from pushrelay.dao.base import BaseDAO
from pushrelay.models.push_subscription import PushSubscription


class PushSubscriptionDAO(BaseDAO[PushSubscription]):
    """
    Data Access Object for PushSubscription model.
    """

    def __init__(self, session: AsyncSession):
        """Initialize PushSubscriptionDAO."""
        super().__init__(PushSubscription, session)

    async def get_by_endpoint(
        self,
        endpoint: str,
    ) -> Optional[PushSubscription]:
        """
        Get subscription by endpoint.

        Args:
            endpoint: Subscription endpoint URL

        Returns:
            PushSubscription if found
        """
        return await self.get_by_field("endpoint", endpoint)

    async def list_all(self) -> List[PushSubscription]:
        """
        Get every stored subscription.

        Returns:
            All subscriptions, in storage order
        """
        return await self.get_all()

    async def create_subscription(
        self,
        endpoint: str,
        p256dh_key: str,
        auth_key: str,
    ) -> PushSubscription:
        """
        Insert a subscription row.

        Args:
            endpoint: Subscription endpoint URL
            p256dh_key: Client public key
            auth_key: Client auth secret

        Returns:
            Created subscription with id and created_at populated

        Raises:
            IntegrityError: If the endpoint already exists
        """
        return await self.create(
            endpoint=endpoint,
            p256dh_key=p256dh_key,
            auth_key=auth_key,
        )
