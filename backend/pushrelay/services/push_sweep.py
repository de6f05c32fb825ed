"""
Periodic Push Sweep.

WHAT: Background job that sends one broadcast payload to every stored
subscription and prunes subscriptions the push service reports as gone.

HOW: Runs on an APScheduler interval (every 5 minutes by default):
1. Skip the tick if the previous one is still running
2. Load all subscriptions (failure here fails the tick)
3. Build one payload for the tick
4. For each subscription, sequentially: send, apply the outcome policy,
   commit any removal. A failure for one subscription is counted and
   logged and never stops the loop.
5. Log and return the aggregate counts
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pushrelay.core.config import Settings
from pushrelay.services.delivery_outcome import DeliveryOutcome, apply_delivery_outcome
from pushrelay.services.push_delivery import DeliveryPayload, PushDeliveryService
from pushrelay.services.subscription_registry import SubscriptionRegistry

logger = logging.getLogger(__name__)

PayloadFactory = Callable[[], DeliveryPayload]


@dataclass
class SweepReport:
    """Aggregate counts for one sweep tick."""

    total: int = 0
    delivered: int = 0
    removed: int = 0
    already_removed: int = 0
    failed: int = 0
    errors: int = 0
    skipped: bool = False

    @property
    def attempted(self) -> int:
        return self.delivered + self.removed + self.already_removed + self.failed + self.errors


def make_sweep_payload_factory(settings: Settings) -> PayloadFactory:
    """
    Build the payload factory for the scheduled broadcast.

    Args:
        settings: Application settings (title, icon and url of the broadcast)

    Returns:
        Callable creating a fresh payload, stamped with the current UTC time
    """

    def build_payload() -> DeliveryPayload:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        return DeliveryPayload(
            title=settings.PUSH_SWEEP_TITLE,
            body=f"Automatic notification - {stamp}",
            icon=settings.PUSH_SWEEP_ICON,
            url=settings.PUSH_SWEEP_URL,
        )

    return build_payload


class PushSweepService:
    """
    Background service for the scheduled broadcast.

    WHAT: Non-reentrant: one tick at a time per service instance.

    Example:
        service = PushSweepService(database.session_factory, delivery, payload_factory)
        report = await service.run_sweep()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        delivery: PushDeliveryService,
        payload_factory: PayloadFactory,
    ):
        """
        Args:
            session_factory: Factory for the tick's database session
            delivery: Delivery collaborator
            payload_factory: Builds the payload shared by all sends in a tick
        """
        self._session_factory = session_factory
        self._delivery = delivery
        self._payload_factory = payload_factory
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def run_sweep(self) -> SweepReport:
        """
        Main job function: broadcast to all subscriptions.

        Returns:
            SweepReport with per-outcome counts (``skipped`` if a tick was
            already running)

        Raises:
            Exception: Only when the subscription list cannot be loaded
        """
        if self._in_flight:
            logger.warning("Previous push sweep still running, skipping this tick")
            return SweepReport(skipped=True)

        self._in_flight = True
        try:
            return await self._run_tick()
        finally:
            self._in_flight = False

    async def _run_tick(self) -> SweepReport:
        start_time = datetime.now(timezone.utc)
        report = SweepReport()

        async with self._session_factory() as session:
            registry = SubscriptionRegistry(session)

            try:
                subscriptions = await registry.get_all()
            except Exception as e:
                logger.error(f"Push sweep failed to load subscriptions: {e}")
                raise

            # Detach the loaded rows so a per-subscription rollback cannot expire them
            session.expunge_all()

            report.total = len(subscriptions)
            if not subscriptions:
                logger.info("No subscriptions found, skipping push")
                return report

            payload = self._payload_factory()

            for subscription in subscriptions:
                subscription_id = subscription.id
                try:
                    result = await self._delivery.send(subscription, payload)
                    applied = await apply_delivery_outcome(registry, subscription_id, result)

                    if applied.outcome is DeliveryOutcome.GONE:
                        if applied.removed:
                            await registry.commit()
                            report.removed += 1
                        else:
                            report.already_removed += 1
                    elif applied.outcome is DeliveryOutcome.FAILED:
                        report.failed += 1
                    else:
                        report.delivered += 1

                except Exception as e:
                    logger.error(f"Error sending push to subscription {subscription_id}: {e}")
                    report.errors += 1
                    await session.rollback()

        elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            f"Push sweep completed in {elapsed:.2f}s. "
            f"Total: {report.total}, Attempted: {report.attempted}, Delivered: {report.delivered}, "
            f"Removed: {report.removed}, Already removed: {report.already_removed}, "
            f"Failed: {report.failed}, Errors: {report.errors}"
        )

        return report
