"""
Push Delivery Service.

WHAT: The delivery collaborator: sends one payload to one subscription and
reports the outcome as a DeliveryResult.

HOW: ``PushDeliveryService`` is the capability the rest of the service
depends on. ``WebPushDeliveryService`` implements it with pywebpush
(VAPID authentication and payload encryption). pywebpush is blocking, so
each send runs in a worker thread to keep the event loop free for other
requests.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from pywebpush import webpush, WebPushException

from pushrelay.core.config import Settings
from pushrelay.core.exceptions import ConfigurationError
from pushrelay.models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryPayload:
    """
    Notification content for one send. Never persisted.

    ``url`` is sent to the browser as ``data.url``.
    """

    title: str
    body: str
    icon: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        """Title and body are both present and non-blank."""
        return bool(self.title and self.title.strip() and self.body and self.body.strip())

    def to_dict(self) -> Dict[str, Any]:
        """Payload as delivered to the service worker, unset fields omitted."""
        payload: Dict[str, Any] = {"title": self.title, "body": self.body}
        if self.icon:
            payload["icon"] = self.icon
        data: Dict[str, Any] = {}
        if self.url:
            data["url"] = self.url
        payload["data"] = data
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one send attempt."""

    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def delivered(cls) -> "DeliveryResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: Optional[str] = None, status_code: Optional[int] = None) -> "DeliveryResult":
        return cls(success=False, status_code=status_code, error=error)


class PushDeliveryService(Protocol):
    """Delivery contract: send one payload to one subscription."""

    async def send(self, subscription: PushSubscription, payload: DeliveryPayload) -> DeliveryResult:
        ...


def _extract_status_code(exc: WebPushException) -> Optional[int]:
    """Extract the push service's HTTP status from a pywebpush exception."""
    response = getattr(exc, "response", None)
    if response is None:
        return None

    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status

    return None


@dataclass
class WebPushDeliveryService:
    """
    pywebpush-backed delivery.

    WHAT: Never raises for delivery problems; every failure becomes a
    DeliveryResult with the push service's status code when one exists.
    """

    vapid_private_key: str
    vapid_subject: str
    timeout: float = 12.0
    ttl: int = 0

    def _send_blocking(self, subscription_info: Dict[str, Any], data: str) -> None:
        webpush(
            subscription_info=subscription_info,
            data=data,
            vapid_private_key=self.vapid_private_key,
            # pywebpush adds aud/exp to the claims dict it is given
            vapid_claims={"sub": self.vapid_subject},
            timeout=self.timeout,
            ttl=self.ttl,
        )

    async def send(self, subscription: PushSubscription, payload: DeliveryPayload) -> DeliveryResult:
        """
        Send a notification to a subscription.

        Args:
            subscription: Target subscription
            payload: Notification content

        Returns:
            DeliveryResult describing the outcome
        """
        try:
            await asyncio.to_thread(
                self._send_blocking,
                subscription.to_webpush_info(),
                payload.to_json(),
            )
        except WebPushException as e:
            status_code = _extract_status_code(e)
            logger.error(
                f"Push failed for subscription {subscription.id} "
                f"(endpoint={subscription.endpoint}, status={status_code}): {e}"
            )
            return DeliveryResult.failed(error=str(e) or "Unknown error", status_code=status_code)
        except Exception as e:
            logger.error(f"Unexpected push error for subscription {subscription.id}: {e}")
            return DeliveryResult.failed(error=str(e) or "Unknown error")

        logger.info(f"Push notification sent to subscription {subscription.id} (endpoint={subscription.endpoint})")
        return DeliveryResult.delivered()


def build_delivery_service(settings: Settings) -> WebPushDeliveryService:
    """
    Create the pywebpush delivery service from settings.

    Raises:
        ConfigurationError: If the VAPID key pair is not configured
    """
    if not settings.vapid_configured:
        raise ConfigurationError("VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY must be defined")

    logger.info("Web Push initialized with VAPID credentials")
    return WebPushDeliveryService(
        vapid_private_key=settings.VAPID_PRIVATE_KEY,
        vapid_subject=settings.VAPID_SUBJECT,
        timeout=settings.PUSH_TIMEOUT_SECONDS,
    )
