"""
On-demand push API endpoint.

WHAT: Sends a notification to one subscription.

HOW: Thin wrapper around PushDispatchService; its exceptions map to
400 (invalid payload), 404 (unknown id), 410 (gone, subscription removed)
and 500 (delivery failed, subscription retained).
"""

from fastapi import APIRouter, Depends

from pushrelay.core.deps import get_dispatch_service
from pushrelay.schemas.push import SendPushRequest
from pushrelay.schemas.subscription import MessageResponse
from pushrelay.services.push_dispatch import PushDispatchService


router = APIRouter(prefix="/send-push", tags=["push-notifications"])


@router.post(
    "/{subscription_id}",
    response_model=MessageResponse,
    summary="Send a push notification",
    description="Deliver a notification to one subscription.",
)
async def send_push(
    subscription_id: str,
    request_body: SendPushRequest,
    dispatch: PushDispatchService = Depends(get_dispatch_service),
) -> MessageResponse:
    """
    Send a push notification.

    Args:
        subscription_id: Target subscription id
        request_body: Notification content
        dispatch: Dispatch service

    Returns:
        Confirmation message
    """
    await dispatch.send_to_subscription(subscription_id, request_body.to_payload())
    return MessageResponse(message="Push notification sent")
