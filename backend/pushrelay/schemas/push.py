"""
Send-push Pydantic Schemas.
"""

from typing import Optional
from pydantic import BaseModel, Field

from pushrelay.services.push_delivery import DeliveryPayload


class PushData(BaseModel):
    """Extra data handed to the service worker."""

    url: Optional[str] = Field(None, description="URL to open on click")


class SendPushRequest(BaseModel):
    """
    Request schema for an on-demand notification.

    WHAT: ``title`` and ``body`` are optional here so that missing or empty
    values are rejected by the dispatch service as InvalidPayloadError
    rather than by request parsing.
    """

    title: Optional[str] = Field(None, description="Notification title")
    body: Optional[str] = Field(None, description="Notification body text")
    icon: Optional[str] = Field(None, description="Icon URL")
    data: Optional[PushData] = Field(None, description="Additional data")

    def to_payload(self) -> DeliveryPayload:
        return DeliveryPayload(
            title=self.title or "",
            body=self.body or "",
            icon=self.icon,
            url=self.data.url if self.data else None,
        )
