"""
Notification sender: renders a message and hands it to a delivery channel.
"""

import logging
from typing import Any, Protocol

import httpx

from publisphere.config.settings import Settings
from publisphere.v1.integrations.errors import NotificationRejectedError
from publisphere.v1.integrations.services import Accepted
from publisphere.v1.notifications.templates import RenderedMessage, render

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    async def send(
        self,
        notification_type: str,
        recipient: str,
        data: dict[str, Any],
        idempotency_key: str | None = None,
    ) -> Accepted: ...


class DeliveryChannel(Protocol):
    async def deliver(
        self,
        message: RenderedMessage,
        recipient: str,
        idempotency_key: str | None = None,
    ) -> Accepted: ...


class ResendChannel:
    """Email delivery through the Resend REST API."""

    def __init__(
        self,
        api_key: str | None,
        sender: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"} if api_key else {},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResendChannel":
        return cls(
            api_key=settings.resend_api_key,
            sender=settings.notification_from,
            base_url=settings.resend_api_url,
            timeout=settings.http_timeout_s,
        )

    async def deliver(
        self,
        message: RenderedMessage,
        recipient: str,
        idempotency_key: str | None = None,
    ) -> Accepted:
        if not self.api_key:
            raise NotificationRejectedError("RESEND_API_KEY is not configured")

        # Resend deduplicates sends that reuse an Idempotency-Key for 24h
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else {}
        response = await self.client.post(
            "/emails",
            json={
                "from": self.sender,
                "to": [recipient],
                "subject": message.subject,
                "html": message.html,
            },
            headers=headers,
        )

        if 400 <= response.status_code < 500:
            raise NotificationRejectedError(
                f"Email provider rejected message ({response.status_code}): "
                f"{response.text[:300]}"
            )
        response.raise_for_status()

        body = response.json()
        return Accepted(reference=body.get("id"))

    async def aclose(self) -> None:
        await self.client.aclose()


class EmailNotificationSender:
    """NotificationSender that renders the email templates."""

    def __init__(self, channel: DeliveryChannel):
        self.channel = channel

    async def send(
        self,
        notification_type: str,
        recipient: str,
        data: dict[str, Any],
        idempotency_key: str | None = None,
    ) -> Accepted:
        if not recipient or "@" not in recipient:
            raise NotificationRejectedError(f"Invalid recipient: {recipient!r}")

        message = render(notification_type, data)
        accepted = await self.channel.deliver(
            message, recipient, idempotency_key=idempotency_key
        )

        logger.info(
            "Notification accepted for delivery",
            extra={
                "notification_type": notification_type,
                "reference": accepted.reference,
            },
        )
        return accepted
