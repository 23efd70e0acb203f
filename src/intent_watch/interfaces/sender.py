"""MessageSender protocols - outbound delivery to chat and webhook endpoints."""

from __future__ import annotations

from typing import Protocol

from intent_watch.models.records import DeliveryResult


class MessageSender(Protocol):
    """Delivers one message to one subscriber."""

    async def send(
        self,
        subscriber_id: str,
        text: str,
        link_label: str | None = None,
        link_url: str | None = None,
        channel: str = "orders",
    ) -> DeliveryResult:
        ...


class WebhookMirror(Protocol):
    """Posts a copy of each notification once, independent of subscribers."""

    async def post(
        self,
        text: str,
        link_label: str | None = None,
        link_url: str | None = None,
        channel: str = "orders",
    ) -> DeliveryResult:
        ...
