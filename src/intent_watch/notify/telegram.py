"""Telegram Bot API sender."""

from __future__ import annotations

import logging

import httpx

from intent_watch.models.records import DeliveryResult

log = logging.getLogger(__name__)


class TelegramSender:
    """Sends messages with ``sendMessage``.

    Messages to the broadcast group are posted into a forum topic: order
    notifications to ``topic_id`` and sniper alerts to ``sniper_topic_id``.
    """

    def __init__(
        self,
        bot_token: str,
        api_url: str = "https://api.telegram.org",
        group_id: str = "",
        topic_id: int | None = None,
        sniper_topic_id: int | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{api_url.rstrip('/')}/bot{bot_token}/sendMessage"
        self._group_id = str(group_id)
        self._topics = {"orders": topic_id, "sniper": sniper_topic_id}
        self._timeout = timeout
        self._transport = transport

    def _payload(
        self,
        subscriber_id: str,
        text: str,
        link_label: str | None,
        link_url: str | None,
        channel: str,
    ) -> dict:
        payload: dict = {
            "chat_id": subscriber_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if link_label and link_url:
            payload["reply_markup"] = {
                "inline_keyboard": [[{"text": link_label, "url": link_url}]],
            }
        topic = self._topics.get(channel)
        if self._group_id and str(subscriber_id) == self._group_id and topic is not None:
            payload["message_thread_id"] = topic
        return payload

    async def send(
        self,
        subscriber_id: str,
        text: str,
        link_label: str | None = None,
        link_url: str | None = None,
        channel: str = "orders",
    ) -> DeliveryResult:
        payload = self._payload(subscriber_id, text, link_label, link_url, channel)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.post(self._url, json=payload)
                data = resp.json()
        except httpx.TimeoutException:
            return DeliveryResult(success=False, target=subscriber_id, error="timeout")
        except (httpx.HTTPError, ValueError) as exc:
            return DeliveryResult(success=False, target=subscriber_id, error=str(exc))

        if not data.get("ok"):
            return DeliveryResult(
                success=False,
                target=subscriber_id,
                error=data.get("description") or f"HTTP {resp.status_code}",
            )
        return DeliveryResult(success=True, target=subscriber_id)
