"""Discord webhook mirror."""

from __future__ import annotations

import asyncio
import logging

import httpx

from intent_watch.models.records import DeliveryResult

log = logging.getLogger(__name__)


class DiscordWebhookMirror:
    """Posts one copy of each notification to a per-channel webhook.

    A channel without a webhook URL is skipped. HTTP 429 responses are
    retried after the ``retry_after`` the API asks for.
    """

    def __init__(
        self,
        orders_webhook_url: str = "",
        orders_thread_id: str = "",
        sniper_webhook_url: str = "",
        sniper_thread_id: str = "",
        username: str = "ZKP2P Alerts",
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._targets = {
            "orders": (orders_webhook_url, orders_thread_id),
            "sniper": (sniper_webhook_url, sniper_thread_id),
        }
        self._username = username
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

    async def post(
        self,
        text: str,
        link_label: str | None = None,
        link_url: str | None = None,
        channel: str = "orders",
    ) -> DeliveryResult:
        url, thread_id = self._targets.get(channel, ("", ""))
        if not url:
            return DeliveryResult(success=True, target=f"discord:{channel}")

        body: dict = {"content": text, "username": self._username}
        if link_label and link_url:
            # ActionRow with one link-style button
            body["components"] = [{
                "type": 1,
                "components": [{"type": 2, "style": 5, "label": link_label, "url": link_url}],
            }]
        params = {"thread_id": thread_id} if thread_id else None

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                for attempt in range(1, self._max_retries + 1):
                    resp = await client.post(url, json=body, params=params)
                    if resp.status_code == 429 and attempt < self._max_retries:
                        try:
                            retry_after = float(resp.json().get("retry_after", 1))
                        except ValueError:
                            retry_after = 1.0
                        log.warning("Discord rate limited, retrying in %.1fs", retry_after)
                        await asyncio.sleep(retry_after)
                        continue
                    break
        except httpx.HTTPError as exc:
            return DeliveryResult(success=False, target=f"discord:{channel}", error=str(exc))

        if resp.is_error:
            return DeliveryResult(
                success=False,
                target=f"discord:{channel}",
                error=f"HTTP {resp.status_code}: {resp.text[:200]}",
            )
        return DeliveryResult(success=True, target=f"discord:{channel}")
