"""Notification dispatch - renders outcomes and alerts and fans them out."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Sequence

from intent_watch.chain.catalog import currency_code, platform_name
from intent_watch.interfaces.sender import MessageSender, WebhookMirror
from intent_watch.interfaces.store import SubscriberStore
from intent_watch.models.events import DecodedEvent, IntentDetails, IntentOutcome, SniperAlert
from intent_watch.models.records import DeliveryResult

log = logging.getLogger(__name__)

USDC_SCALE = 10 ** 6
RATE_SCALE = 10 ** 18


def format_usdc(amount: int) -> str:
    return f"{amount / USDC_SCALE:.2f}"


def format_rate(conversion_rate: int, fiat_code: str) -> str:
    return f"{conversion_rate / RATE_SCALE:.6f} {fiat_code} / USDC"


class NotificationDispatcher:
    """Delivers order notifications and sniper alerts.

    Store bookkeeping (deposit status, notification log) happens inline;
    the outbound sends are fire-and-forget tasks whose failures are logged.
    Webhook mirrors get one copy per notification, subscribers one each.
    """

    def __init__(
        self,
        store: SubscriberStore,
        sender: MessageSender | None = None,
        mirrors: Sequence[WebhookMirror] = (),
        explorer_url: str = "https://basescan.org",
        deposit_url: str = "https://www.zkp2p.xyz/deposit",
    ) -> None:
        self._store = store
        self._sender = sender
        self._mirrors = list(mirrors)
        self._explorer_url = explorer_url.rstrip("/")
        self._deposit_url = deposit_url.rstrip("/")
        self._tasks: set[asyncio.Task] = set()

    def tx_link(self, tx_hash: str) -> str:
        return f"{self._explorer_url}/tx/{tx_hash}"

    def deposit_link(self, deposit_id: int) -> str:
        return f"{self._deposit_url}/{deposit_id}"

    # ── Orders ─────────────────────────────────────────────

    async def notify_created(self, details: IntentDetails, event: DecodedEvent) -> int:
        """Order created. Returns the number of subscribers notified."""
        deposit_id = details.deposit_id
        subscribers = await self._store.get_users_interested_in_deposit(deposit_id)
        if not subscribers:
            log.debug("No subscribers for deposit %d, skipping created notification", deposit_id)
            return 0

        fiat = currency_code(details.fiat_currency) or "unknown"
        fiat_amount = (details.amount / USDC_SCALE) * (details.conversion_rate / RATE_SCALE)
        text = "\n".join([
            "Order Created",
            f"Deposit ID: {deposit_id}",
            f"Order ID: {details.intent_id}",
            f"Platform: {platform_name(details.platform_id)}",
            f"Owner: {details.owner}",
            f"To: {details.to}",
            f"Amount: {format_usdc(details.amount)} USDC",
            f"Fiat Amount: {fiat_amount:.2f} {fiat}",
            f"Rate: {format_rate(details.conversion_rate, fiat)}",
            f"Block: {event.block_number}",
            f"Tx: {self.tx_link(event.transaction_hash)}",
        ])
        await self._fan_out(
            subscribers, deposit_id, "signaled", details.intent_id, text,
        )
        return len(subscribers)

    async def notify_outcome(
        self, outcome: IntentOutcome, details: IntentDetails | None = None,
    ) -> int:
        """Order fulfilled or cancelled. Returns the number of subscribers notified."""
        event = outcome.event
        deposit_id = event.get("depositId")
        if deposit_id is None and details is not None:
            deposit_id = details.deposit_id
        if deposit_id is None:
            log.warning(
                "No deposit known for intent %s (%s), dropping notification",
                outcome.intent_id[:10], outcome.outcome,
            )
            return 0
        deposit_id = int(deposit_id)

        subscribers = await self._store.get_users_interested_in_deposit(deposit_id)
        if not subscribers:
            return 0

        if outcome.outcome == "fulfilled":
            text = self._render_fulfilled(outcome, deposit_id, details)
            status = "fulfilled"
        else:
            text = "\n".join([
                "Order Cancelled",
                f"Deposit ID: {deposit_id}",
                f"Order ID: {outcome.intent_id}",
                f"Tx: {self.tx_link(outcome.transaction_hash)}",
            ])
            status = "pruned"

        log.info(
            "Sending %s for deposit %d to %d subscribers",
            outcome.outcome, deposit_id, len(subscribers),
        )
        await self._fan_out(subscribers, deposit_id, status, outcome.intent_id, text)
        return len(subscribers)

    def _render_fulfilled(
        self, outcome: IntentOutcome, deposit_id: int, details: IntentDetails | None,
    ) -> str:
        event = outcome.event
        platform_id = event.get("verifier") or (details.platform_id if details else "")
        lines = [
            "Order Fulfilled",
            f"Deposit ID: {deposit_id}",
            f"Order ID: {outcome.intent_id}",
        ]
        if platform_id:
            lines.append(f"Platform: {platform_name(platform_id)}")
        owner = event.get("owner") or (details.owner if details else "")
        if owner:
            lines.append(f"Owner: {owner}")
        lines.append(f"To: {event.get('to') or event.get('fundsTransferredTo', '')}")
        lines.append(f"Amount: {format_usdc(int(event.get('amount', 0)))} USDC")
        if details is not None:
            fiat = currency_code(details.fiat_currency) or "unknown"
            lines.append(f"Rate: {format_rate(details.conversion_rate, fiat)}")
        if event.get("sustainabilityFee") is not None:
            lines.append(f"Sustainability Fee: {format_usdc(event.get('sustainabilityFee'))} USDC")
        if event.get("verifierFee") is not None:
            lines.append(f"Verifier Fee: {format_usdc(event.get('verifierFee'))} USDC")
        if event.get("isManualRelease") is not None:
            lines.append(f"Manual Release: {'Yes' if event.get('isManualRelease') else 'No'}")
        lines.append(f"Tx: {self.tx_link(outcome.transaction_hash)}")
        return "\n".join(lines)

    async def _fan_out(
        self,
        subscribers: list[str],
        deposit_id: int,
        status: str,
        intent_id: str,
        text: str,
    ) -> None:
        label = f"View Deposit {deposit_id}"
        url = self.deposit_link(deposit_id)
        self._post_mirrors(text, label, url, "orders")
        for subscriber_id in subscribers:
            await self._store.update_deposit_status(subscriber_id, deposit_id, status, intent_id)
            await self._store.log_event_notification(subscriber_id, deposit_id, status)
            self._send(subscriber_id, text, label, url, "orders")

    # ── Sniper ─────────────────────────────────────────────

    async def notify_sniper(self, alert: SniperAlert) -> None:
        face = alert.face_amount / USDC_SCALE
        text = "\n".join([
            f"SNIPER ALERT - {alert.currency}",
            f"Platform: {alert.platform}",
            f"Deposit #{alert.deposit_id}: {face:.2f} USDC",
            f"Deposit Rate: {alert.deposit_rate:.4f} {alert.currency}/USD",
            f"Market Rate: {alert.market_rate:.4f} {alert.currency}/USD",
            f"{alert.percent_diff:.1f}% better than market",
            f"Filling the whole order saves {face * (alert.market_rate - alert.deposit_rate):.2f}"
            f" {alert.currency}",
        ])
        await self._store.log_sniper_alert(
            alert.subscriber_id, alert.deposit_id, alert.currency,
            alert.deposit_rate, alert.market_rate, alert.percent_diff,
        )
        label = f"Snipe Deposit {alert.deposit_id}"
        url = self.deposit_link(alert.deposit_id)
        if alert.mirror:
            self._post_mirrors(text, label, url, "sniper")
        self._send(alert.subscriber_id, text, label, url, "sniper")

    # ── Delivery ───────────────────────────────────────────

    def _send(
        self, subscriber_id: str, text: str, label: str, url: str, channel: str,
    ) -> None:
        if self._sender is None:
            return
        self._spawn(self._deliver(
            self._sender.send(subscriber_id, text, label, url, channel),
        ))

    def _post_mirrors(self, text: str, label: str, url: str, channel: str) -> None:
        for mirror in self._mirrors:
            self._spawn(self._deliver(mirror.post(text, label, url, channel)))

    async def _deliver(self, send: Awaitable[DeliveryResult]) -> None:
        try:
            result = await send
        except Exception as exc:
            log.error("Delivery raised: %s", exc, exc_info=True)
            return
        if not result.success:
            log.warning("Delivery to %s failed: %s", result.target, result.error)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for outstanding sends."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)
