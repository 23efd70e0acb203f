"""Arbitrage detection - deposits priced below the market rate."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from intent_watch.chain.catalog import currency_code, platform_name
from intent_watch.interfaces.store import SubscriberStore
from intent_watch.models.events import SniperAlert
from intent_watch.rates.market import MarketRateResolver

log = logging.getLogger(__name__)

AlertSink = Callable[[SniperAlert], Awaitable[None]]

RATE_SCALE = 10 ** 18  # conversion rates are 18-decimal fixed point


def percent_diff(market_rate: float, deposit_rate: float) -> float:
    """How much cheaper the deposit is than market, in percent."""
    return (market_rate - deposit_rate) / market_rate * 100


class ArbitrageDetector:
    """Evaluates a deposit's conversion rate against market per subscriber.

    Candidates are the subscribers sniping the currency on this platform (or
    on all platforms) plus the broadcast subscriber. Each gets at most one
    alert per check, when the discount reaches their threshold.
    """

    def __init__(
        self,
        store: SubscriberStore,
        resolver: MarketRateResolver,
        on_alert: AlertSink,
        broadcast_subscriber: str = "",
        default_threshold: float = 0.2,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._on_alert = on_alert
        self._broadcast = broadcast_subscriber
        self._default_threshold = default_threshold
        self._tasks: set[asyncio.Task] = set()

    async def check(
        self,
        deposit_id: int,
        face_amount: int,
        currency_hash: str,
        conversion_rate: int,
        platform_id: str,
    ) -> list[SniperAlert]:
        code = currency_code(currency_hash)
        if code is None:
            return []
        platform = platform_name(platform_id).lower()
        log.info("Checking sniper opportunity for deposit %d (%s)", deposit_id, code)

        market_rate = await self._resolver.rate_for(code)
        if not market_rate:
            log.info("No market rate for %s, skipping sniper check", code)
            return []

        deposit_rate = conversion_rate / RATE_SCALE
        diff = percent_diff(market_rate, deposit_rate)
        log.debug(
            "%s market %.4f deposit %.4f diff %.2f%%", code, market_rate, deposit_rate, diff,
        )

        candidates = list(await self._store.get_users_with_sniper(code, platform))
        if self._broadcast and self._broadcast not in candidates:
            candidates.append(self._broadcast)

        alerts: list[SniperAlert] = []
        for subscriber_id in candidates:
            threshold = await self._store.get_user_threshold(subscriber_id)
            if threshold is None:
                threshold = self._default_threshold
            if diff < threshold:
                log.debug(
                    "No opportunity for %s: %.2f%% < %.2f%%", subscriber_id, diff, threshold,
                )
                continue

            log.info(
                "Sniper opportunity for %s on deposit %d: %.2f%% >= %.2f%%",
                subscriber_id, deposit_id, diff, threshold,
            )
            alert = SniperAlert(
                subscriber_id=subscriber_id,
                deposit_id=deposit_id,
                currency=code,
                platform=platform,
                deposit_rate=deposit_rate,
                market_rate=market_rate,
                percent_diff=diff,
                face_amount=face_amount,
                threshold=threshold,
                # one webhook copy per check
                mirror=subscriber_id == self._broadcast if self._broadcast else not alerts,
            )
            alerts.append(alert)
            self._spawn(self._deliver(alert))
        return alerts

    async def _deliver(self, alert: SniperAlert) -> None:
        try:
            await self._on_alert(alert)
        except Exception as exc:
            log.error(
                "Sniper alert delivery to %s failed: %s", alert.subscriber_id, exc,
                exc_info=True,
            )

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for alert deliveries still in flight."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            log.warning("%d sniper alerts still in flight after %.0fs", len(still_running), timeout)
