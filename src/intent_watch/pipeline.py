"""Per-contract event routing."""

from __future__ import annotations

import logging

from intent_watch.interfaces.clock import Clock
from intent_watch.interfaces.store import SubscriberStore
from intent_watch.models.events import (
    DEPOSIT_CONVERSION_RATE_UPDATED,
    DEPOSIT_CURRENCY_ADDED,
    DEPOSIT_CURRENCY_RATE_UPDATED,
    DEPOSIT_RECEIVED,
    INTENT_FULFILLED,
    INTENT_PRUNED,
    INTENT_SIGNALED,
    DecodedEvent,
    IntentDetails,
    IntentOutcome,
)
from intent_watch.notify.dispatch import NotificationDispatcher
from intent_watch.reconcile.engine import FULFILLED, PRUNED, IntentBook, TransactionReconciler
from intent_watch.sniper.engine import ArbitrageDetector

log = logging.getLogger(__name__)


class ContractPipeline:
    """Routes the decoded events of one contract.

    Signals are remembered and announced, fulfilled/pruned events go through
    the transaction reconciler, and rate-bearing deposit events feed the
    arbitrage detector. Orchestrator signals also carry the deposit amount
    and pricing, so they are stored and sniper-checked directly.
    """

    def __init__(
        self,
        contract_id: str,
        abi: str,
        store: SubscriberStore,
        dispatcher: NotificationDispatcher,
        intents: IntentBook,
        clock: Clock,
        detector: ArbitrageDetector | None = None,
        quiet_period: float = 10.0,
    ) -> None:
        self.contract_id = contract_id
        self.abi = abi
        self._store = store
        self._dispatcher = dispatcher
        self._intents = intents
        self._detector = detector
        self.reconciler = TransactionReconciler(
            self._on_outcome, clock, quiet_period=quiet_period,
        )

    async def handle(self, event: DecodedEvent) -> None:
        name = event.event_name
        if name == INTENT_SIGNALED:
            await self._on_signaled(event)
        elif name == INTENT_FULFILLED:
            self.reconciler.record(event, FULFILLED, event.get("intentHash"))
        elif name == INTENT_PRUNED:
            self.reconciler.record(event, PRUNED, event.get("intentHash"))
        elif name == DEPOSIT_RECEIVED:
            deposit_id = int(event.get("depositId"))
            amount = int(event.get("amount"))
            log.info("DepositReceived: %d with %.2f USDC", deposit_id, amount / 1e6)
            await self._store.store_deposit_amount(deposit_id, amount)
        elif name == DEPOSIT_CURRENCY_ADDED:
            deposit_id = int(event.get("depositId"))
            amount = await self._store.get_deposit_amount(deposit_id)
            await self._check_sniper(
                deposit_id, amount, event.get("currency"),
                int(event.get("conversionRate")), event.get("verifier"),
            )
        elif name in (DEPOSIT_CURRENCY_RATE_UPDATED, DEPOSIT_CONVERSION_RATE_UPDATED):
            deposit_id = int(event.get("depositId"))
            rate = event.get("conversionRate")
            if rate is None:
                rate = event.get("newConversionRate")
            amount = await self._store.get_deposit_amount(deposit_id)
            if amount > 0:
                log.info("Rechecking sniper for deposit %d after rate update", deposit_id)
                await self._check_sniper(
                    deposit_id, amount, event.get("currency"), int(rate), event.get("verifier"),
                )
        else:
            log.debug("[%s] Ignoring %s event", self.contract_id, name)

    async def _on_signaled(self, event: DecodedEvent) -> None:
        orchestrator = self.abi == "orchestrator"
        details = IntentDetails(
            intent_id=event.get("intentHash"),
            deposit_id=int(event.get("depositId")),
            platform_id=event.get("paymentMethod") if orchestrator else event.get("verifier"),
            fiat_currency=event.get("fiatCurrency"),
            conversion_rate=int(event.get("conversionRate")),
            owner=event.get("owner", ""),
            to=event.get("to", ""),
            amount=int(event.get("amount", 0)),
            timestamp=int(event.get("timestamp", 0)),
        )
        self._intents.remember(details)
        log.info(
            "[%s] IntentSignaled %s on deposit %d",
            self.contract_id, details.intent_id[:10], details.deposit_id,
        )

        if orchestrator:
            await self._store.store_deposit_amount(details.deposit_id, details.amount)
            await self._check_sniper(
                details.deposit_id, details.amount, details.fiat_currency,
                details.conversion_rate, details.platform_id,
            )

        await self._dispatcher.notify_created(details, event)

    async def _check_sniper(
        self,
        deposit_id: int,
        amount: int,
        currency_hash: str,
        conversion_rate: int,
        platform_id: str,
    ) -> None:
        if self._detector is None:
            return
        try:
            await self._detector.check(
                deposit_id, amount, currency_hash, conversion_rate, platform_id,
            )
        except Exception as exc:
            log.error("Sniper check failed for deposit %d: %s", deposit_id, exc, exc_info=True)

    async def _on_outcome(self, outcome: IntentOutcome) -> None:
        details = self._intents.pop(outcome.intent_id)
        await self._dispatcher.notify_outcome(outcome, details)

    async def drain(self, timeout: float = 15.0) -> None:
        await self.reconciler.drain(timeout)
