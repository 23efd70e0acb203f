"""Transaction-scoped reconciliation of intent outcomes."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from intent_watch.interfaces.clock import Clock
from intent_watch.models.events import DecodedEvent, IntentDetails, IntentOutcome
from intent_watch.models.records import PendingTransaction

log = logging.getLogger(__name__)

OutcomeHandler = Callable[[IntentOutcome], Awaitable[None]]

FULFILLED = "fulfilled"
PRUNED = "pruned"
CANCELLED = "cancelled"


class TransactionReconciler:
    """Collapses fulfilled/pruned events of one transaction into final outcomes.

    The first event for a transaction hash opens a PendingTransaction and
    arms a one-shot timer. Events arriving before it fires are merged in.
    When it fires, each intent yields exactly one outcome: ``fulfilled`` if a
    fulfilled event was seen, otherwise ``cancelled``. Once fired the entry is
    gone, so a later event for the same hash starts a fresh reconciliation.
    """

    def __init__(
        self,
        on_outcome: OutcomeHandler,
        clock: Clock,
        quiet_period: float = 10.0,
    ) -> None:
        self._on_outcome = on_outcome
        self._clock = clock
        self._quiet_period = quiet_period
        self._pending: dict[str, PendingTransaction] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> dict[str, PendingTransaction]:
        return self._pending

    def record(self, event: DecodedEvent, kind: str, intent_id: str) -> None:
        """Merge one fulfilled/pruned event into its transaction."""
        if kind not in (FULFILLED, PRUNED):
            raise ValueError(f"unknown reconciliation kind: {kind}")

        tx_hash = event.transaction_hash.lower()
        intent_id = intent_id.lower()

        pending = self._pending.get(tx_hash)
        if pending is None:
            pending = PendingTransaction(
                transaction_hash=tx_hash, first_seen_block=event.block_number,
            )
            self._pending[tx_hash] = pending
            # one-shot, never cancelled once armed
            self._clock.call_later(self._quiet_period, lambda: self._fire(tx_hash))

        if kind == FULFILLED:
            pending.fulfilled_intent_ids.add(intent_id)
        else:
            pending.pruned_intent_ids.add(intent_id)
        pending.raw_intents.setdefault(intent_id, {})[kind] = event

        log.debug(
            "Recorded %s for intent %s in tx %s", kind, intent_id[:10], tx_hash[:10],
        )

    def _fire(self, tx_hash: str) -> None:
        # Detach before any await so later events start a new entry
        pending = self._pending.pop(tx_hash, None)
        if pending is None:
            return
        task = asyncio.ensure_future(self._reconcile(pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _reconcile(self, pending: PendingTransaction) -> None:
        tx_hash = pending.transaction_hash
        log.info(
            "Reconciling tx %s: %d fulfilled, %d pruned",
            tx_hash[:10], len(pending.fulfilled_intent_ids), len(pending.pruned_intent_ids),
        )
        for intent_id in sorted(pending.pruned_intent_ids):
            if intent_id in pending.fulfilled_intent_ids:
                log.info(
                    "Intent %s was pruned and fulfilled in tx %s, suppressing cancellation",
                    intent_id[:10], tx_hash[:10],
                )
                continue
            await self._emit(pending, intent_id, PRUNED, CANCELLED)

        for intent_id in sorted(pending.fulfilled_intent_ids):
            await self._emit(pending, intent_id, FULFILLED, FULFILLED)

    async def _emit(
        self, pending: PendingTransaction, intent_id: str, kind: str, outcome: str,
    ) -> None:
        event = pending.raw_intents[intent_id][kind]
        try:
            await self._on_outcome(IntentOutcome(
                intent_id=intent_id,
                outcome=outcome,
                transaction_hash=pending.transaction_hash,
                block_number=pending.first_seen_block,
                contract_id=event.contract_id,
                event=event,
            ))
        except Exception as exc:
            log.error(
                "Outcome handler failed for intent %s (%s): %s",
                intent_id[:10], outcome, exc, exc_info=True,
            )

    async def drain(self, timeout: float = 15.0, flush: bool = True) -> None:
        """Wait for in-flight reconciliations without cancelling them.

        With ``flush`` the transactions still inside their quiet period are
        reconciled now instead of being dropped; their timers become no-ops.
        """
        if flush:
            for tx_hash in list(self._pending):
                self._fire(tx_hash)
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            log.warning(
                "%d reconciliations still running after %.0fs", len(still_running), timeout,
            )


class IntentBook:
    """Intent details remembered from IntentSignaled until the intent resolves."""

    def __init__(self, max_entries: int = 10_000) -> None:
        self._details: dict[str, IntentDetails] = {}
        self._max_entries = max_entries

    def __len__(self) -> int:
        return len(self._details)

    def remember(self, details: IntentDetails) -> None:
        if len(self._details) >= self._max_entries:
            oldest = next(iter(self._details))
            del self._details[oldest]
        self._details[details.intent_id.lower()] = details

    def get(self, intent_id: str) -> IntentDetails | None:
        return self._details.get(intent_id.lower())

    def pop(self, intent_id: str) -> IntentDetails | None:
        return self._details.pop(intent_id.lower(), None)
