"""Contract event models decoded from the websocket log stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Event names shared by the escrow and orchestrator contracts
INTENT_SIGNALED = "IntentSignaled"
INTENT_FULFILLED = "IntentFulfilled"
INTENT_PRUNED = "IntentPruned"
DEPOSIT_RECEIVED = "DepositReceived"
DEPOSIT_CURRENCY_ADDED = "DepositCurrencyAdded"
DEPOSIT_CURRENCY_RATE_UPDATED = "DepositCurrencyRateUpdated"
DEPOSIT_CONVERSION_RATE_UPDATED = "DepositConversionRateUpdated"


@dataclass(frozen=True)
class DecodedEvent:
    """One named contract event, decoded from a raw log."""

    event_name: str
    contract_id: str
    transaction_hash: str
    block_number: int
    fields: dict[str, Any] = field(default_factory=dict)
    received_at: float = 0.0  # clock time at receipt

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


@dataclass(frozen=True)
class IntentDetails:
    """What IntentSignaled told us about an intent.

    Orchestrator fulfilled/pruned events only carry the intent hash, so the
    deposit id and pricing have to be remembered from the signal.
    """

    intent_id: str
    deposit_id: int
    platform_id: str  # verifier address (escrow) or payment method hash (orchestrator)
    fiat_currency: str  # bytes32 currency hash
    conversion_rate: int  # 18-decimal fixed point
    owner: str = ""
    to: str = ""
    amount: int = 0  # USDC, 6 decimals
    timestamp: int = 0


@dataclass(frozen=True)
class IntentOutcome:
    """Terminal state of one intent, emitted once per reconciliation."""

    intent_id: str
    outcome: str  # "fulfilled" | "cancelled"
    transaction_hash: str
    block_number: int
    contract_id: str
    event: DecodedEvent


@dataclass(frozen=True)
class SniperAlert:
    """A deposit priced better than market for one subscriber."""

    subscriber_id: str
    deposit_id: int
    currency: str
    platform: str
    deposit_rate: float
    market_rate: float
    percent_diff: float
    face_amount: int  # USDC, 6 decimals
    threshold: float
    mirror: bool = False  # also post to the webhook mirrors
