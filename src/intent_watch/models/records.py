"""Internal state records owned by the pipeline components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Union

from intent_watch.models.events import DecodedEvent


class ConnectionStatus(str, Enum):
    """Lifecycle of one streaming subscription."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    DESTROYED = "destroyed"  # terminal


@dataclass
class ConnectionState:
    """Mutable liveness state of one Connection Manager."""

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    attempts: int = 0
    last_activity: float = 0.0  # clock seconds
    backoff_delay: float = 1.0  # seconds
    exhausted: bool = False  # reconnect cap reached, recovery halted


@dataclass
class PendingTransaction:
    """Events seen for one transaction hash, awaiting reconciliation."""

    transaction_hash: str
    first_seen_block: int
    fulfilled_intent_ids: set[str] = field(default_factory=set)
    pruned_intent_ids: set[str] = field(default_factory=set)
    # intent id -> kind ("fulfilled" | "pruned") -> event
    raw_intents: dict[str, dict[str, DecodedEvent]] = field(default_factory=dict)


RateValue = Union[float, Mapping[str, float]]


@dataclass(frozen=True)
class RateSample:
    """Last successful fetch for one rate slot.

    The multi-currency slot stores the whole ISO-code table as its rate.
    """

    currency_code: str
    rate: RateValue
    fetched_at: float  # clock seconds


@dataclass
class SniperSubscription:
    """One subscriber's interest in a currency (optionally one platform)."""

    subscriber_id: str
    currency_code: str
    platform: str | None = None  # None = all platforms
    created_at: str = ""


@dataclass
class TrackedDeposit:
    """A deposit a subscriber follows, as persisted in the store."""

    subscriber_id: str
    deposit_id: int
    status: str = "tracking"
    last_intent_id: str | None = None
    updated_at: str = ""


@dataclass
class DeliveryResult:
    """Result of one outbound message send."""

    success: bool
    target: str
    error: str | None = None
