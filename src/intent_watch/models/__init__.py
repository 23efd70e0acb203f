"""Data models for the intent_watch daemon."""

from intent_watch.models.events import (
    DecodedEvent,
    IntentDetails,
    IntentOutcome,
    SniperAlert,
)
from intent_watch.models.records import (
    ConnectionState,
    ConnectionStatus,
    DeliveryResult,
    PendingTransaction,
    RateSample,
    SniperSubscription,
    TrackedDeposit,
)
from intent_watch.models.config import (
    ConnectionConfig,
    ContractConfig,
    DiscordConfig,
    RatesConfig,
    ReconcileConfig,
    SniperConfig,
    TelegramConfig,
    WatchConfig,
)

__all__ = [
    "DecodedEvent", "IntentDetails", "IntentOutcome", "SniperAlert",
    "ConnectionState", "ConnectionStatus", "DeliveryResult",
    "PendingTransaction", "RateSample", "SniperSubscription", "TrackedDeposit",
    "ConnectionConfig", "ContractConfig", "DiscordConfig", "RatesConfig",
    "ReconcileConfig", "SniperConfig", "TelegramConfig", "WatchConfig",
]
