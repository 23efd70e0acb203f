"""SubscriberStore protocol - persisted subscriptions and settings."""

from __future__ import annotations

from typing import Protocol

from intent_watch.models.records import SniperSubscription, TrackedDeposit


class SubscriberStore(Protocol):
    """Keyed records for deposit tracking, sniper settings and alert logs."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    # ── Deposit tracking ───────────────────────────────────

    async def add_deposit(self, subscriber_id: str, deposit_id: int) -> None:
        ...

    async def remove_deposit(self, subscriber_id: str, deposit_id: int) -> None:
        ...

    async def get_deposits(self, subscriber_id: str) -> list[TrackedDeposit]:
        ...

    async def set_listen_all(self, subscriber_id: str, listen_all: bool) -> None:
        ...

    async def get_listen_all(self, subscriber_id: str) -> bool:
        ...

    async def get_users_interested_in_deposit(self, deposit_id: int) -> list[str]:
        """Subscribers tracking this deposit plus everyone listening to all."""
        ...

    async def update_deposit_status(
        self, subscriber_id: str, deposit_id: int, status: str,
        intent_id: str | None = None,
    ) -> None:
        ...

    async def clear_subscriber(self, subscriber_id: str) -> None:
        ...

    # ── Sniper ─────────────────────────────────────────────

    async def add_sniper(
        self, subscriber_id: str, currency: str, platform: str | None = None,
    ) -> None:
        ...

    async def remove_sniper(
        self, subscriber_id: str, currency: str | None = None,
        platform: str | None = None,
    ) -> None:
        ...

    async def get_snipers(self, subscriber_id: str) -> list[SniperSubscription]:
        ...

    async def get_users_with_sniper(
        self, currency: str, platform: str | None = None,
    ) -> list[str]:
        ...

    async def get_user_threshold(self, subscriber_id: str) -> float | None:
        """Personal threshold in percent, or None when never set."""
        ...

    async def set_user_threshold(self, subscriber_id: str, threshold: float) -> None:
        ...

    # ── Deposit amounts ────────────────────────────────────

    async def store_deposit_amount(self, deposit_id: int, amount: int) -> None:
        ...

    async def get_deposit_amount(self, deposit_id: int) -> int:
        """Face amount in USDC base units, 0 when unknown."""
        ...

    # ── Logs ───────────────────────────────────────────────

    async def log_sniper_alert(
        self, subscriber_id: str, deposit_id: int, currency: str,
        deposit_rate: float, market_rate: float, percent_diff: float,
    ) -> None:
        ...

    async def log_event_notification(
        self, subscriber_id: str, deposit_id: int, event_type: str,
    ) -> None:
        ...
