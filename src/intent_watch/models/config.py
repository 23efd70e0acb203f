"""Configuration models for the watcher."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ContractConfig:
    """One tracked contract and the ABI catalog used to decode its logs."""

    id: str  # short name used in logs, e.g. "escrow"
    address: str
    abi: str = "escrow"  # "escrow" | "orchestrator"


@dataclass
class ConnectionConfig:
    """Streaming connection liveness and backoff tuning (seconds)."""

    handshake_timeout: float = 15.0
    heartbeat_interval: float = 30.0
    idle_timeout: float = 90.0  # watchdog: force reconnect after this much silence
    stale_after: float = 120.0  # is_connected turns false after this much silence
    backoff_floor: float = 1.0
    backoff_cap: float = 30.0
    backoff_multiplier: float = 1.5
    max_attempts: int = 50
    restart_delay: float = 3.0
    health_check_interval: float = 120.0


@dataclass
class ReconcileConfig:
    """Transaction reconciliation tuning."""

    quiet_period: float = 10.0  # seconds after first event before reconciling
    drain_timeout: float = 15.0  # max wait for in-flight reconciliations on shutdown


@dataclass
class RatesConfig:
    """External market rate providers."""

    exchange_api_url: str = ""  # multi-currency table (conversion_rates keyed by ISO code)
    regional_api_url: str = "https://criptoya.com/api/dolar"
    regional_currency: str = "ARS"
    identity_currency: str = "USD"
    freshness: float = 60.0  # seconds
    request_timeout: float = 10.0


@dataclass
class SniperConfig:
    """Arbitrage alert settings."""

    enabled: bool = True
    default_threshold: float = 0.2  # percent
    broadcast_subscriber: str = ""  # always-included subscriber (group chat)
    broadcast_threshold: float | None = None  # seeded for the broadcast subscriber on start


@dataclass
class TelegramConfig:
    bot_token: str = ""
    api_url: str = "https://api.telegram.org"
    group_id: str = ""  # broadcast chat; messages go to topic threads
    topic_id: int | None = None  # order notifications
    sniper_topic_id: int | None = None  # sniper alerts


@dataclass
class DiscordConfig:
    orders_webhook_url: str = ""
    orders_thread_id: str = ""
    sniper_webhook_url: str = ""
    sniper_thread_id: str = ""


@dataclass
class WatchConfig:
    """Complete watcher configuration."""

    # Daemon
    log_level: str = "info"

    # Chain
    ws_url: str = ""  # websocket JSON-RPC endpoint
    explorer_url: str = "https://basescan.org"
    deposit_url: str = "https://www.zkp2p.xyz/deposit"
    contracts: list[ContractConfig] = field(default_factory=list)

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)
    rates: RatesConfig = field(default_factory=RatesConfig)
    sniper: SniperConfig = field(default_factory=SniperConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    discord: DiscordConfig = field(default_factory=DiscordConfig)

    # Storage
    db_path: str = "~/.intent_watch/state.db"
