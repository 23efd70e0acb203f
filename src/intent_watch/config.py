"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from intent_watch.chain.abi import CATALOGS
from intent_watch.errors import ConfigError
from intent_watch.models.config import ContractConfig, WatchConfig

DEFAULT_CONTRACTS = [
    ContractConfig(id="escrow", address="0xca38607d85e8f6294dc10728669605e6664c2d70", abi="escrow"),
    ContractConfig(
        id="orchestrator", address="0x88888883ed048ff0a415271b28b2f52d431810d0", abi="orchestrator",
    ),
]


def _set_numbers(target: object, section: dict, names: tuple[str, ...], cast=float) -> None:
    for name in names:
        if (v := section.get(name)) is not None:
            setattr(target, name, cast(v))


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "INTENT_WATCH_",
) -> WatchConfig:
    """Load watcher configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (INTENT_WATCH_WS_URL, etc.)
        2. TOML config file
        3. Defaults from WatchConfig

    Raises ConfigError for an unreadable file or invalid values.
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            try:
                with open(p, "rb") as f:
                    raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"invalid TOML in {p}: {exc}") from exc

    cfg = WatchConfig()

    try:
        # ── Daemon section ─────────────────────────────────────
        daemon = raw.get("daemon", {})
        if v := daemon.get("log_level"):
            cfg.log_level = str(v)

        # ── Chain section ──────────────────────────────────────
        chain = raw.get("chain", {})
        if v := chain.get("ws_url"):
            cfg.ws_url = str(v)
        if v := chain.get("explorer_url"):
            cfg.explorer_url = str(v)
        if v := chain.get("deposit_url"):
            cfg.deposit_url = str(v)

        # ── Contracts ──────────────────────────────────────────
        contracts = raw.get("contracts")
        if contracts:
            cfg.contracts = [
                ContractConfig(
                    id=str(c.get("id") or c.get("abi", "escrow")),
                    address=str(c["address"]).lower(),
                    abi=str(c.get("abi", "escrow")),
                )
                for c in contracts
            ]
        else:
            cfg.contracts = [
                ContractConfig(id=c.id, address=c.address, abi=c.abi) for c in DEFAULT_CONTRACTS
            ]

        # ── Connection section ─────────────────────────────────
        _set_numbers(cfg.connection, raw.get("connection", {}), (
            "handshake_timeout", "heartbeat_interval", "idle_timeout", "stale_after",
            "backoff_floor", "backoff_cap", "backoff_multiplier", "restart_delay",
            "health_check_interval",
        ))
        _set_numbers(cfg.connection, raw.get("connection", {}), ("max_attempts",), cast=int)

        # ── Reconcile section ──────────────────────────────────
        _set_numbers(cfg.reconcile, raw.get("reconcile", {}), ("quiet_period", "drain_timeout"))

        # ── Rates section ──────────────────────────────────────
        rates = raw.get("rates", {})
        if v := rates.get("exchange_api_url"):
            cfg.rates.exchange_api_url = str(v)
        if v := rates.get("regional_api_url"):
            cfg.rates.regional_api_url = str(v)
        if v := rates.get("regional_currency"):
            cfg.rates.regional_currency = str(v).upper()
        if v := rates.get("identity_currency"):
            cfg.rates.identity_currency = str(v).upper()
        _set_numbers(cfg.rates, rates, ("freshness", "request_timeout"))

        # ── Sniper section ─────────────────────────────────────
        sniper = raw.get("sniper", {})
        if (v := sniper.get("enabled")) is not None:
            cfg.sniper.enabled = bool(v)
        _set_numbers(cfg.sniper, sniper, ("default_threshold", "broadcast_threshold"))
        if v := sniper.get("broadcast_subscriber"):
            cfg.sniper.broadcast_subscriber = str(v)

        # ── Telegram section ───────────────────────────────────
        telegram = raw.get("telegram", {})
        if v := telegram.get("bot_token"):
            cfg.telegram.bot_token = str(v)
        if v := telegram.get("api_url"):
            cfg.telegram.api_url = str(v)
        if v := telegram.get("group_id"):
            cfg.telegram.group_id = str(v)
        _set_numbers(cfg.telegram, telegram, ("topic_id", "sniper_topic_id"), cast=int)

        # ── Discord section ────────────────────────────────────
        discord = raw.get("discord", {})
        for name in (
            "orders_webhook_url", "orders_thread_id", "sniper_webhook_url", "sniper_thread_id",
        ):
            if v := discord.get(name):
                setattr(cfg.discord, name, str(v))

        # ── Storage section ────────────────────────────────────
        storage = raw.get("storage", {})
        if v := storage.get("db_path"):
            cfg.db_path = str(v)
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc

    # ── Environment variable overrides (highest priority) ──
    if ws := os.environ.get(f"{env_prefix}WS_URL"):
        cfg.ws_url = ws
    if token := os.environ.get(f"{env_prefix}TELEGRAM_TOKEN"):
        cfg.telegram.bot_token = token
    if group := os.environ.get(f"{env_prefix}TELEGRAM_GROUP_ID"):
        cfg.telegram.group_id = group
    if url := os.environ.get(f"{env_prefix}EXCHANGE_API_URL"):
        cfg.rates.exchange_api_url = url
    if url := os.environ.get(f"{env_prefix}DISCORD_ORDERS_WEBHOOK_URL"):
        cfg.discord.orders_webhook_url = url
    if url := os.environ.get(f"{env_prefix}DISCORD_SNIPER_WEBHOOK_URL"):
        cfg.discord.sniper_webhook_url = url
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    if not cfg.sniper.broadcast_subscriber and cfg.telegram.group_id:
        cfg.sniper.broadcast_subscriber = cfg.telegram.group_id

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    validate_config(cfg)
    return cfg


def validate_config(cfg: WatchConfig) -> None:
    """Raise ConfigError for values the daemon cannot run with."""
    for contract in cfg.contracts:
        if contract.abi not in CATALOGS:
            raise ConfigError(
                f"contract {contract.id!r}: unknown abi {contract.abi!r}"
                f" (expected one of {', '.join(sorted(CATALOGS))})"
            )
        if not (contract.address.startswith("0x") and len(contract.address) == 42):
            raise ConfigError(f"contract {contract.id!r}: invalid address {contract.address!r}")
    ids = [c.id for c in cfg.contracts]
    if len(set(ids)) != len(ids):
        raise ConfigError("contract ids must be unique")
    if cfg.reconcile.quiet_period < 0:
        raise ConfigError("reconcile.quiet_period must not be negative")
    if cfg.sniper.broadcast_threshold is not None and cfg.sniper.broadcast_threshold < 0:
        raise ConfigError("sniper.broadcast_threshold must not be negative")
    if cfg.rates.freshness <= 0:
        raise ConfigError("rates.freshness must be positive")
    if cfg.connection.max_attempts < 1:
        raise ConfigError("connection.max_attempts must be at least 1")
