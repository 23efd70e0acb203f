"""Tests 117-126: TOML and environment configuration loading."""

from __future__ import annotations

import pytest

from intent_watch.config import DEFAULT_CONTRACTS, load_config, validate_config
from intent_watch.errors import ConfigError
from intent_watch.models.config import ContractConfig, WatchConfig

ENV_VARS = (
    "WS_URL", "TELEGRAM_TOKEN", "TELEGRAM_GROUP_ID", "EXCHANGE_API_URL",
    "DISCORD_ORDERS_WEBHOOK_URL", "DISCORD_SNIPER_WEBHOOK_URL", "DB_PATH", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(f"INTENT_WATCH_{name}", raising=False)


def write_toml(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text)
    return path


# ── Test 117: Defaults ───────────────────────────────────────────


def test_defaults_without_file(tmp_path):
    cfg = load_config(tmp_path / "missing.toml")

    assert [c.id for c in cfg.contracts] == ["escrow", "orchestrator"]
    assert cfg.contracts[0].address == DEFAULT_CONTRACTS[0].address
    assert cfg.connection.max_attempts == 50
    assert cfg.reconcile.quiet_period == 10
    assert cfg.rates.freshness == 60
    assert cfg.sniper.default_threshold == 0.2
    assert cfg.ws_url == ""
    assert not cfg.db_path.startswith("~")


def test_defaults_are_copies():
    cfg = load_config()
    cfg.contracts[0].address = "0x" + "0" * 40
    assert DEFAULT_CONTRACTS[0].address != cfg.contracts[0].address


# ── Test 118: TOML sections ──────────────────────────────────────


def test_toml_sections(tmp_path):
    path = write_toml(tmp_path, """
[daemon]
log_level = "debug"

[chain]
ws_url = "wss://base.example/ws"
explorer_url = "https://sepolia.basescan.org"

[[contracts]]
id = "escrow"
address = "0xCA38607D85E8F6294DC10728669605E6664C2D70"
abi = "escrow"

[connection]
heartbeat_interval = 20
max_attempts = 5

[reconcile]
quiet_period = 4

[rates]
exchange_api_url = "https://v6.exchangerate-api.com/v6/KEY/latest/USD"
regional_currency = "ars"
freshness = 30

[sniper]
enabled = false
default_threshold = 0.5

[telegram]
bot_token = "123:abc"
group_id = "-100123"
topic_id = 7
sniper_topic_id = 9

[discord]
orders_webhook_url = "https://discord.com/api/webhooks/1/a"
sniper_thread_id = "555"

[storage]
db_path = ":memory:"
""")

    cfg = load_config(path)

    assert cfg.log_level == "debug"
    assert cfg.ws_url == "wss://base.example/ws"
    assert cfg.explorer_url == "https://sepolia.basescan.org"
    assert cfg.contracts == [
        ContractConfig("escrow", "0xca38607d85e8f6294dc10728669605e6664c2d70", "escrow"),
    ]
    assert cfg.connection.heartbeat_interval == 20.0
    assert cfg.connection.max_attempts == 5
    assert cfg.connection.idle_timeout == 90.0
    assert cfg.reconcile.quiet_period == 4.0
    assert cfg.rates.regional_currency == "ARS"
    assert cfg.rates.freshness == 30.0
    assert cfg.sniper.enabled is False
    assert cfg.sniper.default_threshold == 0.5
    assert cfg.telegram.topic_id == 7
    assert cfg.telegram.sniper_topic_id == 9
    assert cfg.discord.orders_webhook_url.endswith("/1/a")
    assert cfg.discord.sniper_thread_id == "555"
    assert cfg.db_path == ":memory:"


def test_zero_values_are_kept(tmp_path):
    path = write_toml(tmp_path, "[sniper]\ndefault_threshold = 0\n\n[reconcile]\nquiet_period = 0\n")

    cfg = load_config(path)

    assert cfg.sniper.default_threshold == 0.0
    assert cfg.reconcile.quiet_period == 0.0


# ── Test 119: Environment overrides ──────────────────────────────


def test_env_overrides_file(tmp_path, monkeypatch):
    path = write_toml(tmp_path, '[chain]\nws_url = "wss://file/ws"\n')
    monkeypatch.setenv("INTENT_WATCH_WS_URL", "wss://env/ws")
    monkeypatch.setenv("INTENT_WATCH_TELEGRAM_TOKEN", "999:zzz")
    monkeypatch.setenv("INTENT_WATCH_TELEGRAM_GROUP_ID", "-100777")
    monkeypatch.setenv("INTENT_WATCH_DB_PATH", str(tmp_path / "state.db"))

    cfg = load_config(path)

    assert cfg.ws_url == "wss://env/ws"
    assert cfg.telegram.bot_token == "999:zzz"
    assert cfg.db_path == str(tmp_path / "state.db")
    # the group chat doubles as broadcast sniper subscriber
    assert cfg.sniper.broadcast_subscriber == "-100777"


def test_explicit_broadcast_subscriber_wins(tmp_path):
    path = write_toml(tmp_path, """
[sniper]
broadcast_subscriber = "-100999"

[telegram]
group_id = "-100123"
""")
    assert load_config(path).sniper.broadcast_subscriber == "-100999"


def test_custom_env_prefix(monkeypatch):
    monkeypatch.setenv("ZKW_WS_URL", "wss://prefixed/ws")
    assert load_config(env_prefix="ZKW_").ws_url == "wss://prefixed/ws"


# ── Test 120: Invalid configuration ──────────────────────────────


def test_invalid_toml(tmp_path):
    path = write_toml(tmp_path, "[chain\nws_url = ")
    with pytest.raises(ConfigError, match="invalid TOML"):
        load_config(path)


def test_contract_without_address(tmp_path):
    path = write_toml(tmp_path, '[[contracts]]\nid = "escrow"\n')
    with pytest.raises(ConfigError):
        load_config(path)


def test_non_numeric_value(tmp_path):
    path = write_toml(tmp_path, '[connection]\nmax_attempts = "many"\n')
    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.parametrize("contracts, message", [
    ([ContractConfig("x", "0xca38607d85e8f6294dc10728669605e6664c2d70", "vault")], "unknown abi"),
    ([ContractConfig("x", "0x1234", "escrow")], "invalid address"),
    ([
        ContractConfig("x", "0xca38607d85e8f6294dc10728669605e6664c2d70", "escrow"),
        ContractConfig("x", "0x88888883ed048ff0a415271b28b2f52d431810d0", "orchestrator"),
    ], "unique"),
])
def test_validate_contracts(contracts, message):
    with pytest.raises(ConfigError, match=message):
        validate_config(WatchConfig(contracts=contracts))


def test_validate_numbers():
    cfg = WatchConfig()
    cfg.rates.freshness = 0
    with pytest.raises(ConfigError, match="freshness"):
        validate_config(cfg)

    cfg = WatchConfig()
    cfg.connection.max_attempts = 0
    with pytest.raises(ConfigError, match="max_attempts"):
        validate_config(cfg)

    cfg = WatchConfig()
    cfg.reconcile.quiet_period = -1
    with pytest.raises(ConfigError, match="quiet_period"):
        validate_config(cfg)


def test_broadcast_threshold(tmp_path):
    assert load_config().sniper.broadcast_threshold is None

    path = write_toml(tmp_path, "[sniper]\nbroadcast_threshold = 0.1\n")
    assert load_config(path).sniper.broadcast_threshold == 0.1

    cfg = WatchConfig()
    cfg.sniper.broadcast_threshold = -0.5
    with pytest.raises(ConfigError, match="broadcast_threshold"):
        validate_config(cfg)
