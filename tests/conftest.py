"""Shared fixtures for intent_watch tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from intent_watch.daemon import WatchDaemon
from intent_watch.models.config import (
    ContractConfig,
    ReconcileConfig,
    SniperConfig,
    WatchConfig,
)
from intent_watch.notify.dispatch import NotificationDispatcher
from intent_watch.rates.cache import RateCache
from intent_watch.storage.sqlite import SQLiteSubscriberStore

from tests.mocks import FakeClock, MockFetcher, MockMirror, MockSender, MockTransportFactory

ESCROW_ADDRESS = "0xca38607d85e8f6294dc10728669605e6664c2d70"
ORCHESTRATOR_ADDRESS = "0x88888883ed048ff0a415271b28b2f52d431810d0"

EXPLORER_BASE = "https://basescan.org"
GROUP_ID = "-1001234567890"


def basescan_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to basescan for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add chain info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Base"
    meta["Escrow Contract"] = ESCROW_ADDRESS
    meta["Orchestrator Contract"] = ORCHESTRATOR_ADDRESS


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable explorer links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Base Explorer Links</strong><br/>"
        f'Escrow: {basescan_link("address", ESCROW_ADDRESS, ESCROW_ADDRESS)}<br/>'
        f'Orchestrator: {basescan_link("address", ORCHESTRATOR_ADDRESS, ORCHESTRATOR_ADDRESS)}'
        "</div>"
    )


def make_test_config(**overrides) -> WatchConfig:
    """Build a WatchConfig suitable for testing."""
    defaults = dict(
        ws_url="wss://base.example.invalid/ws",
        contracts=[
            ContractConfig(id="escrow", address=ESCROW_ADDRESS, abi="escrow"),
            ContractConfig(id="orchestrator", address=ORCHESTRATOR_ADDRESS, abi="orchestrator"),
        ],
        reconcile=ReconcileConfig(quiet_period=10, drain_timeout=1),
        sniper=SniperConfig(enabled=True, default_threshold=0.2, broadcast_subscriber=""),
        db_path=":memory:",
    )
    defaults.update(overrides)
    return WatchConfig(**defaults)


@pytest.fixture
def test_config():
    """Default WatchConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteSubscriberStore."""
    s = SQLiteSubscriberStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mock_sender():
    return MockSender()


@pytest.fixture
def mock_mirror():
    return MockMirror()


@pytest.fixture
def dispatcher(store, mock_sender, mock_mirror):
    return NotificationDispatcher(store, sender=mock_sender, mirrors=[mock_mirror])


@pytest.fixture
def table_fetcher():
    """Exchange table: units of currency per USD."""
    return MockFetcher({"EUR": 0.92, "GBP": 0.79, "MXN": 17.0, "INR": 83.0})


@pytest.fixture
def regional_fetcher():
    return MockFetcher(1200.0)


@pytest.fixture
def transport_factory():
    return MockTransportFactory()


@pytest.fixture
async def daemon(test_config, store, fake_clock, mock_sender, mock_mirror,
                 transport_factory, table_fetcher, regional_fetcher):
    """Fully wired WatchDaemon with mocked transports, rates and senders."""
    d = WatchDaemon(
        test_config,
        clock=fake_clock,
        store=store,
        sender=mock_sender,
        mirrors=[mock_mirror],
        transport_factory=transport_factory,
        table_cache=RateCache("exchange-table", table_fetcher, fake_clock),
        regional_cache=RateCache("ARS", regional_fetcher, fake_clock),
    )
    return d
