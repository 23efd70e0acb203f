"""Main daemon - wires connections, pipelines, rates and notifications together."""

from __future__ import annotations

import asyncio
import logging
import signal

from intent_watch.chain.abi import CATALOGS
from intent_watch.chain.connection import ConnectionManager, TrackedContract
from intent_watch.chain.decoder import AbiEventDecoder
from intent_watch.chain.transport import WebSocketLogTransport
from intent_watch.clock import LoopClock
from intent_watch.errors import ConfigError
from intent_watch.interfaces.clock import Clock
from intent_watch.interfaces.sender import MessageSender, WebhookMirror
from intent_watch.interfaces.store import SubscriberStore
from intent_watch.interfaces.transport import LogTransport, TransportFactory, TransportListener
from intent_watch.models.config import ContractConfig, WatchConfig
from intent_watch.models.records import ConnectionStatus
from intent_watch.notify.discord import DiscordWebhookMirror
from intent_watch.notify.dispatch import NotificationDispatcher
from intent_watch.notify.telegram import TelegramSender
from intent_watch.pipeline import ContractPipeline
from intent_watch.rates.cache import RateCache
from intent_watch.rates.market import MarketRateResolver
from intent_watch.rates.providers import CriptoYaFetcher, ExchangeRateApiFetcher
from intent_watch.reconcile.engine import IntentBook
from intent_watch.sniper.engine import ArbitrageDetector
from intent_watch.storage.sqlite import SQLiteSubscriberStore

log = logging.getLogger(__name__)


def build_sender(cfg: WatchConfig) -> MessageSender | None:
    if not cfg.telegram.bot_token:
        return None
    return TelegramSender(
        cfg.telegram.bot_token,
        api_url=cfg.telegram.api_url,
        group_id=cfg.telegram.group_id,
        topic_id=cfg.telegram.topic_id,
        sniper_topic_id=cfg.telegram.sniper_topic_id,
    )


def build_mirrors(cfg: WatchConfig) -> list[WebhookMirror]:
    d = cfg.discord
    if not (d.orders_webhook_url or d.sniper_webhook_url):
        return []
    return [DiscordWebhookMirror(
        orders_webhook_url=d.orders_webhook_url,
        orders_thread_id=d.orders_thread_id,
        sniper_webhook_url=d.sniper_webhook_url,
        sniper_thread_id=d.sniper_thread_id,
    )]


class WatchDaemon:
    """Streams contract logs and relays intent outcomes and sniper alerts.

    One ConnectionManager and ContractPipeline per configured contract.
    The store, rate caches, intent book and dispatcher are shared.
    A periodic health check restarts connections that went quiet.
    """

    def __init__(
        self,
        cfg: WatchConfig,
        clock: Clock | None = None,
        store: SubscriberStore | None = None,
        sender: MessageSender | None = None,
        mirrors: list[WebhookMirror] | None = None,
        transport_factory: TransportFactory | None = None,
        table_cache: RateCache | None = None,
        regional_cache: RateCache | None = None,
    ) -> None:
        self._cfg = cfg
        self._clock = clock or LoopClock()
        self._stopping = asyncio.Event()
        self._transport_factory = transport_factory

        # Core components
        self.store = store or SQLiteSubscriberStore(cfg.db_path)
        self.table_rates = table_cache or RateCache(
            "exchange-table",
            ExchangeRateApiFetcher(cfg.rates.exchange_api_url, cfg.rates.request_timeout),
            self._clock,
            freshness=cfg.rates.freshness,
        )
        self.regional_rates = regional_cache or RateCache(
            cfg.rates.regional_currency,
            CriptoYaFetcher(cfg.rates.regional_api_url, cfg.rates.request_timeout),
            self._clock,
            freshness=cfg.rates.freshness,
        )
        self.resolver = MarketRateResolver(
            self.table_rates,
            self.regional_rates,
            regional_currency=cfg.rates.regional_currency,
            identity_currency=cfg.rates.identity_currency,
        )
        self.dispatcher = NotificationDispatcher(
            self.store,
            sender=sender if sender is not None else build_sender(cfg),
            mirrors=mirrors if mirrors is not None else build_mirrors(cfg),
            explorer_url=cfg.explorer_url,
            deposit_url=cfg.deposit_url,
        )

        # Sniper (optional)
        self.detector: ArbitrageDetector | None = None
        if cfg.sniper.enabled:
            self.detector = ArbitrageDetector(
                self.store,
                self.resolver,
                self.dispatcher.notify_sniper,
                broadcast_subscriber=cfg.sniper.broadcast_subscriber,
                default_threshold=cfg.sniper.default_threshold,
            )

        self.intents = IntentBook()
        self.pipelines: dict[str, ContractPipeline] = {}
        self.connections: dict[str, ConnectionManager] = {}
        for contract in cfg.contracts:
            self._add_contract(contract)

    def _add_contract(self, contract: ContractConfig) -> None:
        pipeline = ContractPipeline(
            contract.id,
            contract.abi,
            self.store,
            self.dispatcher,
            self.intents,
            self._clock,
            detector=self.detector,
            quiet_period=self._cfg.reconcile.quiet_period,
        )
        tracked = TrackedContract(
            contract.id, contract.address, AbiEventDecoder(CATALOGS[contract.abi]),
        )
        self.pipelines[contract.id] = pipeline
        self.connections[contract.id] = ConnectionManager(
            tracked,
            self._transport_factory or self._websocket_factory(tracked.address),
            pipeline.handle,
            self._clock,
            self._cfg.connection,
        )

    def _websocket_factory(self, address: str) -> TransportFactory:
        def factory(listener: TransportListener) -> LogTransport:
            return WebSocketLogTransport(
                self._cfg.ws_url, address, listener,
                request_timeout=self._cfg.connection.handshake_timeout,
            )
        return factory

    async def start(self) -> None:
        """Initialize the store, open all connections and run the health loop."""
        if not self._cfg.ws_url and self._transport_factory is None:
            raise ConfigError("no websocket URL configured (chain.ws_url)")

        log.info("Starting intent_watch daemon")
        for contract in self._cfg.contracts:
            log.info("  %s: %s (%s)", contract.id, contract.address, contract.abi)
        log.info("  Sniper: %s", "enabled" if self.detector else "disabled")

        await self.store.initialize()
        await self._seed_broadcast()

        for manager in self.connections.values():
            manager.connect()

        try:
            await self._main_loop()
        finally:
            await self._shutdown()
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._stopping.set()

    async def _main_loop(self) -> None:
        interval = self._cfg.connection.health_check_interval
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            else:
                break
            try:
                await self.health_check()
            except Exception as exc:
                log.error("Health check error: %s", exc, exc_info=True)

    async def health_check(self) -> list[str]:
        """Restart connections that are idle or down. Returns restarted ids."""
        restarted: list[str] = []
        for contract_id, manager in self.connections.items():
            state = manager.state
            if manager.is_destroyed or state.exhausted:
                continue
            if state.status in (ConnectionStatus.CONNECTING, ConnectionStatus.RECONNECTING):
                continue
            if manager.is_connected:
                continue
            log.warning("[%s] Health check: not connected, restarting", contract_id)
            await manager.restart()
            restarted.append(contract_id)
        return restarted

    async def _seed_broadcast(self) -> None:
        """The broadcast chat hears every deposit and may carry its own threshold."""
        broadcast = self._cfg.sniper.broadcast_subscriber
        if not broadcast:
            return
        await self.store.set_listen_all(broadcast, True)
        if self._cfg.sniper.broadcast_threshold is not None:
            await self.store.set_user_threshold(broadcast, self._cfg.sniper.broadcast_threshold)
        log.info("  Broadcast subscriber: %s", broadcast)

    async def _shutdown(self) -> None:
        # Producers before consumers; the store closes last
        timeout = self._cfg.reconcile.drain_timeout
        for manager in self.connections.values():
            await manager.destroy()
        for manager in self.connections.values():
            await manager.drain(timeout)
        for pipeline in self.pipelines.values():
            await pipeline.drain(timeout)
        if self.detector is not None:
            await self.detector.drain(timeout)
        await self.dispatcher.drain(timeout)
        await self.store.close()


async def run_daemon(cfg: WatchConfig) -> None:
    """Entry point for running the daemon."""
    daemon = WatchDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
