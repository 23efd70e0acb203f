"""Resilient streaming connection manager - one live log subscription per contract."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from intent_watch.interfaces.clock import Clock, TimerHandle
from intent_watch.interfaces.decoder import EventDecoder
from intent_watch.interfaces.transport import LogTransport, TransportFactory
from intent_watch.models.config import ConnectionConfig
from intent_watch.models.events import DecodedEvent
from intent_watch.models.records import ConnectionState, ConnectionStatus

log = logging.getLogger(__name__)

EventHandler = Callable[[DecodedEvent], Awaitable[None]]


def backoff_delay(
    attempt: int,
    floor: float = 1.0,
    cap: float = 30.0,
    multiplier: float = 1.5,
) -> float:
    """Delay in seconds before reconnection attempt ``attempt`` (1-based)."""
    return min(floor * multiplier ** attempt, cap)


class TrackedContract:
    """A contract address whose logs are streamed and decoded."""

    __slots__ = ("_id", "_address", "_decoder")

    def __init__(self, id: str, address: str, decoder: EventDecoder) -> None:
        self._id = id
        self._address = address.lower()
        self._decoder = decoder

    @property
    def id(self) -> str:
        return self._id

    @property
    def address(self) -> str:
        return self._address

    @property
    def decoder(self) -> EventDecoder:
        return self._decoder

    def __repr__(self) -> str:
        return f"TrackedContract(id={self._id!r}, address={self._address!r})"


class ConnectionManager:
    """Keeps one subscription alive for a tracked contract.

    State machine:
        Disconnected -> Connecting -> Connected -> Reconnecting -> Connecting ...
        any state -> Destroyed (terminal)

    Every raw log is decoded with the contract's decoder and handed to the
    event handler in its own task. Transport and handshake failures never
    reach the caller; they drive the Reconnecting state with exponential
    backoff until ``max_attempts`` is exceeded, at which point recovery
    stops for good and is only logged.
    """

    def __init__(
        self,
        contract: TrackedContract,
        transport_factory: TransportFactory,
        handler: EventHandler,
        clock: Clock,
        config: ConnectionConfig | None = None,
    ) -> None:
        self._contract = contract
        self._transport_factory = transport_factory
        self._handler = handler
        self._clock = clock
        self._cfg = config or ConnectionConfig()

        self._state = ConnectionState(
            last_activity=clock.now(), backoff_delay=self._cfg.backoff_floor,
        )
        self._transport: LogTransport | None = None
        self._reconnect_timer: TimerHandle | None = None
        self._heartbeat_timer: TimerHandle | None = None
        self._settle_timer: TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

    # ── State ─────────────────────────────────────────────

    @property
    def contract(self) -> TrackedContract:
        return self._contract

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_destroyed(self) -> bool:
        return self._state.status == ConnectionStatus.DESTROYED

    @property
    def is_connected(self) -> bool:
        """Transport open and something heard within ``stale_after`` seconds."""
        if self._transport is None or not self._transport.is_open:
            return False
        return self._clock.now() - self._state.last_activity < self._cfg.stale_after

    # ── Lifecycle ─────────────────────────────────────────

    def connect(self) -> None:
        """Request a connection. No-op while Connecting or once Destroyed."""
        if self._state.status in (ConnectionStatus.CONNECTING, ConnectionStatus.DESTROYED):
            return
        self._begin_connect()

    async def restart(self) -> None:
        """Tear down and reconnect from scratch after a short settle delay."""
        if self.is_destroyed:
            return
        log.info("[%s] Manual restart initiated", self._contract.id)
        self._cancel_timers()
        self._state.attempts = 0
        self._state.backoff_delay = self._cfg.backoff_floor
        self._state.exhausted = False
        self._state.status = ConnectionStatus.DISCONNECTED
        await self._teardown()
        if self.is_destroyed:
            return
        self._settle_timer = self._clock.call_later(
            self._cfg.restart_delay, self._on_settle_elapsed,
        )

    async def destroy(self) -> None:
        """Stop for good. Idempotent; no transition leaves Destroyed."""
        if self.is_destroyed:
            return
        log.info("[%s] Destroying connection", self._contract.id)
        # Flag first so in-flight connects observe it across their awaits.
        self._state.status = ConnectionStatus.DESTROYED
        self._cancel_timers()
        await self._teardown()

    async def drain(self, timeout: float = 15.0) -> None:
        """Wait for handler and connect tasks still running, without cancelling them."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            log.warning(
                "[%s] %d tasks still running after %.0fs",
                self._contract.id, len(still_running), timeout,
            )

    # ── Connecting ────────────────────────────────────────

    def _begin_connect(self) -> None:
        # Status flips before the task runs so repeated requests see Connecting
        for name in ("_reconnect_timer", "_settle_timer"):
            timer = getattr(self, name)
            if timer is not None:
                timer.cancel()
                setattr(self, name, None)
        self._state.status = ConnectionStatus.CONNECTING
        self._spawn(self._connect())

    async def _connect(self) -> None:
        if self.is_destroyed:
            return
        log.info(
            "[%s] Connecting to %s (attempt %d)",
            self._contract.id, self._contract.address, self._state.attempts + 1,
        )

        try:
            await self._teardown()
            if self.is_destroyed:
                return
            transport = self._transport_factory(self)
            self._transport = transport
            await transport.open()
            if self.is_destroyed:
                await self._teardown()
                return
            await asyncio.wait_for(transport.handshake(), self._cfg.handshake_timeout)
        except Exception as exc:
            if self.is_destroyed:
                await self._teardown()
                return
            reason = "handshake timeout" if isinstance(exc, asyncio.TimeoutError) else str(exc)
            log.error("[%s] Connection failed: %s", self._contract.id, reason)
            self._enter_reconnecting(reason, force=True)
            return

        if self.is_destroyed:
            await self._teardown()
            return
        self._enter_connected()

    def _enter_connected(self) -> None:
        self._state.status = ConnectionStatus.CONNECTED
        self._state.attempts = 0
        self._state.backoff_delay = self._cfg.backoff_floor
        self._state.last_activity = self._clock.now()
        self._schedule_heartbeat()
        log.info("[%s] Listening for events on %s", self._contract.id, self._contract.address)

    # ── Reconnecting ──────────────────────────────────────

    def _enter_reconnecting(self, reason: str, force: bool = False) -> None:
        status = self._state.status
        if status == ConnectionStatus.DESTROYED:
            return
        if status == ConnectionStatus.CONNECTING and not force:
            return  # the in-flight attempt reports its own outcome
        if status == ConnectionStatus.RECONNECTING and self._reconnect_timer is not None:
            return  # already waiting out a backoff
        if self._state.exhausted:
            return

        self._cancel_heartbeat()
        self._state.status = ConnectionStatus.RECONNECTING
        self._state.attempts += 1
        self._spawn(self._close_transport(self._detach_transport()))

        if self._state.attempts > self._cfg.max_attempts:
            self._state.exhausted = True
            log.critical(
                "[%s] Max reconnection attempts (%d) reached, giving up (%s)",
                self._contract.id, self._cfg.max_attempts, reason,
            )
            return

        delay = backoff_delay(
            self._state.attempts,
            floor=self._cfg.backoff_floor,
            cap=self._cfg.backoff_cap,
            multiplier=self._cfg.backoff_multiplier,
        )
        self._state.backoff_delay = delay
        log.warning(
            "[%s] Reconnecting in %.1fs (attempt %d, reason: %s)",
            self._contract.id, delay, self._state.attempts, reason,
        )
        self._reconnect_timer = self._clock.call_later(delay, self._on_backoff_elapsed)

    def _on_backoff_elapsed(self) -> None:
        self._reconnect_timer = None
        if self.is_destroyed:
            return
        self._begin_connect()

    def _on_settle_elapsed(self) -> None:
        self._settle_timer = None
        if self.is_destroyed:
            return
        self.connect()

    # ── Heartbeat / watchdog ──────────────────────────────

    def _schedule_heartbeat(self) -> None:
        self._cancel_heartbeat()
        self._heartbeat_timer = self._clock.call_later(
            self._cfg.heartbeat_interval, self._on_heartbeat,
        )

    def _on_heartbeat(self) -> None:
        self._heartbeat_timer = None
        if self._state.status != ConnectionStatus.CONNECTED:
            return

        silence = self._clock.now() - self._state.last_activity
        if silence > self._cfg.idle_timeout:
            log.warning(
                "[%s] No activity for %.0fs, forcing reconnection",
                self._contract.id, silence,
            )
            self._enter_reconnecting("idle timeout")
            return

        self._spawn(self._ping())
        self._schedule_heartbeat()

    async def _ping(self) -> None:
        transport = self._transport
        if transport is None or not transport.is_open:
            return
        try:
            await transport.ping()
        except Exception as exc:
            log.error("[%s] Keep-alive ping failed: %s", self._contract.id, exc)
            if transport is self._transport:
                self._enter_reconnecting("ping failed")

    # ── TransportListener ─────────────────────────────────

    def on_activity(self) -> None:
        self._state.last_activity = self._clock.now()

    def on_log(self, raw_log: dict[str, Any]) -> None:
        self._state.last_activity = self._clock.now()
        if self.is_destroyed:
            return
        try:
            event = self._contract.decoder.decode(
                raw_log, self._contract.id, received_at=self._state.last_activity,
            )
        except Exception as exc:
            log.warning(
                "[%s] Failed to decode log in tx %s: %s",
                self._contract.id, raw_log.get("transactionHash"), exc,
            )
            return
        if event is None:
            topics = raw_log.get("topics") or ["?"]
            log.debug(
                "[%s] Log did not match any known event (signature %s)",
                self._contract.id, topics[0],
            )
            return
        self._spawn(self._deliver(event))

    def on_closed(self, reason: str) -> None:
        log.warning("[%s] WebSocket closed: %s", self._contract.id, reason)
        self._enter_reconnecting(f"remote close: {reason}")

    def on_error(self, exc: BaseException) -> None:
        log.error("[%s] WebSocket error: %s", self._contract.id, exc)
        self._enter_reconnecting(f"transport error: {exc}")

    async def _deliver(self, event: DecodedEvent) -> None:
        try:
            await self._handler(event)
        except Exception as exc:
            log.error(
                "[%s] Handler failed for %s in tx %s: %s",
                self._contract.id, event.event_name, event.transaction_hash, exc,
                exc_info=True,
            )

    # ── Internals ─────────────────────────────────────────

    def _detach_transport(self) -> LogTransport | None:
        transport, self._transport = self._transport, None
        return transport

    async def _close_transport(self, transport: LogTransport | None) -> None:
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as exc:
            log.warning("[%s] Error during transport cleanup: %s", self._contract.id, exc)

    async def _teardown(self) -> None:
        await self._close_transport(self._detach_transport())

    def _cancel_heartbeat(self) -> None:
        if self._heartbeat_timer is not None:
            self._heartbeat_timer.cancel()
            self._heartbeat_timer = None

    def _cancel_timers(self) -> None:
        self._cancel_heartbeat()
        for name in ("_reconnect_timer", "_settle_timer"):
            timer = getattr(self, name)
            if timer is not None:
                timer.cancel()
                setattr(self, name, None)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
