"""JSON-RPC websocket log subscription over aiohttp."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any

import aiohttp

from intent_watch.interfaces.transport import TransportListener

log = logging.getLogger(__name__)


class WebSocketLogTransport:
    """Streams ``eth_subscribe("logs")`` notifications for one contract address.

    Inbound frames are read by a background task. Subscription payloads go
    to ``listener.on_log``; every frame (including pings and pongs) counts
    as activity. A close or read failure that we did not initiate is
    reported once through ``on_closed`` / ``on_error``.
    """

    def __init__(
        self,
        ws_url: str,
        address: str,
        listener: TransportListener,
        request_timeout: float = 15.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._url = ws_url
        self._address = address.lower()
        self._listener = listener
        self._request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task | None = None
        self._pending: dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._subscription_id: str | None = None
        self._closing = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def subscription_id(self) -> str | None:
        return self._subscription_id

    async def open(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        self._ws = await self._session.ws_connect(self._url, autoping=False)
        self._reader = asyncio.create_task(self._read_loop())

    async def handshake(self) -> None:
        chain_id = await self._request("eth_chainId", [])
        log.debug("Connected to chain %s", chain_id)
        self._subscription_id = await self._request(
            "eth_subscribe", ["logs", {"address": self._address}],
        )
        log.info("Subscribed to logs for %s (sub %s)", self._address, self._subscription_id)

    async def ping(self) -> None:
        if self._ws is None or self._ws.closed:
            raise ConnectionError("websocket is not open")
        await self._ws.ping()

    async def close(self) -> None:
        self._closing = True
        if self._reader is not None and self._reader is not asyncio.current_task():
            self._reader.cancel()
            try:
                await self._reader
            except (asyncio.CancelledError, Exception):
                pass
        self._reader = None
        self._fail_pending(ConnectionError("transport closed"))
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        self._ws = None
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # ── Internals ─────────────────────────────────────────

    async def _request(self, method: str, params: list[Any]) -> Any:
        if self._ws is None:
            raise ConnectionError("websocket is not open")
        request_id = next(self._ids)
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._ws.send_str(json.dumps({
                "jsonrpc": "2.0", "id": request_id, "method": method, "params": params,
            }))
            return await asyncio.wait_for(future, self._request_timeout)
        finally:
            self._pending.pop(request_id, None)

    async def _read_loop(self) -> None:
        assert self._ws is not None
        ws = self._ws
        try:
            async for msg in ws:
                self._listener.on_activity()
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._handle_text(msg.data)
                elif msg.type == aiohttp.WSMsgType.PING:
                    await ws.pong(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise ws.exception() or ConnectionError("websocket error frame")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._fail_pending(exc)
            if not self._closing:
                self._listener.on_error(exc)
            return

        self._fail_pending(ConnectionError("websocket closed"))
        if not self._closing:
            self._listener.on_closed(f"code {ws.close_code}")

    def _handle_text(self, data: str) -> None:
        try:
            payload = json.loads(data)
        except ValueError:
            log.warning("Ignoring non-JSON frame from %s", self._url)
            return

        if "id" in payload and payload["id"] in self._pending:
            future = self._pending[payload["id"]]
            if future.done():
                return
            if "error" in payload:
                future.set_exception(
                    ConnectionError(f"RPC error: {payload['error']}")
                )
            else:
                future.set_result(payload.get("result"))
            return

        if payload.get("method") == "eth_subscription":
            result = payload.get("params", {}).get("result")
            if isinstance(result, dict):
                self._listener.on_log(result)

    def _fail_pending(self, exc: BaseException) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(exc)
        self._pending.clear()
