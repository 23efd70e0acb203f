"""LogTransport protocol - a streaming log subscription to a remote node."""

from __future__ import annotations

from typing import Any, Callable, Protocol


class TransportListener(Protocol):
    """Receives transport callbacks. Implemented by the Connection Manager."""

    def on_log(self, raw_log: dict[str, Any]) -> None:
        """A subscription log arrived: {address, topics, data, transactionHash, blockNumber}."""
        ...

    def on_activity(self) -> None:
        """Any inbound frame (message, ping, pong) was seen."""
        ...

    def on_closed(self, reason: str) -> None:
        """The remote side closed the connection."""
        ...

    def on_error(self, exc: BaseException) -> None:
        """The transport failed."""
        ...


class LogTransport(Protocol):
    """One websocket subscription to contract logs."""

    @property
    def is_open(self) -> bool:
        ...

    async def open(self) -> None:
        """Open the underlying socket and start reading."""
        ...

    async def handshake(self) -> None:
        """Confirm the node answers and subscribe to the contract's logs."""
        ...

    async def ping(self) -> None:
        """Send a liveness probe. Raises on send failure."""
        ...

    async def close(self) -> None:
        """Tear down the socket. Safe to call more than once."""
        ...


TransportFactory = Callable[[TransportListener], LogTransport]
