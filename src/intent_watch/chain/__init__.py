"""On-chain log streaming and decoding."""

from intent_watch.chain.abi import CATALOGS, ESCROW_EVENTS, ORCHESTRATOR_EVENTS
from intent_watch.chain.connection import ConnectionManager, TrackedContract, backoff_delay
from intent_watch.chain.decoder import AbiEventDecoder
from intent_watch.chain.transport import WebSocketLogTransport

__all__ = [
    "CATALOGS", "ESCROW_EVENTS", "ORCHESTRATOR_EVENTS",
    "ConnectionManager", "TrackedContract", "backoff_delay",
    "AbiEventDecoder",
    "WebSocketLogTransport",
]
