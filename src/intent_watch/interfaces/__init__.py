"""Protocol interfaces for all intent_watch components."""

from intent_watch.interfaces.clock import Clock, TimerHandle
from intent_watch.interfaces.transport import (
    LogTransport,
    TransportFactory,
    TransportListener,
)
from intent_watch.interfaces.decoder import EventDecoder
from intent_watch.interfaces.store import SubscriberStore
from intent_watch.interfaces.sender import MessageSender, WebhookMirror
from intent_watch.interfaces.rates import RateFetcher

__all__ = [
    "Clock", "TimerHandle",
    "LogTransport", "TransportFactory", "TransportListener",
    "EventDecoder",
    "SubscriberStore",
    "MessageSender", "WebhookMirror",
    "RateFetcher",
]
