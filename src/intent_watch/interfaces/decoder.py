"""EventDecoder protocol - maps raw logs to named events."""

from __future__ import annotations

from typing import Any, Protocol

from intent_watch.models.events import DecodedEvent


class EventDecoder(Protocol):
    """Decodes raw logs against a known signature catalog."""

    def decode(
        self, raw_log: dict[str, Any], contract_id: str, received_at: float = 0.0,
    ) -> DecodedEvent | None:
        """Return the decoded event, or None when no signature matches."""
        ...
