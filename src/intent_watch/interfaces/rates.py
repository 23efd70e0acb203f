"""RateFetcher protocol - one outbound market rate fetch."""

from __future__ import annotations

from typing import Protocol

from intent_watch.models.records import RateValue


class RateFetcher(Protocol):
    """Fetches a fresh rate value from an external provider."""

    async def fetch(self) -> RateValue | None:
        """Return the fetched value, or None when the provider has no usable data."""
        ...
