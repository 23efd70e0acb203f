"""Time-bounded cache for one external market rate slot."""

from __future__ import annotations

import asyncio
import logging

from intent_watch.interfaces.clock import Clock
from intent_watch.interfaces.rates import RateFetcher
from intent_watch.models.records import RateSample, RateValue

log = logging.getLogger(__name__)


class RateCache:
    """Serves the last sample while fresh, refetching at most once per window.

    Concurrent readers of an expired slot share a single fetch. A failed
    fetch yields ``None`` and leaves the slot expired, so a stale value is
    never returned as current.
    """

    def __init__(
        self,
        name: str,
        fetcher: RateFetcher,
        clock: Clock,
        freshness: float = 60.0,
    ) -> None:
        self._name = name
        self._fetcher = fetcher
        self._clock = clock
        self._freshness = freshness
        self._sample: RateSample | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def sample(self) -> RateSample | None:
        """Last successful sample, fresh or not."""
        return self._sample

    def is_fresh(self) -> bool:
        if self._sample is None:
            return False
        return self._clock.now() - self._sample.fetched_at < self._freshness

    async def get(self) -> RateValue | None:
        if self.is_fresh():
            return self._sample.rate  # type: ignore[union-attr]

        async with self._lock:
            # another reader may have refreshed while we waited
            if self.is_fresh():
                return self._sample.rate  # type: ignore[union-attr]

            try:
                value = await self._fetcher.fetch()
            except Exception as exc:
                log.error("Rate fetch for %s failed: %s", self._name, exc)
                return None

            if value is None:
                log.warning("Rate for %s unavailable", self._name)
                return None

            self._sample = RateSample(
                currency_code=self._name, rate=value, fetched_at=self._clock.now(),
            )
            log.debug("Refreshed %s rate", self._name)
            return value
