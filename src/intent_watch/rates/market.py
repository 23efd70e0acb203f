"""Resolves the market rate for a fiat currency from the right cache slot."""

from __future__ import annotations

import logging
from typing import Mapping

from intent_watch.rates.cache import RateCache

log = logging.getLogger(__name__)


class MarketRateResolver:
    """Picks the source for a currency code.

    The identity currency is always 1.0, the regional currency has its own
    slot, and every other code is looked up in the multi-currency table.
    """

    def __init__(
        self,
        table: RateCache,
        regional: RateCache | None = None,
        regional_currency: str = "ARS",
        identity_currency: str = "USD",
    ) -> None:
        self._table = table
        self._regional = regional
        self._regional_currency = regional_currency.upper()
        self._identity_currency = identity_currency.upper()

    async def rate_for(self, currency_code: str) -> float | None:
        code = currency_code.upper()
        if code == self._identity_currency:
            return 1.0

        if code == self._regional_currency and self._regional is not None:
            rate = await self._regional.get()
            if not rate:
                log.info("No %s rate available", code)
                return None
            return float(rate)  # type: ignore[arg-type]

        table = await self._table.get()
        if not isinstance(table, Mapping):
            log.info("No exchange rate table available")
            return None
        rate = table.get(code)
        if not rate:
            log.info("No market rate found for %s", code)
            return None
        return float(rate)
