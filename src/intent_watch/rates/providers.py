"""HTTP market rate providers."""

from __future__ import annotations

import logging

import httpx

log = logging.getLogger(__name__)


class ExchangeRateApiFetcher:
    """Multi-currency table: ``{"result": "success", "conversion_rates": {ISO: rate}}``.

    Rates are units of currency per USD.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> dict[str, float] | None:
        if not self._url:
            log.warning("No exchange rate API URL configured")
            return None
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.get(self._url)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException:
            log.error("Exchange rate API timed out after %.0fs", self._timeout)
            return None
        except httpx.HTTPStatusError as exc:
            log.error("Exchange rate API returned HTTP %d", exc.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            log.error("Exchange rate API request failed: %s", exc)
            return None

        if data.get("result") != "success":
            log.error("Exchange rate API error: %s", data.get("error-type", data.get("result")))
            return None
        rates = data.get("conversion_rates")
        if not isinstance(rates, dict):
            return None
        return {code: float(rate) for code, rate in rates.items()}


class CriptoYaFetcher:
    """Regional USDC quote from CriptoYa, returned as the ask/bid mid price."""

    def __init__(
        self,
        url: str = "https://criptoya.com/api/dolar",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> float | None:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.get(self._url)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException:
            log.error("CriptoYa API timed out after %.0fs", self._timeout)
            return None
        except httpx.HTTPStatusError as exc:
            log.error("CriptoYa API returned HTTP %d", exc.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            log.error("CriptoYa API request failed: %s", exc)
            return None

        try:
            quote = data["cripto"]["usdc"]
            ask, bid = float(quote["ask"]), float(quote["bid"])
        except (KeyError, TypeError, ValueError):
            log.error("CriptoYa response missing cripto.usdc ask/bid")
            return None
        return (ask + bid) / 2
