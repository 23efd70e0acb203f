"""External market rates and their cache."""

from intent_watch.rates.cache import RateCache
from intent_watch.rates.market import MarketRateResolver
from intent_watch.rates.providers import CriptoYaFetcher, ExchangeRateApiFetcher

__all__ = ["RateCache", "MarketRateResolver", "CriptoYaFetcher", "ExchangeRateApiFetcher"]
