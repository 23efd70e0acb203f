"""Sniper arbitrage alerts."""

from intent_watch.sniper.engine import ArbitrageDetector, percent_diff

__all__ = ["ArbitrageDetector", "percent_diff"]
