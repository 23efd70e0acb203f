"""intent_watch - escrow intent relay and sniper alerts."""

__version__ = "0.1.0"
