"""Exception types raised by intent_watch."""

from __future__ import annotations


class IntentWatchError(Exception):
    """Base class for intent_watch errors."""


class ConfigError(IntentWatchError):
    """Configuration is missing or invalid."""


class DecodeError(IntentWatchError):
    """A log matched a known signature but its payload could not be decoded."""
