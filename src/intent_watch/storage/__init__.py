"""Persistent subscriber state."""

from intent_watch.storage.sqlite import SQLiteSubscriberStore

__all__ = ["SQLiteSubscriberStore"]
