"""Outbound notifications."""

from intent_watch.notify.discord import DiscordWebhookMirror
from intent_watch.notify.dispatch import NotificationDispatcher
from intent_watch.notify.telegram import TelegramSender

__all__ = ["DiscordWebhookMirror", "NotificationDispatcher", "TelegramSender"]
