"""Flip notifications."""

from cryptoflip.notifications.base import LoggingNotifier, Notifier
from cryptoflip.notifications.telegram import TelegramNotifier, format_flip_message

__all__ = [
    "LoggingNotifier",
    "Notifier",
    "TelegramNotifier",
    "format_flip_message",
]
