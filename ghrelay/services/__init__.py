"""
Services Package

This package contains the service modules behind the webhook:
- formatter: GitHub event to Telegram HTML message
- telegram_client: Telegram Bot API delivery
"""

from ghrelay.services.formatter import format_event
from ghrelay.services.telegram_client import (
    TelegramDeliveryError,
    TelegramNotifier,
    get_notifier,
)

__all__ = [
    "format_event",
    "TelegramDeliveryError",
    "TelegramNotifier",
    "get_notifier",
]
