"""
Run report delivery.
"""

from payout_crunch.core.config import CrunchSettings

from .base import LoggingNotifier, Notifier
from .telegram_notifier import TelegramNotifier


def build_notifier(settings: CrunchSettings) -> Notifier:
    """Telegram when a bot token and chat are configured, log output otherwise."""
    if settings.telegram_enabled:
        return TelegramNotifier(settings.telegram_bot_token, settings.telegram_chat_id)
    return LoggingNotifier()


__all__ = ["LoggingNotifier", "Notifier", "TelegramNotifier", "build_notifier"]
