"""
Telegram delivery of run reports and alerts.
Uses aiogram v3 with HTML parse mode.
"""

from typing import List, Optional, Union

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError, TelegramNetworkError, TelegramRetryAfter
import structlog

from payout_crunch.core.exceptions import NotificationError


logger = structlog.get_logger(__name__)

# Telegram rejects longer messages
MAX_MESSAGE_LENGTH = 4096


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Split on line boundaries so HTML tags opened on a line stay on it."""
    chunks: List[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return chunks


class TelegramNotifier:
    """Sends the formatted (HTML) version of every message to one chat."""

    def __init__(self, token: str, chat_id: Union[int, str], bot: Optional[Bot] = None):
        self.chat_id = chat_id
        self.bot = bot or Bot(
            token=token,
            default=DefaultBotProperties(
                parse_mode=ParseMode.HTML,
                link_preview_is_disabled=True
            )
        )
        self.logger = logger.bind(service="telegram_notifier")

    async def send(self, message: str, formatted_message: str) -> None:
        text = formatted_message or message
        try:
            for chunk in split_message(text):
                await self.bot.send_message(chat_id=self.chat_id, text=chunk)
        except TelegramRetryAfter as e:
            raise NotificationError(
                "Telegram rate limit hit",
                {"chat_id": self.chat_id, "retry_after": e.retry_after}
            )
        except TelegramNetworkError as e:
            raise NotificationError(f"Network error sending message: {e}", {"chat_id": self.chat_id})
        except TelegramAPIError as e:
            raise NotificationError(f"Telegram API error: {e}", {"chat_id": self.chat_id})

        self.logger.debug("Message sent successfully", chat_id=self.chat_id, message_length=len(text))

    async def close(self) -> None:
        await self.bot.session.close()
