"""Outbound Telegram messages (fire-and-forget)"""
import logging
from typing import Optional, Protocol

import telegram.error
from telegram import Bot

from challenge_bot.exceptions import wrap_external_exception

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send_text(self, chat_id: str, text: str) -> bool: ...

    async def send_photo(self, chat_id: str, photo: str, caption: Optional[str] = None) -> bool: ...


class TelegramNotifier:
    """
    Sends messages through the bot.

    Delivery failures are logged and reported as False; callers never
    depend on delivery for correctness.
    """

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_text(self, chat_id: str, text: str) -> bool:
        try:
            try:
                await self.bot.send_message(chat_id=chat_id, text=text, parse_mode="Markdown")
            except telegram.error.BadRequest as e:
                if "can't parse entities" not in str(e).lower():
                    raise
                logger.warning(f"Markdown parse error, sending as plain text: {e}")
                await self.bot.send_message(chat_id=chat_id, text=text)
        except telegram.error.TelegramError as e:
            # MessageSendError logs itself with the cause
            wrap_external_exception(e, operation="send_text", user_id=chat_id)
            return False
        return True

    async def send_photo(self, chat_id: str, photo: str, caption: Optional[str] = None) -> bool:
        try:
            await self.bot.send_photo(chat_id=chat_id, photo=photo, caption=caption)
        except telegram.error.TelegramError as e:
            wrap_external_exception(e, operation="send_photo", user_id=chat_id)
            return False
        return True
