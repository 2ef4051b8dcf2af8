"""Helper functions for message processing"""
import logging
from typing import Optional
from telegram import Update
from telegram.ext import ContextTypes
import telegram.error

from challenge_bot.models.user import User
from challenge_bot.services.container import ServiceContainer

logger = logging.getLogger(__name__)

ERROR_REPLY = "Sorry, I encountered an error. Please try again!"


def get_container(context: ContextTypes.DEFAULT_TYPE) -> ServiceContainer:
    """The container main.py put in bot_data"""
    return context.bot_data["container"]


async def get_or_create_user(container: ServiceContainer, update: Update) -> User:
    """Load the sender, creating a bare record and an empty program on first contact"""
    tg_user = update.effective_user
    user_id = str(tg_user.id)
    user = await container.store.get_user(user_id)
    if user is None:
        user = await container.store.create_user(User(
            telegram_id=user_id,
            username=tg_user.username,
            first_name=tg_user.first_name,
        ))
        await container.program_service.create_empty(user_id)
    return user


async def reply(update: Update, text: Optional[str]) -> None:
    """
    Send a reply with Markdown fallback.

    Attempts to send with Markdown formatting first.
    Falls back to plain text if Markdown parsing fails.
    """
    if not text:
        return
    try:
        await update.message.reply_text(text, parse_mode="Markdown")
    except telegram.error.BadRequest as e:
        if "can't parse entities" in str(e).lower():
            logger.warning(f"Markdown parse error, sending as plain text: {e}")
            await update.message.reply_text(text)
        else:
            raise


async def reply_all(update: Update, texts: list[str]) -> None:
    for text in texts:
        await reply(update, text)
