"""Telegram bot setup and command handlers"""
import logging
from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from challenge_bot.config import (
    ALERT_CHECK_INTERVAL_SECONDS,
    CHALLENGE_LENGTH_DAYS,
    LIFECYCLE_CHECK_INTERVAL_SECONDS,
    ROLLOVER_HOUR,
    TELEGRAM_BOT_TOKEN,
)
from challenge_bot.handlers.message_helpers import ERROR_REPLY, get_container, get_or_create_user, reply
from challenge_bot.handlers.messages import handle_location, handle_message, handle_photo
from challenge_bot.services.completion import evaluate
from challenge_bot.services.container import ServiceContainer
from challenge_bot.services.notifier import TelegramNotifier
from challenge_bot.utils import formatters

logger = logging.getLogger(__name__)

NOT_STARTED_REPLY = "You haven't started yet. Send /start to set up your challenge."

HELP_TEXT = f"""🤖 **{CHALLENGE_LENGTH_DAYS}-Day Challenge Help**

**Every day you need:**
- Outdoor workout (45 min)
- Indoor workout (45 min)
- Read 10 pages
- Drink your water target
- Progress pic
- Follow your diet

**Just tell me what you did:**
- "Did a 45 min run outside"
- "Drank 32oz of water"
- "Read 10 pages of Atomic Habits"
- "Had 2 eggs and toast for breakfast"
- Send a workout screenshot or a progress pic

**Commands:**
/start - Set up your challenge (or see where you are)
/status - Today's checklist
/progress - Your progress so far
/reset - How resets work
/help - Show this help message"""

RESET_TEXT = f"""There's no manual reset.

At {ROLLOVER_HOUR}:00 your local time I check the day that just ended. If anything is missing, you go back to Day 1 automatically. If everything is done, you move on to the next day.

Send /status to see what's left today."""


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - begin or resume onboarding"""
    user_id = str(update.effective_user.id)

    try:
        container = get_container(context)
        user = await get_or_create_user(container, update)

        if user.onboarding_complete:
            if not user.is_active:
                await reply(update, formatters.format_challenge_finished())
                return
            await reply(
                update,
                f"Welcome back, {user.display_name}! You're on Day {user.current_day} of "
                f"{CHALLENGE_LENGTH_DAYS}. Send /status to see today's checklist."
            )
            return

        welcome = (
            f"👋 Welcome to the {CHALLENGE_LENGTH_DAYS}-day challenge!\n\n"
            "Miss anything on any day and you start over at Day 1. "
            "Let's set up your program first."
        )
        if user.onboarding_state is None:
            await reply(update, welcome)
        await reply(update, await container.onboarding_service.begin(user))
        logger.info(f"/start from {user_id} (onboarding)")

    except Exception as e:
        logger.error(f"Error in start: {e}", exc_info=True)
        await update.message.reply_text(ERROR_REPLY)


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show today's checklist"""
    try:
        container = get_container(context)
        user = await get_or_create_user(container, update)
        if not user.is_active:
            await reply(update, NOT_STARTED_REPLY)
            return

        program = await container.program_service.get_program(user.telegram_id)
        if program is None:
            await reply(update, NOT_STARTED_REPLY)
            return

        day_log = await container.task_logger.current_log(user)
        status = evaluate(day_log, program.water_target, program.diet_mode, program.base_calories)
        await reply(update, formatters.format_status(user.current_day, program, day_log, status))

    except Exception as e:
        logger.error(f"Error in status_command: {e}", exc_info=True)
        await update.message.reply_text(ERROR_REPLY)


async def progress_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show progress across the current and earlier attempts"""
    try:
        container = get_container(context)
        user = await get_or_create_user(container, update)
        if not user.onboarding_complete:
            await reply(update, NOT_STARTED_REPLY)
            return

        day_logs = await container.store.list_day_logs(user.telegram_id)
        photos = await container.store.list_progress_photos(user.telegram_id)
        await reply(update, formatters.format_progress(
            user.current_day, user.attempt, user.start_date, day_logs, len(photos)
        ))

    except Exception as e:
        logger.error(f"Error in progress_command: {e}", exc_info=True)
        await update.message.reply_text(ERROR_REPLY)


async def reset_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Resets happen at rollover; this only explains that"""
    await reply(update, RESET_TEXT)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show help message"""
    await reply(update, HELP_TEXT)


def create_bot_application(container: ServiceContainer) -> Application:
    """
    Create and configure the bot application

    Wires the container's notifier to the bot, stores the container in
    bot_data, registers handlers and schedules the rollover and alert jobs.
    """
    app = Application.builder().token(TELEGRAM_BOT_TOKEN).build()

    container.notifier = TelegramNotifier(app.bot)
    app.bot_data["container"] = container

    # Add command handlers
    app.add_handler(CommandHandler("start", start))
    app.add_handler(CommandHandler("status", status_command))
    app.add_handler(CommandHandler("progress", progress_command))
    app.add_handler(CommandHandler("reset", reset_command))
    app.add_handler(CommandHandler("help", help_command))

    # Add message handlers
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    app.add_handler(MessageHandler(filters.PHOTO, handle_photo))
    app.add_handler(MessageHandler(filters.LOCATION, handle_location))

    # Scheduled checks
    app.job_queue.run_repeating(
        container.lifecycle.run_job,
        interval=LIFECYCLE_CHECK_INTERVAL_SECONDS,
        first=10,
        name="lifecycle_rollover",
    )
    app.job_queue.run_repeating(
        container.alerts.run_job,
        interval=ALERT_CHECK_INTERVAL_SECONDS,
        first=30,
        name="evening_alerts",
    )
    logger.info(
        f"Scheduled rollover checks every {LIFECYCLE_CHECK_INTERVAL_SECONDS}s "
        f"and alert checks every {ALERT_CHECK_INTERVAL_SECONDS}s"
    )

    logger.info("Bot application created")
    return app
