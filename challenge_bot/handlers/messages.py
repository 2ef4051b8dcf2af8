"""
Telegram message handlers: text, photos and locations

Users still in setup are routed to the onboarding wizard. Everyone else goes
through the intent extractor, and whatever the intent reports is logged
against today's day log.
"""
import logging
from typing import Optional
from telegram import Update
from telegram.ext import ContextTypes
import telegram.error

from challenge_bot.exceptions import ChallengeBotError, NutritionEstimateError
from challenge_bot.handlers.message_helpers import (
    ERROR_REPLY,
    get_container,
    get_or_create_user,
    reply,
    reply_all,
)
from challenge_bot.models.day_log import DayLog
from challenge_bot.models.intent import Intent, PhotoClassification
from challenge_bot.models.onboarding import OnboardingStep
from challenge_bot.models.program import DietMode, ProgramConfiguration
from challenge_bot.models.user import User
from challenge_bot.services.completion import calorie_budget, evaluate
from challenge_bot.services.container import ServiceContainer
from challenge_bot.services.nutrition import format_daily_summary, format_meal_table
from challenge_bot.services.task_logger import OUTDOOR, LogResult
from challenge_bot.utils import formatters
from challenge_bot.utils.timezone_helper import get_timezone_from_coordinates

logger = logging.getLogger(__name__)

FOOD_ESTIMATE_FAILED = (
    "I couldn't estimate that meal right now, so it isn't logged. "
    "Try describing it again in a minute."
)
NO_PROGRAM_REPLY = "I can't find your program. Send /start to set it up again."
PHOTO_NEEDED_REPLY = "📸 Send the photo itself and I'll log your progress pic."
FINISHED_REPLY = "You've finished the challenge. Send /progress to look back at it."
NO_MEAL_TO_CORRECT_REPLY = "There's no meal logged today to correct. Tell me what you ate and I'll log it."


def meal_calorie_target(program: ProgramConfiguration, day_log: DayLog) -> Optional[int]:
    """Target shown under the meal table: the budget in deficit mode, else the day's guide"""
    if program.diet_mode == DietMode.DEFICIT:
        return calorie_budget(day_log, program.base_calories)
    return program.calorie_target_for_day(day_log.day_number)


def _meal_summary(program: ProgramConfiguration, day_log: DayLog) -> str:
    return format_daily_summary(day_log.meals, meal_calorie_target(program, day_log), program.protein_target)


async def apply_intent(
    container: ServiceContainer,
    user: User,
    program: ProgramConfiguration,
    intent: Intent,
) -> list[str]:
    """
    Log everything the intent reports and build the replies

    A failed nutrition estimate only drops the food entry; the other
    categories in the same message are still logged.

    Returns:
        Messages to send, in order
    """
    tasks = container.task_logger
    replies = [intent.response_text]
    results: list[LogResult] = []

    if intent.outdoor_workout:
        results.append(await tasks.log_outdoor_workout(user, program, intent.outdoor_workout))
    if intent.indoor_workout:
        results.append(await tasks.log_indoor_workout(user, program, intent.indoor_workout))
    if intent.reading:
        results.append(await tasks.log_reading(user, program, intent.reading.pages, intent.reading.book))
    if intent.water_oz:
        results.append(await tasks.add_water(user, program, intent.water_oz))
    if intent.water_removed_oz:
        results.append(await tasks.delete_water(user, program, intent.water_removed_oz))
    if intent.diet_confirmed:
        results.append(await tasks.confirm_diet(user, program))

    if intent.meal_correction == "delete_last":
        result = await tasks.delete_last_meals(user, program, intent.meal_delete_count)
        results.append(result)
        removed = "meal" if intent.meal_delete_count == 1 else f"{intent.meal_delete_count} meals"
        replies.append(f"🗑️ Removed the last {removed}.{_meal_summary(program, result.day_log)}")
    elif intent.meal_correction == "clear":
        result = await tasks.clear_meals(user, program)
        results.append(result)
        replies.append("🗑️ Cleared today's meals.")

    if intent.food_description:
        update_last = intent.meal_correction == "update_last"
        try:
            estimate = await container.nutrition.estimate(intent.food_description, program.diet_type)
        except NutritionEstimateError as e:
            logger.warning(f"Food not logged for {user.telegram_id}: {e.message}")
            replies.append(FOOD_ESTIMATE_FAILED)
        else:
            meal = estimate.to_meal(intent.food_description)
            if update_last:
                result = await tasks.update_last_meal(user, program, meal)
            else:
                result = await tasks.add_meal(user, program, meal)
            if result is None:
                replies.append(NO_MEAL_TO_CORRECT_REPLY)
            else:
                results.append(result)
                replies.append(format_meal_table(estimate) + _meal_summary(program, result.day_log))

    if intent.progress_pic:
        replies.append(PHOTO_NEEDED_REPLY)

    await container.program_service.add_context(user.telegram_id, intent)

    if any(r.newly_completed for r in results):
        replies.append(formatters.format_day_complete(user.current_day))

    if intent.wants_status:
        day_log = results[-1].day_log if results else await tasks.current_log(user)
        status = evaluate(day_log, program.water_target, program.diet_mode, program.base_calories)
        replies.append(formatters.format_status(user.current_day, program, day_log, status))

    return [r for r in replies if r]


async def process_text(container: ServiceContainer, user: User, text: str) -> list[str]:
    """Replies for a text message from an onboarded user"""
    if not user.is_active:
        return [FINISHED_REPLY]

    program = await container.program_service.get_program(user.telegram_id)
    if program is None:
        logger.warning(f"Active user {user.telegram_id} has no program")
        return [NO_PROGRAM_REPLY]

    day_log = await container.task_logger.current_log(user)
    intent = await container.intent_extractor.extract(text, user, program, day_log)
    return await apply_intent(container, user, program, intent)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle text messages: onboarding answers or daily logging"""
    user_id = str(update.effective_user.id)
    text = update.message.text
    logger.info(f"Message from {user_id}: {text[:80]}")

    try:
        container = get_container(context)
        user = await get_or_create_user(container, update)

        if not user.onboarding_complete:
            if user.onboarding_state is None:
                await reply(update, await container.onboarding_service.begin(user))
            else:
                await reply(update, await container.onboarding_service.handle_reply(user, text))
            return

        await update.message.chat.send_action("typing")
        await reply_all(update, await process_text(container, user, text))

    except ChallengeBotError as e:
        await update.message.reply_text(e.user_message)
    except Exception as e:
        logger.error(f"Error in handle_message: {e}", exc_info=True)
        await update.message.reply_text(ERROR_REPLY)


def _photo_reply(day_number: int, slot: Optional[str], classification: PhotoClassification) -> str:
    if slot is None:
        return f"📸 Progress pic saved for Day {day_number}."

    label = "Outdoor" if slot == OUTDOOR else "Indoor"
    details = []
    if classification.workout_type:
        details.append(classification.workout_type)
    if classification.duration_mins:
        details.append(f"{classification.duration_mins} min")
    if classification.calories_burned:
        details.append(f"{classification.calories_burned} cal")
    if classification.hr_avg:
        details.append(f"avg HR {classification.hr_avg}")
    suffix = f" ({', '.join(details)})" if details else ""
    return f"💪 {label} workout logged from your screenshot{suffix}."


async def process_photo(
    container: ServiceContainer,
    user: User,
    program: ProgramConfiguration,
    file_id: str,
    image: Optional[bytes],
) -> list[str]:
    """
    Classify a photo and log it

    Without image bytes (download failed) the photo counts as a progress pic.
    """
    classification = PhotoClassification()
    if image is not None:
        classification = await container.photo_classifier.classify(image)

    tasks = container.task_logger
    if classification.is_workout:
        slot, result = await tasks.log_workout_screenshot(user, program, classification, file_id)
    else:
        slot, result = None, await tasks.log_progress_pic(user, program, file_id)

    replies = [_photo_reply(user.current_day, slot, classification)]
    if result.newly_completed:
        replies.append(formatters.format_day_complete(user.current_day))
    elif result.status.missing:
        replies.append(f"Still need: {', '.join(result.status.missing)}")
    return replies


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle photos: tracker screenshots become workouts, anything else a progress pic"""
    user_id = str(update.effective_user.id)
    logger.info(f"Photo received from {user_id}")

    try:
        container = get_container(context)
        user = await get_or_create_user(container, update)
        if not user.is_active:
            await reply(update, "Finish setting up first, then send your photos. Send /start to continue.")
            return

        program = await container.program_service.get_program(user.telegram_id)
        if program is None:
            await reply(update, NO_PROGRAM_REPLY)
            return

        await update.message.chat.send_action("typing")
        photo = update.message.photo[-1]  # Get highest resolution
        image: Optional[bytes] = None
        try:
            file = await photo.get_file()
            image = bytes(await file.download_as_bytearray())
        except telegram.error.TelegramError as e:
            logger.warning(f"Photo download failed for {user_id}, saving as progress pic: {e}")

        await reply_all(update, await process_photo(container, user, program, photo.file_id, image))

    except ChallengeBotError as e:
        await update.message.reply_text(e.user_message)
    except Exception as e:
        logger.error(f"Error in handle_photo: {e}", exc_info=True)
        await update.message.reply_text(ERROR_REPLY)


async def handle_location(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle location sharing to auto-detect timezone during setup"""
    user_id = str(update.effective_user.id)

    try:
        container = get_container(context)
        user = await get_or_create_user(container, update)
        state = user.onboarding_state
        if user.onboarding_complete or state is None or state.step != OnboardingStep.TIMEZONE:
            await reply(update, "I only use your location to set your timezone during setup.")
            return

        location = update.message.location
        logger.info(f"Received location from {user_id}: ({location.latitude}, {location.longitude})")
        detected_timezone = get_timezone_from_coordinates(location.latitude, location.longitude)
        if detected_timezone is None:
            await reply(update, "I couldn't work out a timezone from that location. Please type it instead.")
            return

        await reply(update, f"Detected timezone: **{detected_timezone}**")
        await reply(update, await container.onboarding_service.handle_reply(user, detected_timezone))

    except Exception as e:
        logger.error(f"Error in handle_location: {e}", exc_info=True)
        await update.message.reply_text(
            "Sorry, I had trouble processing your location. Please try again!"
        )
