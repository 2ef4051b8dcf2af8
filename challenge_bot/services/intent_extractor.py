"""
IntentExtractor - free text to structured Intent

Builds a prompt from the user's program, today's log and what we know about
them, asks the AI client for JSON, and validates the reply tolerantly.
Failures never propagate: they degrade to a conversation intent.
"""

import logging
from typing import Optional

from challenge_bot.exceptions import ChallengeBotError
from challenge_bot.models.day_log import DayLog
from challenge_bot.models.intent import Intent
from challenge_bot.models.program import ProgramConfiguration
from challenge_bot.models.user import User
from challenge_bot.services.ai_client import AIClient
from challenge_bot.services.completion import calorie_budget, evaluate
from challenge_bot.config import CHALLENGE_LENGTH_DAYS

logger = logging.getLogger(__name__)

AI_FAILURE_RESPONSE = "Sorry, I'm having trouble thinking right now. Try again in a moment?"

INTENT_SCHEMA = """{
  "outdoor_workout": {"description": str, "duration_mins": int, "calories_burned": int} or null,
  "indoor_workout": {"description": str, "duration_mins": int, "calories_burned": int} or null,
  "reading": {"pages": int, "book": str} or null,
  "water_oz": number or null,
  "water_removed_oz": number or null,
  "diet_confirmed": bool,
  "food_description": str or null,
  "meal_correction": "delete_last" | "update_last" | "clear" | null,
  "meal_delete_count": int,
  "progress_pic": bool,
  "wants_status": bool,
  "goal": str or null,
  "goal_type": "weight" | "fitness" | "habit" | "other" | null,
  "why": str or null,
  "struggle": str or null,
  "note": str or null,
  "response_text": "Your reply to the user"
}"""


def _check(done: bool) -> str:
    return "done" if done else "not done"


def build_system_prompt(user: User, program: ProgramConfiguration, day_log: Optional[DayLog]) -> str:
    """Describe the program, today's progress and the user's context for the extractor"""
    status = evaluate(day_log, program.water_target, program.diet_mode, program.base_calories)
    lines = [
        f"You are an accountability partner for a {CHALLENGE_LENGTH_DAYS}-day discipline challenge. "
        f"The user is on Day {user.current_day}.",
        "",
        "Their program:",
        f"- Diet: {program.diet_type or 'flexible'} ({program.diet_mode.value} mode)",
        f"- Water target: {program.water_target} oz",
    ]
    if program.protein_target:
        lines.append(f"- Protein target: {program.protein_target}g")
    if program.diet_mode.value == "deficit":
        lines.append(
            f"- Today's calorie budget: {calorie_budget(day_log, program.base_calories)} "
            "(base + calories burned in workouts)"
        )
    if program.outdoor_workout_type:
        lines.append(f"- Outdoor workout type: {program.outdoor_workout_type}")
    if program.indoor_workout_type:
        lines.append(f"- Indoor workout type: {program.indoor_workout_type}")
    if program.progress_pic_time:
        lines.append(f"- Progress pic time: {program.progress_pic_time}")
    if program.current_book:
        lines.append(f"- Current book: {program.current_book.title}")

    lines += ["", "Today's progress:"]
    if day_log is None:
        lines.append("- Nothing logged yet")
    else:
        lines += [
            f"- Outdoor workout: {_check(bool(day_log.outdoor_workout and day_log.outdoor_workout.done))}",
            f"- Indoor workout: {_check(bool(day_log.indoor_workout and day_log.indoor_workout.done))}",
            f"- Reading: {_check(bool(day_log.reading and day_log.reading.done))}",
            f"- Water: {day_log.water_oz:g} / {program.water_target} oz",
            f"- Progress pic: {_check(bool(day_log.progress_pic and day_log.progress_pic.done))}",
            f"- Meals logged: {len(day_log.meals)} ({day_log.calories_consumed} cal)",
        ]
    lines.append(f"- Still missing: {', '.join(status.missing) or 'nothing, day complete'}")

    context = program.context
    if context.goals or context.why or context.struggles or context.notes:
        lines += ["", "What you know about them:"]
        if context.why:
            lines.append(f"- Why they're doing this: {context.why}")
        for goal in context.goals[-3:]:
            lines.append(f"- Goal ({goal.type}): {goal.description}")
        if context.struggles:
            lines.append(f"- Struggles: {', '.join(context.struggles[-5:])}")
        for note in context.notes[-3:]:
            lines.append(f"- Note: {note.note}")

    lines += [
        "",
        "Determine what the user is logging. Respond with JSON only:",
        INTENT_SCHEMA,
        "",
        "Rules:",
        "- Only fill a field when the message clearly reports it. Leave everything else null/false.",
        "- Water amounts are in ounces (1 liter = 34 oz, 1 bottle = 16.9 oz unless stated).",
        "- food_description keeps the user's own wording of what they ate.",
        "- For corrections to the last meal use meal_correction; 'update_last' also needs food_description.",
        "- Be supportive but real. If they're struggling, acknowledge it without being preachy.",
    ]
    if program.diet_type:
        lines.append(f"- Their diet is {program.diet_type}: mention it if food doesn't fit.")
    return "\n".join(lines)


class IntentExtractor:
    """Turns a user's message into an Intent via the AI client"""

    def __init__(self, ai_client: AIClient):
        self.ai = ai_client

    async def extract(
        self,
        text: str,
        user: User,
        program: ProgramConfiguration,
        day_log: Optional[DayLog] = None,
    ) -> Intent:
        """
        Extract a structured intent from a free-form message

        Args:
            text: The user's message
            user: Sender
            program: Sender's program configuration
            day_log: Today's log, if one exists

        Returns:
            Intent (a conversation-only intent if extraction fails)
        """
        system = build_system_prompt(user, program, day_log)
        try:
            raw = await self.ai.complete_json(system, text)
        except ChallengeBotError as e:
            logger.warning(f"Intent extraction failed for {user.telegram_id}: {e.message}", exc_info=True)
            return Intent.conversation(AI_FAILURE_RESPONSE)

        intent = Intent.from_raw(raw)
        if intent.logs_anything:
            logger.info(
                f"Intent for {user.telegram_id}: "
                f"{intent.model_dump(exclude_defaults=True, exclude={'response_text'})}"
            )
        else:
            logger.debug(f"Conversation-only message from {user.telegram_id}")
        return intent
