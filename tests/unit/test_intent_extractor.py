"""Unit tests for intent parsing and the intent extractor"""
import pytest
from datetime import date, datetime, timezone

from challenge_bot.exceptions import AIServiceError
from challenge_bot.models.day_log import DayLog, WorkoutLog
from challenge_bot.models.intent import FALLBACK_RESPONSE, Intent, PhotoClassification
from challenge_bot.models.program import DietMode, UserContext, UserGoal
from challenge_bot.services.intent_extractor import (
    AI_FAILURE_RESPONSE,
    IntentExtractor,
    build_system_prompt,
)


class TestIntentFromRaw:
    """Tolerant validation of extractor output"""

    def test_full_payload(self):
        intent = Intent.from_raw({
            "outdoor_workout": {"description": "run", "duration_mins": 45, "calories_burned": 420},
            "water_oz": 32,
            "response_text": "Nice run!",
        })
        assert intent.outdoor_workout.calories_burned == 420
        assert intent.water_oz == 32
        assert intent.response_text == "Nice run!"
        assert intent.logs_anything is True

    def test_boolean_workout_means_logged_without_details(self):
        intent = Intent.from_raw({"indoor_workout": True, "outdoor_workout": False})
        assert intent.indoor_workout is not None
        assert intent.indoor_workout.duration_mins is None
        assert intent.outdoor_workout is None

    def test_malformed_field_is_dropped_not_fatal(self):
        intent = Intent.from_raw({
            "water_oz": "lots",
            "reading": {"pages": 10},
            "response_text": "ok",
        })
        assert intent.water_oz is None
        assert intent.reading.pages == 10
        assert intent.response_text == "ok"

    def test_negative_water_is_dropped(self):
        assert Intent.from_raw({"water_oz": -16}).water_oz is None

    def test_unknown_meal_correction_is_dropped(self):
        assert Intent.from_raw({"meal_correction": "undo_everything"}).meal_correction is None

    def test_null_fields_ignored(self):
        intent = Intent.from_raw({"food_description": None, "diet_confirmed": None})
        assert intent.food_description is None
        assert intent.diet_confirmed is False

    @pytest.mark.parametrize("raw", [None, "text", 42, ["list"]])
    def test_non_object_payload(self, raw):
        intent = Intent.from_raw(raw)
        assert intent.logs_anything is False
        assert intent.response_text == FALLBACK_RESPONSE

    def test_conversation_intent(self):
        intent = Intent.conversation("Hi there")
        assert intent.response_text == "Hi there"
        assert intent.logs_anything is False


class TestPhotoClassification:

    def test_default_is_progress_pic(self):
        assert PhotoClassification().is_workout is False

    def test_workout_screenshot(self):
        result = PhotoClassification(kind="workout_screenshot", calories_burned=500)
        assert result.is_workout is True


class TestBuildSystemPrompt:

    def test_includes_progress_and_missing(self, user, program):
        day_log = DayLog(
            user_id=user.telegram_id, day_number=1, date=date(2026, 3, 10),
            outdoor_workout=WorkoutLog(),
        ).with_water_added(40, 128)
        prompt = build_system_prompt(user, program, day_log)
        assert "Day 1" in prompt
        assert "Outdoor workout: done" in prompt
        assert "Water: 40 / 128 oz" in prompt
        assert "Still missing: Indoor workout" in prompt
        assert "Atomic Habits" in prompt

    def test_workout_plan_in_prompt(self, user, program):
        planned = program.model_copy(update={"outdoor_workout_type": "running", "progress_pic_time": "7am"})
        prompt = build_system_prompt(user, planned, None)
        assert "Outdoor workout type: running" in prompt
        assert "Progress pic time: 7am" in prompt
        assert "Indoor workout type" not in prompt

    def test_no_log_yet(self, user, program):
        prompt = build_system_prompt(user, program, None)
        assert "Nothing logged yet" in prompt

    def test_deficit_budget_shown(self, user, deficit_program):
        prompt = build_system_prompt(user, deficit_program, None)
        assert "calorie budget: 2000" in prompt

    def test_user_context_fed_back(self, user, program):
        context = UserContext(
            why="Prove I can finish something",
            goals=[UserGoal(type="weight", description="Lose 20 lbs", mentioned_at=datetime.now(timezone.utc))],
            struggles=["late night snacking"],
        )
        prompt = build_system_prompt(user, program.model_copy(update={"context": context}), None)
        assert "Prove I can finish something" in prompt
        assert "Lose 20 lbs" in prompt
        assert "late night snacking" in prompt


class TestIntentExtractor:

    @pytest.mark.asyncio
    async def test_extract_parses_ai_json(self, mock_ai_client, user, program):
        mock_ai_client.complete_json.return_value = {
            "water_oz": 16,
            "diet_confirmed": True,
            "response_text": "Logged!",
        }
        intent = await IntentExtractor(mock_ai_client).extract("16oz water, ate clean", user, program)

        assert intent.water_oz == 16
        assert intent.diet_confirmed is True
        system, text = mock_ai_client.complete_json.call_args.args
        assert text == "16oz water, ate clean"
        assert "accountability partner" in system

    @pytest.mark.asyncio
    async def test_ai_failure_becomes_conversation(self, mock_ai_client, user, program):
        mock_ai_client.complete_json.side_effect = AIServiceError("boom", provider="Anthropic")
        intent = await IntentExtractor(mock_ai_client).extract("did my run", user, program)

        assert intent.logs_anything is False
        assert intent.response_text == AI_FAILURE_RESPONSE

    @pytest.mark.asyncio
    async def test_diet_mode_in_prompt(self, mock_ai_client, user, track_program):
        await IntentExtractor(mock_ai_client).extract("hi", user, track_program)
        system = mock_ai_client.complete_json.call_args.args[0]
        assert f"({DietMode.TRACK.value} mode)" in system
        assert "Protein target: 180g" in system
