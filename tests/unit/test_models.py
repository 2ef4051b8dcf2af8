"""Unit tests for Pydantic models"""
import pytest
from datetime import date
from pydantic import ValidationError

from challenge_bot.models.day_log import DayLog, Meal, WorkoutLog
from challenge_bot.models.food import FoodItem, NutritionEstimate
from challenge_bot.models.onboarding import OnboardingDraft, OnboardingState, OnboardingStep
from challenge_bot.models.program import (
    Book,
    CaloriePhase,
    DietMode,
    ProgramConfiguration,
    UserContext,
)
from challenge_bot.models.user import User


def make_log() -> DayLog:
    return DayLog(user_id="u1", day_number=3, date=date(2026, 3, 12))


# ============================================================================
# DayLog
# ============================================================================

class TestDayLogWater:

    def test_water_accumulates(self):
        day_log = make_log().with_water_added(30, 128).with_water_added(30, 128)
        assert day_log.water_oz == 60
        assert day_log.water.done is False

    def test_water_done_at_target(self):
        day_log = make_log().with_water_added(64, 128).with_water_added(64, 128)
        assert day_log.water.done is True

    def test_water_removal_never_goes_negative(self):
        day_log = make_log().with_water_added(20, 128).with_water_removed(50, 128)
        assert day_log.water_oz == 0

    def test_water_removal_below_target_clears_done(self):
        day_log = make_log().with_water_added(128, 128).with_water_removed(16, 128)
        assert day_log.water_oz == 112
        assert day_log.water.done is False


class TestDayLogMeals:

    def test_totals_recomputed_from_meal_list(self):
        day_log = (
            make_log()
            .with_meal_added(Meal(description="eggs", calories=300, protein=20))
            .with_meal_added(Meal(description="steak", calories=700, protein=60))
        )
        assert day_log.calories_consumed == 1000
        assert day_log.diet.protein == 80

    def test_delete_then_re_add_restores_totals(self):
        base = make_log().with_meal_added(Meal(description="eggs", calories=300))
        meal = Meal(description="burger", calories=800)
        restored = base.with_meal_added(meal).with_last_meals_removed().with_meal_added(meal)
        assert restored.calories_consumed == base.with_meal_added(meal).calories_consumed == 1100

    def test_remove_more_meals_than_logged_clears_all(self):
        day_log = make_log().with_meal_added(Meal(description="a", calories=100))
        cleared = day_log.with_last_meals_removed(5)
        assert cleared.meals == []
        assert cleared.calories_consumed == 0

    def test_remove_from_empty_list_is_a_no_op(self):
        day_log = make_log()
        assert day_log.with_last_meals_removed() is day_log

    def test_replace_last_meal(self):
        day_log = (
            make_log()
            .with_meal_added(Meal(description="eggs", calories=300))
            .with_meal_added(Meal(description="big salad", calories=900))
            .with_last_meal_replaced(Meal(description="small salad", calories=250))
        )
        assert [m.description for m in day_log.meals] == ["eggs", "small salad"]
        assert day_log.calories_consumed == 550

    def test_replace_with_no_meals_is_a_no_op(self):
        day_log = make_log()
        assert day_log.with_last_meal_replaced(Meal(description="x", calories=1)) is day_log

    def test_clear_meals(self):
        day_log = make_log().with_meal_added(Meal(description="a", calories=100)).with_meals_cleared()
        assert day_log.meals == []
        assert day_log.calories_consumed == 0


class TestDayLogSlots:

    def test_mutators_return_copies(self):
        day_log = make_log()
        updated = day_log.with_outdoor_workout(WorkoutLog(calories_burned=400))
        assert day_log.outdoor_workout is None
        assert updated.outdoor_workout.calories_burned == 400

    def test_workout_overwrites(self):
        day_log = (
            make_log()
            .with_indoor_workout(WorkoutLog(calories_burned=200))
            .with_indoor_workout(WorkoutLog(calories_burned=350))
        )
        assert day_log.calories_burned == 350

    def test_mutators_never_touch_completion(self):
        day_log = make_log().model_copy(update={"completed": True})
        assert day_log.with_meals_cleared().completed is True


# ============================================================================
# ProgramConfiguration
# ============================================================================

class TestProgramConfiguration:

    def test_defaults(self):
        program = ProgramConfiguration(user_id="u1")
        assert program.diet_mode == DietMode.CONFIRM
        assert program.water_target == 128
        assert program.alert_times == ["19:00", "20:00", "21:00", "22:00"]
        assert program.context == UserContext()

    def test_alert_times_sorted_and_deduplicated(self):
        program = ProgramConfiguration(user_id="u1", alert_times=["21:00", "19:30", "21:00"])
        assert program.alert_times == ["19:30", "21:00"]

    @pytest.mark.parametrize("bad", ["7pm", "25:00", "9:00"])
    def test_alert_times_must_be_hhmm(self, bad):
        with pytest.raises(ValidationError):
            ProgramConfiguration(user_id="u1", alert_times=[bad])

    def test_current_book_is_first_unfinished(self):
        program = ProgramConfiguration(user_id="u1", books=[
            Book(title="Done", finished_day=10),
            Book(title="Reading now"),
        ])
        assert program.current_book.title == "Reading now"

    def test_no_books(self):
        assert ProgramConfiguration(user_id="u1").current_book is None

    def test_calorie_phase_overrides_flat_target(self):
        program = ProgramConfiguration(
            user_id="u1",
            diet_mode=DietMode.TRACK,
            calorie_target=2400,
            calorie_phases=[CaloriePhase(start_day=1, end_day=30, calories=2200)],
        )
        assert program.calorie_target_for_day(30) == 2200
        assert program.calorie_target_for_day(31) == 2400

    def test_deficit_target_is_base_calories(self):
        program = ProgramConfiguration(user_id="u1", diet_mode=DietMode.DEFICIT, base_calories=1900)
        assert program.calorie_target_for_day(5) == 1900


# ============================================================================
# Food
# ============================================================================

class TestNutritionEstimate:

    def test_totals_filled_from_items(self):
        estimate = NutritionEstimate(items=[
            FoodItem(description="eggs", calories=200, protein=12, carbs=1, fat=14),
            FoodItem(description="toast", calories=150, protein=5, carbs=28, fat=2),
        ])
        assert estimate.total_calories == 350
        assert estimate.total_protein == 17

    def test_explicit_totals_kept(self):
        estimate = NutritionEstimate(
            items=[FoodItem(description="eggs", calories=200)],
            total_calories=210,
        )
        assert estimate.total_calories == 210

    def test_negative_calories_rejected(self):
        with pytest.raises(ValidationError):
            FoodItem(description="bad", calories=-5)

    def test_to_meal(self):
        estimate = NutritionEstimate(items=[FoodItem(description="eggs", calories=200, protein=12)])
        meal = estimate.to_meal("2 eggs")
        assert meal.description == "2 eggs"
        assert meal.calories == 200
        assert meal.protein == 12


# ============================================================================
# Onboarding & User
# ============================================================================

class TestOnboardingModels:

    def test_state_starts_at_first_step(self):
        state = OnboardingState()
        assert state.step == OnboardingStep.DIET_TYPE
        assert state.data == OnboardingDraft()

    def test_merged_keeps_earlier_answers(self):
        draft = OnboardingDraft(diet_type="keto").merged({"diet_mode": DietMode.TRACK})
        assert draft.diet_type == "keto"
        assert draft.diet_mode == DietMode.TRACK
        assert draft.tracks_body_stats is True

    def test_height_display(self):
        assert OnboardingDraft(height_inches=70).height_display == "5'10\""

    def test_to_program_carries_context_over(self):
        existing = ProgramConfiguration(user_id="u1", context=UserContext(why="for my kids"))
        draft = OnboardingDraft(diet_type="keto", diet_mode=DietMode.CONFIRM, water_target=100, timezone="UTC")
        program = draft.to_program("u1", existing)
        assert program.context.why == "for my kids"
        assert program.water_target == 100


class TestUser:

    def test_new_user_is_not_active(self):
        user = User(telegram_id="1")
        assert user.is_active is False
        assert user.current_day == 0

    def test_display_name_fallbacks(self):
        assert User(telegram_id="1", first_name="Sam").display_name == "Sam"
        assert User(telegram_id="1", username="sam99").display_name == "sam99"
        assert User(telegram_id="1").display_name == "1"
