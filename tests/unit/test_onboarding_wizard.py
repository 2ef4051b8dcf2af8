"""Unit tests for onboarding parsers and the wizard state machine"""
import pytest

from challenge_bot.models.onboarding import OnboardingDraft, OnboardingState, OnboardingStep
from challenge_bot.models.program import DEFAULT_ALERT_TIMES, DietMode
from challenge_bot.onboarding import parsers, wizard
from challenge_bot.onboarding.parsers import StepInputError
from challenge_bot.onboarding.wizard import Advanced, Committed, Rejected


class TestParsers:

    @pytest.mark.parametrize("text,expected", [
        ("5'10", 70),
        ("5 ft 10 in", 70),
        ("6'", 72),
        ("70 in", 70),
        ("178 cm", 70),
    ])
    def test_height(self, text, expected):
        assert parsers.parse_height(text) == expected

    @pytest.mark.parametrize("text", ["tall", "1 cm", "12'"])
    def test_bad_height(self, text):
        with pytest.raises(StepInputError):
            parsers.parse_height(text)

    @pytest.mark.parametrize("text,expected", [("185 lbs", 185), ("185", 185), ("84 kg", 185)])
    def test_weight(self, text, expected):
        assert parsers.parse_weight(text) == expected

    def test_diet_mode_by_number_or_word(self):
        assert parsers.parse_diet_mode("3") == DietMode.DEFICIT
        assert parsers.parse_diet_mode("Track please") == DietMode.TRACK
        with pytest.raises(StepInputError):
            parsers.parse_diet_mode("whatever")

    def test_diet_type_normalized(self):
        assert parsers.parse_diet_type("High Protein") == "high_protein"
        assert parsers.parse_diet_type("no sugar") == "no sugar"

    def test_bmr(self):
        # 185 lbs, 5'10, 30 year old male
        assert parsers.compute_bmr("male", 70, 185, 30) == 1805

    def test_base_calories_accepts_yes(self):
        assert parsers.parse_base_calories("yes", 1824) == 1824
        assert parsers.parse_base_calories("2200", 1824) == 2200
        with pytest.raises(StepInputError):
            parsers.parse_base_calories("500", 1824)

    def test_auto_targets(self):
        assert parsers.parse_calorie_target("auto", 2000) == 2400
        assert parsers.parse_protein_target("auto", 185) == 185
        assert parsers.parse_water_target("gallon") == 128

    def test_book_with_pages(self):
        book = parsers.parse_book("Atomic Habits, 320 pages")
        assert book.title == "Atomic Habits"
        assert book.total_pages == 320
        assert parsers.parse_book("Dune").total_pages is None

    def test_timezone(self):
        assert parsers.parse_timezone("PST") == "America/Los_Angeles"
        assert parsers.parse_timezone("Europe/Berlin") == "Europe/Berlin"
        with pytest.raises(StepInputError):
            parsers.parse_timezone("Narnia")

    def test_plan_note(self):
        assert parsers.parse_plan_note("  Trail running ", "err") == "Trail running"
        assert parsers.parse_plan_note("skip", "err") is None
        with pytest.raises(StepInputError, match="err"):
            parsers.parse_plan_note("   ", "err")

    def test_alert_times(self):
        assert parsers.parse_alert_times("9:30pm, 6pm, 18:00") == ["18:00", "21:30"]
        assert parsers.parse_alert_times("default") == DEFAULT_ALERT_TIMES
        with pytest.raises(StepInputError):
            parsers.parse_alert_times("13pm")
        with pytest.raises(StepInputError):
            parsers.parse_alert_times("whenever")

    def test_confirmation_is_case_insensitive(self):
        assert parsers.is_confirmation(" start ")
        assert not parsers.is_confirmation("let's go")


def run(replies: list[str], state: OnboardingState = None):
    """Feed replies in order, returning the last result and state"""
    state = state or wizard.start()
    result = None
    for reply in replies:
        result = wizard.advance(state, reply)
        assert not isinstance(result, Rejected), f"{reply!r} rejected: {result.message}"
        if isinstance(result, Advanced):
            state = result.state
    return result, state


class TestWizard:

    def test_every_step_has_a_spec(self):
        assert set(wizard.STEPS) == set(OnboardingStep)

    def test_starts_at_diet_type(self):
        state = wizard.start()
        assert state.step == OnboardingStep.DIET_TYPE
        assert "diet approach" in wizard.prompt_for(state)

    def test_confirm_mode_skips_body_stats(self):
        result, state = run(["keto", "1"])
        assert state.step == OnboardingStep.WATER_TARGET
        assert "water" in result.message

    def test_deficit_mode_asks_stats_and_base(self):
        _, state = run(["flexible", "deficit", "male", "5'10", "185 lbs", "30"])
        assert state.step == OnboardingStep.BASE_CALORIES
        assert state.data.bmr == 1805
        assert "1805 calories" in wizard.prompt_for(state)

    def test_track_mode_asks_calorie_target_not_base(self):
        _, state = run(["flexible", "2", "female", "165 cm", "60 kg", "28"])
        assert state.step == OnboardingStep.CALORIE_TARGET

    def test_invalid_reply_leaves_state_unchanged(self):
        _, state = run(["flexible", "deficit", "male"])
        result = wizard.advance(state, "tall-ish")

        assert isinstance(result, Rejected)
        assert "5'10" in result.message
        assert state.step == OnboardingStep.HEIGHT
        assert state.data.height_inches is None

    def test_confirm_requires_start(self):
        _, state = run(["keto", "1", "128", "Dune", "skip", "yoga", "after workout 1", "UTC", "default"])
        assert state.step == OnboardingStep.CONFIRM

        rejected = wizard.advance(state, "sounds good")
        assert isinstance(rejected, Rejected)
        assert "START" in rejected.message

        committed = wizard.advance(state, "START")
        assert isinstance(committed, Committed)
        assert committed.data.books[0].title == "Dune"
        assert committed.data.outdoor_workout_type is None
        assert committed.data.indoor_workout_type == "yoga"
        assert committed.data.progress_pic_time == "after workout 1"
        assert "Day 1 starts now" in committed.message

    def test_summary_lists_deficit_budget(self):
        draft = OnboardingDraft(
            diet_type="flexible", diet_mode=DietMode.DEFICIT, height_inches=70,
            weight_lbs=185, bmr=1824, base_calories=1900, protein_target=185,
            water_target=128, timezone="UTC", alert_times=["19:00"],
        )
        text = wizard.summary(draft)
        assert "Base (1900) + workout burn" in text
        assert "5'10\"" in text
        assert "Protein: 185g" in text

    def test_next_step_always_ends_at_confirm(self):
        draft = OnboardingDraft(diet_mode=DietMode.CONFIRM)
        assert wizard.next_step(OnboardingStep.ALERT_TIMES, draft) == OnboardingStep.CONFIRM

    def test_workout_plan_asked_after_book(self):
        result, state = run(["keto", "1", "128", "Dune"])
        assert state.step == OnboardingStep.OUTDOOR_WORKOUT
        assert "outdoor workout" in result.message

        result, state = run(["keto", "1", "128", "Dune", "running", "gym"])
        assert state.step == OnboardingStep.PROGRESS_PIC_TIME
        assert "progress pic" in result.message

    def test_summary_lists_workout_plan(self):
        draft = OnboardingDraft(
            diet_type="keto", diet_mode=DietMode.CONFIRM, water_target=128,
            outdoor_workout_type="running", progress_pic_time="7am",
            timezone="UTC", alert_times=["19:00"],
        )
        text = wizard.summary(draft)
        assert "• Outdoor: running" in text
        assert "• Indoor: varies" in text
        assert "📸 Progress pic: 7am" in text
