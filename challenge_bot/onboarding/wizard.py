"""
Onboarding wizard

A pure state machine over OnboardingStep. `advance(state, reply)` never
touches storage: it returns Advanced (persist the new state, then send the
prompt), Rejected (send the corrective message, state unchanged) or
Committed (write the program and start Day 1).

Steps are asked in declaration order; a step whose `applies` predicate is
false for the current draft is skipped.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from challenge_bot.config import CHALLENGE_LENGTH_DAYS
from challenge_bot.models.onboarding import STEP_ORDER, OnboardingDraft, OnboardingState, OnboardingStep
from challenge_bot.models.program import DEFAULT_BASE_CALORIES, DietMode
from challenge_bot.onboarding import parsers
from challenge_bot.onboarding.parsers import StepInputError

logger = logging.getLogger(__name__)

WORKOUT_TYPE_ERROR = 'Tell me the kind of workout, e.g. "running", or say "skip".'
PIC_TIME_ERROR = 'Tell me when you\'ll take it, e.g. "7am", or say "skip".'


@dataclass(frozen=True)
class Advanced:
    state: OnboardingState
    message: str


@dataclass(frozen=True)
class Rejected:
    message: str


@dataclass(frozen=True)
class Committed:
    data: OnboardingDraft
    message: str


WizardResult = Union[Advanced, Rejected, Committed]


@dataclass(frozen=True)
class StepSpec:
    prompt: Callable[[OnboardingDraft], str]
    parse: Callable[[str, OnboardingDraft], dict[str, Any]]
    applies: Callable[[OnboardingDraft], bool] = lambda draft: True


# Prompts

def _prompt_diet_type(draft: OnboardingDraft) -> str:
    return (
        f"Hey! Ready to take on {CHALLENGE_LENGTH_DAYS} days straight? Let's set up your program.\n\n"
        "What's your diet approach?\n\n"
        "• **Flexible** - just hit your macros\n"
        "• **High protein** - prioritize protein\n"
        "• **Keto** - low carb, high fat\n"
        "• **Paleo** - whole foods only\n"
        "• Or type your own (e.g. \"no alcohol, no sugar\")"
    )


def _prompt_diet_mode(draft: OnboardingDraft) -> str:
    return (
        "How should I hold you to your diet?\n\n"
        "1. **Confirm** - you tell me each day that you followed it\n"
        "2. **Track** - you log your meals, I keep the totals\n"
        "3. **Deficit** - stay within your base calories plus what your workouts burn"
    )


def _prompt_gender(draft: OnboardingDraft) -> str:
    return "Are you male or female? (for an accurate BMR calculation)"


def _prompt_height(draft: OnboardingDraft) -> str:
    return "What's your height? (e.g., \"5'10\" or \"178 cm\")"


def _prompt_weight(draft: OnboardingDraft) -> str:
    return "Got it. What's your current weight? (e.g., \"185 lbs\" or \"84 kg\")"


def _prompt_age(draft: OnboardingDraft) -> str:
    return "Perfect. How old are you?"


def _prompt_base_calories(draft: OnboardingDraft) -> str:
    bmr = draft.bmr or DEFAULT_BASE_CALORIES
    return (
        f"Based on your stats, your BMR (base metabolic rate) is **{bmr} calories**.\n\n"
        "This is your base - the calories you burn just existing. Your workout calories get added on top.\n\n"
        f"Example: {bmr} base + 800 burned from workouts = {bmr + 800} cal budget for the day.\n\n"
        "Use this as your base? Say \"yes\", or send a different number."
    )


def _prompt_calorie_target(draft: OnboardingDraft) -> str:
    bmr = draft.bmr or DEFAULT_BASE_CALORIES
    return (
        f"Your BMR is about **{bmr} calories**. What daily calorie target do you want to see in your summaries?\n\n"
        f"Send a number, or \"auto\" for {round(bmr * 1.2)} (BMR x 1.2). It's a guide, not a pass/fail."
    )


def _prompt_protein_target(draft: OnboardingDraft) -> str:
    weight = draft.weight_lbs or 180
    return (
        "What's your daily protein target in grams?\n\n"
        "Recommendation: 0.8-1g per pound of body weight.\n"
        f"For {weight} lbs, that's {round(weight * 0.9)}g.\n\n"
        "Send a number, or \"auto\" to use 1g per lb."
    )


def _prompt_water_target(draft: OnboardingDraft) -> str:
    return (
        "What's your daily water target in ounces?\n\n"
        "The classic rule is a gallon (128 oz), but you can set your own goal.\n\n"
        "Send a number like \"128\" or \"100\", or \"gallon\"."
    )


def _prompt_first_book(draft: OnboardingDraft) -> str:
    return (
        "What book are you starting with? Send the title, and optionally the total pages.\n\n"
        "Example: \"Atomic Habits, 320 pages\" or just \"Atomic Habits\""
    )


def _prompt_outdoor_workout(draft: OnboardingDraft) -> str:
    return (
        "What type of outdoor workout will you typically do?\n\n"
        "Examples: Running, Walking, Cycling, Hiking. Say \"skip\" if it varies."
    )


def _prompt_indoor_workout(draft: OnboardingDraft) -> str:
    return (
        "And for your indoor workout?\n\n"
        "Examples: Gym/weights, Home workout, Yoga, Swimming. Say \"skip\" if it varies."
    )


def _prompt_progress_pic_time(draft: OnboardingDraft) -> str:
    return (
        "When will you take your daily progress pic?\n\n"
        "Examples: \"7am\", \"after workout 1\", \"8:30pm\", or \"skip\"."
    )


def _prompt_timezone(draft: OnboardingDraft) -> str:
    return (
        "What timezone are you in? Your day rolls over at 5am local time.\n\n"
        "Send a name like \"America/Chicago\" or \"PST\", share your location, or say \"default\"."
    )


def _prompt_alert_times(draft: OnboardingDraft) -> str:
    return (
        "Last thing: when should I send you reminder alerts if your day isn't complete?\n\n"
        "Default is 7pm, 8pm, 9pm, 10pm. You can customize (e.g. \"6pm, 9:30pm\") or just say \"default\"."
    )


def summary(draft: OnboardingDraft) -> str:
    """Program recap shown at the confirmation step"""
    mode = draft.diet_mode or DietMode.CONFIRM
    lines = [f"Here's your {CHALLENGE_LENGTH_DAYS}-day program:", ""]

    if draft.tracks_body_stats:
        lines += [
            "📊 **Stats**",
            f"• Height: {draft.height_display}",
            f"• Weight: {draft.weight_lbs} lbs",
            f"• BMR: {draft.bmr} cal",
            "",
        ]

    lines += ["🍽️ **Nutrition**", f"• Diet: {draft.diet_type} ({mode.value} mode)"]
    if mode == DietMode.DEFICIT:
        lines.append(f"• Daily budget: Base ({draft.base_calories}) + workout burn")
    if mode == DietMode.TRACK:
        lines.append(f"• Calorie target: {draft.calorie_target} cal")
    if draft.protein_target:
        lines.append(f"• Protein: {draft.protein_target}g")
    lines.append(f"• Water: {draft.water_target} oz")
    lines.append("")

    book = draft.books[0].title if draft.books else "Not set"
    lines += [
        f"📖 **Reading**: {book}",
        "",
        "🏋️ **Workouts**",
        f"• Outdoor: {draft.outdoor_workout_type or 'varies'}",
        f"• Indoor: {draft.indoor_workout_type or 'varies'}",
        "",
        f"📸 Progress pic: {draft.progress_pic_time or 'any time'}",
        f"🌍 Timezone: {draft.timezone}",
        f"⏰ Alerts: {', '.join(draft.alert_times or [])}",
        "",
        "Ready to start? Send \"START\" to begin Day 1!",
    ]
    return "\n".join(lines)


def _prompt_confirm(draft: OnboardingDraft) -> str:
    return summary(draft)


def day_one_message(draft: OnboardingDraft) -> str:
    mode = draft.diet_mode or DietMode.CONFIRM
    diet_line = {
        DietMode.CONFIRM: "Follow your diet (tell me when you did)",
        DietMode.TRACK: "Log your meals",
        DietMode.DEFICIT: f"Stay within budget (base {draft.base_calories or DEFAULT_BASE_CALORIES} + workout burn)",
    }[mode]
    return (
        "You're all set! Day 1 starts now. Let's go!\n\n"
        "**Today's Tasks:**\n"
        "- [ ] Outdoor workout (45 min)\n"
        "- [ ] Indoor workout (45 min)\n"
        f"- [ ] {diet_line}\n"
        f"- [ ] Water ({draft.water_target} oz)\n"
        "- [ ] Read 10 pages\n"
        "- [ ] Progress pic\n\n"
        "Upload your tracker screenshots after workouts - I'll read the calories burned."
    )


# Parsers (reply + draft -> fields to merge)

def _parse_age(reply: str, draft: OnboardingDraft) -> dict[str, Any]:
    age = parsers.parse_age(reply)
    bmr = parsers.compute_bmr(draft.gender, draft.height_inches, draft.weight_lbs, age)
    # BMR is computed once here and offered as the editable base
    return {"age": age, "bmr": bmr, "base_calories": bmr}


def _tracks_body_stats(draft: OnboardingDraft) -> bool:
    return draft.tracks_body_stats


STEPS: dict[OnboardingStep, StepSpec] = {
    OnboardingStep.DIET_TYPE: StepSpec(
        _prompt_diet_type,
        lambda reply, draft: {"diet_type": parsers.parse_diet_type(reply)},
    ),
    OnboardingStep.DIET_MODE: StepSpec(
        _prompt_diet_mode,
        lambda reply, draft: {"diet_mode": parsers.parse_diet_mode(reply)},
    ),
    OnboardingStep.GENDER: StepSpec(
        _prompt_gender,
        lambda reply, draft: {"gender": parsers.parse_gender(reply)},
        _tracks_body_stats,
    ),
    OnboardingStep.HEIGHT: StepSpec(
        _prompt_height,
        lambda reply, draft: {"height_inches": parsers.parse_height(reply)},
        _tracks_body_stats,
    ),
    OnboardingStep.WEIGHT: StepSpec(
        _prompt_weight,
        lambda reply, draft: {"weight_lbs": parsers.parse_weight(reply)},
        _tracks_body_stats,
    ),
    OnboardingStep.AGE: StepSpec(_prompt_age, _parse_age, _tracks_body_stats),
    OnboardingStep.BASE_CALORIES: StepSpec(
        _prompt_base_calories,
        lambda reply, draft: {"base_calories": parsers.parse_base_calories(reply, draft.bmr)},
        lambda draft: draft.diet_mode == DietMode.DEFICIT,
    ),
    OnboardingStep.CALORIE_TARGET: StepSpec(
        _prompt_calorie_target,
        lambda reply, draft: {"calorie_target": parsers.parse_calorie_target(reply, draft.bmr)},
        lambda draft: draft.diet_mode == DietMode.TRACK,
    ),
    OnboardingStep.PROTEIN_TARGET: StepSpec(
        _prompt_protein_target,
        lambda reply, draft: {"protein_target": parsers.parse_protein_target(reply, draft.weight_lbs)},
        _tracks_body_stats,
    ),
    OnboardingStep.WATER_TARGET: StepSpec(
        _prompt_water_target,
        lambda reply, draft: {"water_target": parsers.parse_water_target(reply)},
    ),
    OnboardingStep.FIRST_BOOK: StepSpec(
        _prompt_first_book,
        lambda reply, draft: {"books": [parsers.parse_book(reply)]},
    ),
    OnboardingStep.OUTDOOR_WORKOUT: StepSpec(
        _prompt_outdoor_workout,
        lambda reply, draft: {"outdoor_workout_type": parsers.parse_plan_note(reply, WORKOUT_TYPE_ERROR)},
    ),
    OnboardingStep.INDOOR_WORKOUT: StepSpec(
        _prompt_indoor_workout,
        lambda reply, draft: {"indoor_workout_type": parsers.parse_plan_note(reply, WORKOUT_TYPE_ERROR)},
    ),
    OnboardingStep.PROGRESS_PIC_TIME: StepSpec(
        _prompt_progress_pic_time,
        lambda reply, draft: {"progress_pic_time": parsers.parse_plan_note(reply, PIC_TIME_ERROR)},
    ),
    OnboardingStep.TIMEZONE: StepSpec(
        _prompt_timezone,
        lambda reply, draft: {"timezone": parsers.parse_timezone(reply)},
    ),
    OnboardingStep.ALERT_TIMES: StepSpec(
        _prompt_alert_times,
        lambda reply, draft: {"alert_times": parsers.parse_alert_times(reply)},
    ),
    # Confirmation is handled in advance(); it contributes no fields
    OnboardingStep.CONFIRM: StepSpec(_prompt_confirm, lambda reply, draft: {}),
}


def start() -> OnboardingState:
    """Fresh state at the first step"""
    return OnboardingState()


def prompt_for(state: OnboardingState) -> str:
    """Prompt for the state's current step (used to resume after a restart)"""
    return STEPS[state.step].prompt(state.data)


def next_step(step: OnboardingStep, draft: OnboardingDraft) -> OnboardingStep:
    """First step after `step` that applies to the draft (CONFIRM always does)"""
    for candidate in STEP_ORDER[STEP_ORDER.index(step) + 1:]:
        if STEPS[candidate].applies(draft):
            return candidate
    return OnboardingStep.CONFIRM


def advance(state: OnboardingState, reply: str) -> WizardResult:
    """
    Feed one reply into the wizard

    Args:
        state: Current step and collected answers
        reply: The user's message

    Returns:
        Advanced with the new state and next prompt, Rejected with a
        corrective message (state unchanged), or Committed with the final draft
    """
    if state.step == OnboardingStep.CONFIRM:
        if parsers.is_confirmation(reply):
            return Committed(data=state.data, message=day_one_message(state.data))
        return Rejected(message=summary(state.data))

    spec = STEPS[state.step]
    try:
        updates = spec.parse(reply, state.data)
    except StepInputError as e:
        logger.debug(f"Rejected reply at {state.step.value}: {reply!r}")
        return Rejected(message=e.message)

    data = state.data.merged(updates)
    step = next_step(state.step, data)
    return Advanced(state=OnboardingState(step=step, data=data), message=STEPS[step].prompt(data))
