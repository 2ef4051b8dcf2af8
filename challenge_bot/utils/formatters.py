"""Message text for status, day transitions and reminders"""
from datetime import date
from typing import Optional

from challenge_bot.config import CHALLENGE_LENGTH_DAYS
from challenge_bot.models.day_log import DayLog
from challenge_bot.models.program import DEFAULT_BASE_CALORIES, DietMode, ProgramConfiguration
from challenge_bot.services.completion import CompletionStatus, calorie_budget

MILESTONES = {
    25: "🏅 1/3 of the way there!",
    38: "🏅 Halfway point!",
    50: "🏅 2/3 complete. The final stretch begins.",
    60: "🏅 15 days left. You can see the finish line.",
    70: "🏅 5 days left. Don't let up now.",
}

DONE = "✅"
TODO = "⬜"


def _mark(done: bool) -> str:
    return DONE if done else TODO


def milestone_for(day_number: int) -> Optional[str]:
    return MILESTONES.get(day_number)


def _diet_line(program: ProgramConfiguration, day_log: DayLog, day_number: int) -> str:
    if program.diet_mode == DietMode.CONFIRM:
        return f"{_mark(day_log.diet_confirmed)} Diet confirmed"
    if program.diet_mode == DietMode.TRACK:
        target = program.calorie_target_for_day(day_number)
        total = f"{day_log.calories_consumed}/{target}" if target else str(day_log.calories_consumed)
        return f"{_mark(bool(day_log.meals))} Food logged ({len(day_log.meals)} meals, {total} cal)"
    budget = calorie_budget(day_log, program.base_calories)
    over = day_log.calories_consumed > budget
    return f"{'❌' if over else DONE} Diet ({day_log.calories_consumed}/{budget} cal)"


def format_status(
    day_number: int,
    program: ProgramConfiguration,
    day_log: DayLog,
    status: CompletionStatus,
) -> str:
    """Checklist for /status and the status intent"""
    outdoor = day_log.outdoor_workout
    indoor = day_log.indoor_workout

    def workout_line(label: str, workout) -> str:
        done = bool(workout and workout.done)
        burned = f" ({workout.calories_burned} cal)" if done and workout.calories_burned else ""
        return f"{_mark(done)} {label}{burned}"

    lines = [
        f"**Day {day_number} of {CHALLENGE_LENGTH_DAYS}**",
        "",
        workout_line("Outdoor workout", outdoor),
        workout_line("Indoor workout", indoor),
        f"{_mark(bool(day_log.reading and day_log.reading.done))} Read 10 pages",
        f"{_mark(day_log.water_oz >= program.water_target)} Water ({day_log.water_oz:g}/{program.water_target} oz)",
        f"{_mark(bool(day_log.progress_pic and day_log.progress_pic.done))} Progress pic",
        _diet_line(program, day_log, day_number),
    ]

    if program.diet_mode == DietMode.DEFICIT:
        base = program.base_calories or DEFAULT_BASE_CALORIES
        lines.append(f"\n📊 **Calorie budget:** {base} base + {day_log.calories_burned} burned")

    if status.complete:
        lines.append("\n🎉 **Day complete!** Great work.")
    elif status.missing:
        lines.append(f"\n**Still need:** {', '.join(status.missing)}")
    return "\n".join(lines)


def format_day_complete(day_number: int) -> str:
    if day_number >= CHALLENGE_LENGTH_DAYS:
        return (
            f"🏆 **YOU DID IT!** {CHALLENGE_LENGTH_DAYS} days complete!\n\n"
            "Incredible discipline. You've proven to yourself what you're capable of."
        )
    return f"✅ **Day {day_number} complete!**\n\nSee you tomorrow for Day {day_number + 1}."


def format_new_day(
    next_day: int,
    program: ProgramConfiguration,
    previous_target: Optional[int] = None,
) -> str:
    """Morning message after a completed day; notes milestones and calorie target changes"""
    completed_day = next_day - 1
    target = program.calorie_target_for_day(next_day)

    lines = [
        f"☀️ Day {next_day} of {CHALLENGE_LENGTH_DAYS}",
        "",
        "Yesterday: Complete ✅",
        f"Streak: {completed_day} days",
        f"Remaining: {CHALLENGE_LENGTH_DAYS - next_day} days",
    ]
    milestone = milestone_for(next_day)
    if milestone:
        lines += ["", milestone]
    if target is not None and previous_target is not None and target != previous_target:
        lines += ["", f"📊 Note: Calorie target changed to {target} cal."]

    diet = {
        DietMode.CONFIRM: "Follow your diet",
        DietMode.TRACK: "Log your food",
        DietMode.DEFICIT: f"Diet (base {program.base_calories or DEFAULT_BASE_CALORIES} + workout burn)",
    }[program.diet_mode]
    lines += [
        "",
        "Today's checklist:",
        "- [ ] Outdoor workout",
        "- [ ] Indoor workout",
        f"- [ ] {diet}",
        f"- [ ] Water ({program.water_target} oz)",
        "- [ ] Read 10 pages",
        "- [ ] Progress pic",
    ]
    return "\n".join(lines)


def format_challenge_finished() -> str:
    return (
        f"🏆 {CHALLENGE_LENGTH_DAYS} days. Done.\n\n"
        "You showed up every single day. Whatever comes next, you know what you're capable of."
    )


def format_reset(previous_day: int, missing: list[str]) -> str:
    """Reset notice; harsher when real progress was lost"""
    missing_text = ", ".join(missing) or "unknown"
    if previous_day <= 1:
        return (
            f"Day 1 incomplete. Missing: {missing_text}.\n\n"
            "You're still on Day 1. Today is a fresh start. Let's go."
        )
    return (
        f"Day {previous_day} incomplete. Missing: {missing_text}.\n\n"
        f"Resetting to Day 1. {previous_day - 1} completed days are gone. "
        "That's the rule. No exceptions, no modifications.\n\n"
        "This is what builds mental toughness. You've got this. Day 1 starts now."
    )


def format_alert(day_number: int, missing: list[str], position: int, total: int) -> str:
    """Template reminder; later alerts in the evening are more urgent"""
    tasks = ", ".join(missing)
    if position == total - 1 and total > 1:
        return f"🚨 Last reminder for Day {day_number}: {tasks} still open. Finish it before you sleep."
    if position == 0:
        return f"⏰ Day {day_number} check-in: still need {tasks}. Plenty of time, get after it."
    return f"⏰ Day {day_number} reminder: still need {tasks}. Don't let the day slip."


def format_deadline_warning(day_number: int, missing: list[str], rollover_hour: int) -> str:
    return (
        f"⚠️ Day {day_number} is incomplete. Missing: {', '.join(missing)}.\n\n"
        f"At {rollover_hour}:00, if this isn't resolved, you'll reset to Day 1. That's the rule."
    )


def format_progress(
    day_number: int,
    attempt: int,
    start_date: Optional[date],
    day_logs: list[DayLog],
    photo_count: int,
) -> str:
    """/progress: where the current attempt stands and how earlier attempts ended"""
    current = [log for log in day_logs if log.attempt == attempt]
    completed = sum(1 for log in current if log.completed)
    lines = [
        f"**Day {day_number} of {CHALLENGE_LENGTH_DAYS}** (attempt {attempt})",
        f"Started: {start_date.isoformat() if start_date else 'not yet'}",
        f"Days completed this attempt: {completed}",
        f"Remaining: {CHALLENGE_LENGTH_DAYS - day_number} days",
        f"Progress pics saved: {photo_count}",
    ]

    previous: dict[int, int] = {}
    for log in day_logs:
        if log.attempt < attempt:
            previous[log.attempt] = max(previous.get(log.attempt, 0), log.day_number)
    if previous:
        lines.append("")
        lines.append("Earlier attempts:")
        for number in sorted(previous):
            lines.append(f"- Attempt {number}: reached Day {previous[number]}")
    return "\n".join(lines)
