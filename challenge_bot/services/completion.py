"""
Day completion evaluation

Pure functions: given a day log and the program's targets, decide whether the
day's requirements are met and list what is still missing. Nothing here reads
or writes storage; committing `completed` is the caller's job.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from challenge_bot.models.day_log import DayLog
from challenge_bot.models.program import (
    DEFAULT_BASE_CALORIES,
    DEFAULT_WATER_TARGET_OZ,
    DietMode,
    ProgramConfiguration,
)

logger = logging.getLogger(__name__)

# Missing-task labels, in checklist order
OUTDOOR_WORKOUT = "Outdoor workout"
INDOOR_WORKOUT = "Indoor workout"
READING = "Read 10 pages"
WATER = "Water"
PROGRESS_PIC = "Progress pic"
CONFIRM_DIET = "Confirm diet"
LOG_FOOD = "Log food"
NO_ACTIVITY = "No activity logged"


@dataclass(frozen=True)
class CompletionStatus:
    """Result of evaluating one day"""
    complete: bool
    missing: list[str] = field(default_factory=list)


def calorie_budget(day_log: Optional[DayLog], base_calories: Optional[int]) -> int:
    """Deficit-mode budget: base calories plus everything burned in today's workouts"""
    base = base_calories or DEFAULT_BASE_CALORIES
    burned = day_log.calories_burned if day_log else 0
    return base + burned


def _confirm_diet(day_log: DayLog, base_calories: Optional[int]) -> Optional[str]:
    return None if day_log.diet_confirmed else CONFIRM_DIET


def _track_diet(day_log: DayLog, base_calories: Optional[int]) -> Optional[str]:
    return None if day_log.meals else LOG_FOOD


def _deficit_diet(day_log: DayLog, base_calories: Optional[int]) -> Optional[str]:
    budget = calorie_budget(day_log, base_calories)
    over = day_log.calories_consumed - budget
    return f"{over} cal over budget" if over > 0 else None


DIET_CHECKS: dict[DietMode, Callable[[DayLog, Optional[int]], Optional[str]]] = {
    DietMode.CONFIRM: _confirm_diet,
    DietMode.TRACK: _track_diet,
    DietMode.DEFICIT: _deficit_diet,
}


def _resolve_mode(diet_mode: Union[DietMode, str, None]) -> DietMode:
    try:
        return DietMode(diet_mode)
    except ValueError:
        logger.warning(f"Unknown diet mode {diet_mode!r}, evaluating as '{DietMode.CONFIRM.value}'")
        return DietMode.CONFIRM


def evaluate(
    day_log: Optional[DayLog],
    water_target: Optional[int],
    diet_mode: Union[DietMode, str, None],
    base_calories: Optional[int] = None,
) -> CompletionStatus:
    """
    Evaluate a day log against the program's requirements

    Universal tasks: both workouts, reading and the progress pic by their
    `done` flag; water by amount >= target. The diet check depends on the mode.

    Defaults instead of errors: no log means nothing was done, a missing water
    target means 128 oz, missing base calories means 2000, and an unknown diet
    mode is judged as 'confirm'.

    Args:
        day_log: Current state of the day (None if no log exists)
        water_target: Daily water target in ounces
        diet_mode: Diet accounting mode
        base_calories: Deficit-mode base budget before workout burn

    Returns:
        CompletionStatus with the missing task labels in checklist order
    """
    if day_log is None:
        return CompletionStatus(complete=False, missing=[NO_ACTIVITY])

    target = water_target if water_target and water_target > 0 else DEFAULT_WATER_TARGET_OZ
    missing: list[str] = []

    if not (day_log.outdoor_workout and day_log.outdoor_workout.done):
        missing.append(OUTDOOR_WORKOUT)
    if not (day_log.indoor_workout and day_log.indoor_workout.done):
        missing.append(INDOOR_WORKOUT)
    if not (day_log.reading and day_log.reading.done):
        missing.append(READING)
    if day_log.water_oz < target:
        missing.append(WATER)
    if not (day_log.progress_pic and day_log.progress_pic.done):
        missing.append(PROGRESS_PIC)

    diet_problem = DIET_CHECKS[_resolve_mode(diet_mode)](day_log, base_calories)
    if diet_problem:
        missing.append(diet_problem)

    return CompletionStatus(complete=not missing, missing=missing)


def day_status(day_log: Optional[DayLog], program: ProgramConfiguration) -> CompletionStatus:
    """
    Status of a day as the schedulers see it

    A day whose completion was committed stays complete: later logging
    (say, a meal that breaks the deficit budget) does not reopen it.
    """
    if day_log is not None and day_log.completed:
        return CompletionStatus(complete=True)
    return evaluate(day_log, program.water_target, program.diet_mode, program.base_calories)
