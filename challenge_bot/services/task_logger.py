"""
TaskLogger - day log mutations

Every operation reads the latest log for the user's current day (creating it
if needed), applies one mutation, saves, and re-evaluates completion. A day
that becomes complete is committed once through the store's compare-and-set;
logging after completion is accepted but never reopens the day.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from challenge_bot.db.store import RecordStore
from challenge_bot.exceptions import ValidationError
from challenge_bot.models.day_log import (
    DayLog,
    Meal,
    ProgressPhoto,
    ProgressPicLog,
    ReadingLog,
    WorkoutLog,
)
from challenge_bot.models.intent import PhotoClassification, WorkoutPayload
from challenge_bot.models.program import ProgramConfiguration
from challenge_bot.models.user import User
from challenge_bot.services.completion import CompletionStatus, evaluate
from challenge_bot.utils.datetime_helpers import local_today, now_utc

logger = logging.getLogger(__name__)

OUTDOOR = "outdoor"
INDOOR = "indoor"


@dataclass(frozen=True)
class LogResult:
    """Outcome of one logging call"""
    day_log: DayLog
    status: CompletionStatus
    newly_completed: bool = False


def _workout(payload: Optional[WorkoutPayload], photo_id: Optional[str] = None) -> WorkoutLog:
    payload = payload or WorkoutPayload()
    return WorkoutLog(
        done=True,
        description=payload.description,
        duration_mins=payload.duration_mins,
        calories_burned=payload.calories_burned,
        photo_id=photo_id,
    )


class TaskLogger:
    """Logging operations for the six daily task categories"""

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.clock = clock

    async def current_log(self, user: User) -> DayLog:
        """Latest log for the user's current day, created (dated local today) if missing"""
        if user.current_day < 1:
            raise ValidationError(
                "User has no active challenge day",
                field="current_day",
                value=user.current_day,
                user_id=user.telegram_id,
                operation="current_log",
            )
        day_log = await self.store.get_day_log(user.telegram_id, user.attempt, user.current_day)
        if day_log is None:
            logger.info(f"No log for {user.telegram_id} day {user.current_day}, creating it")
            day_log = await self.store.create_day_log(
                user.telegram_id,
                user.attempt,
                user.current_day,
                local_today(user.timezone, self.clock()),
            )
        return day_log

    async def check_completion(self, user: User, program: ProgramConfiguration, day_log: DayLog) -> LogResult:
        """Evaluate the log and commit completion once if it just became complete"""
        status = evaluate(day_log, program.water_target, program.diet_mode, program.base_calories)
        newly_completed = False
        if status.complete and not day_log.completed:
            completed_at = self.clock()
            newly_completed = await self.store.mark_day_complete(
                day_log.user_id, day_log.attempt, day_log.day_number, completed_at
            )
            if newly_completed:
                logger.info(f"Day {day_log.day_number} complete for {day_log.user_id} (attempt {day_log.attempt})")
                day_log = day_log.model_copy(update={"completed": True, "completed_at": completed_at})
        return LogResult(day_log=day_log, status=status, newly_completed=newly_completed)

    async def _apply(
        self,
        user: User,
        program: ProgramConfiguration,
        mutate: Callable[[DayLog], DayLog],
    ) -> LogResult:
        day_log = await self.current_log(user)
        updated = mutate(day_log)
        if updated is not day_log:
            await self.store.save_day_log(updated)
        return await self.check_completion(user, program, updated)

    # Overwriting slots

    async def log_outdoor_workout(
        self,
        user: User,
        program: ProgramConfiguration,
        payload: Optional[WorkoutPayload] = None,
        photo_id: Optional[str] = None,
    ) -> LogResult:
        workout = _workout(payload, photo_id)
        return await self._apply(user, program, lambda log: log.with_outdoor_workout(workout))

    async def log_indoor_workout(
        self,
        user: User,
        program: ProgramConfiguration,
        payload: Optional[WorkoutPayload] = None,
        photo_id: Optional[str] = None,
    ) -> LogResult:
        workout = _workout(payload, photo_id)
        return await self._apply(user, program, lambda log: log.with_indoor_workout(workout))

    async def log_workout_screenshot(
        self,
        user: User,
        program: ProgramConfiguration,
        classification: PhotoClassification,
        photo_id: str,
    ) -> tuple[str, LogResult]:
        """
        Log tracker screenshot data as a workout

        The first screenshot of the day fills the outdoor slot, later ones
        the indoor slot.

        Returns:
            Which slot was filled ("outdoor" / "indoor") and the log result
        """
        day_log = await self.current_log(user)
        outdoor_done = bool(day_log.outdoor_workout and day_log.outdoor_workout.done)
        payload = WorkoutPayload(
            description=classification.workout_type,
            duration_mins=classification.duration_mins,
            calories_burned=classification.calories_burned,
        )
        if outdoor_done:
            return INDOOR, await self.log_indoor_workout(user, program, payload, photo_id)
        return OUTDOOR, await self.log_outdoor_workout(user, program, payload, photo_id)

    async def log_reading(
        self,
        user: User,
        program: ProgramConfiguration,
        pages: int = 10,
        book: Optional[str] = None,
    ) -> LogResult:
        if book is None and program.current_book:
            book = program.current_book.title
        reading = ReadingLog(done=True, pages=pages, book=book)
        return await self._apply(user, program, lambda log: log.with_reading(reading))

    async def confirm_diet(self, user: User, program: ProgramConfiguration) -> LogResult:
        return await self._apply(user, program, lambda log: log.with_diet_confirmed())

    async def log_progress_pic(self, user: User, program: ProgramConfiguration, file_id: str) -> LogResult:
        pic = ProgressPicLog(done=True, file_id=file_id)
        result = await self._apply(user, program, lambda log: log.with_progress_pic(pic))
        await self.store.save_progress_photo(ProgressPhoto(
            user_id=user.telegram_id,
            attempt=user.attempt,
            day_number=user.current_day,
            file_id=file_id,
        ))
        return result

    # Accumulating slots

    async def add_water(self, user: User, program: ProgramConfiguration, amount_oz: float) -> LogResult:
        """Add to the running water total (not idempotent: 30 + 30 is 60)"""
        self._require_positive(user, amount_oz)
        return await self._apply(user, program, lambda log: log.with_water_added(amount_oz, program.water_target))

    async def delete_water(self, user: User, program: ProgramConfiguration, amount_oz: float) -> LogResult:
        """Subtract from the running water total, never below zero"""
        self._require_positive(user, amount_oz)
        return await self._apply(user, program, lambda log: log.with_water_removed(amount_oz, program.water_target))

    async def add_meal(self, user: User, program: ProgramConfiguration, meal: Meal) -> LogResult:
        return await self._apply(user, program, lambda log: log.with_meal_added(meal))

    async def delete_last_meals(self, user: User, program: ProgramConfiguration, count: int = 1) -> LogResult:
        return await self._apply(user, program, lambda log: log.with_last_meals_removed(count))

    async def update_last_meal(
        self, user: User, program: ProgramConfiguration, meal: Meal
    ) -> Optional[LogResult]:
        """Replace today's last meal; None when there is no meal to replace"""
        day_log = await self.current_log(user)
        if not day_log.meals:
            logger.info(f"No meal to correct for {user.telegram_id} on day {day_log.day_number}")
            return None
        updated = day_log.with_last_meal_replaced(meal)
        await self.store.save_day_log(updated)
        return await self.check_completion(user, program, updated)

    async def clear_meals(self, user: User, program: ProgramConfiguration) -> LogResult:
        return await self._apply(user, program, lambda log: log.with_meals_cleared())

    @staticmethod
    def _require_positive(user: User, amount_oz: float) -> None:
        if amount_oz <= 0:
            raise ValidationError(
                "Water amount must be positive",
                field="water",
                value=amount_oz,
                user_id=user.telegram_id,
                operation="log_water",
            )
