"""Day log models: one record per (user, attempt, day number)"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from challenge_bot.utils.datetime_helpers import now_utc


class WorkoutLog(BaseModel):
    """Outdoor or indoor workout, logged by text or by a tracker screenshot"""
    done: bool = True
    description: Optional[str] = None
    duration_mins: Optional[int] = None
    calories_burned: Optional[int] = None  # counts toward the deficit budget
    photo_id: Optional[str] = None
    logged_at: datetime = Field(default_factory=now_utc)


class ReadingLog(BaseModel):
    done: bool = True
    pages: int = 10
    book: Optional[str] = None
    logged_at: datetime = Field(default_factory=now_utc)


class WaterLog(BaseModel):
    done: bool = False
    amount_oz: float = 0
    logged_at: datetime = Field(default_factory=now_utc)


class ProgressPicLog(BaseModel):
    done: bool = True
    file_id: Optional[str] = None
    logged_at: datetime = Field(default_factory=now_utc)


class Meal(BaseModel):
    """Single food entry; macros in grams"""
    description: str
    calories: int = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    logged_at: datetime = Field(default_factory=now_utc)


class DietTotals(BaseModel):
    """Aggregate of all meals in a day, always recomputed from the full list"""
    calories_consumed: int = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    logged_at: datetime = Field(default_factory=now_utc)

    @classmethod
    def from_meals(cls, meals: list[Meal], logged_at: Optional[datetime] = None) -> "DietTotals":
        return cls(
            calories_consumed=sum(m.calories for m in meals),
            protein=sum(m.protein for m in meals),
            carbs=sum(m.carbs for m in meals),
            fat=sum(m.fat for m in meals),
            logged_at=logged_at or now_utc(),
        )


class DayLog(BaseModel):
    """
    Mutable record of one numbered day of one attempt.

    Mutators return an updated copy and never touch `completed`; committing
    completion is the caller's job (see TaskLogger).
    """

    user_id: str
    attempt: int = 1
    day_number: int
    date: date

    outdoor_workout: Optional[WorkoutLog] = None
    indoor_workout: Optional[WorkoutLog] = None
    reading: Optional[ReadingLog] = None
    water: Optional[WaterLog] = None
    progress_pic: Optional[ProgressPicLog] = None
    diet_confirmed: bool = False
    meals: list[Meal] = Field(default_factory=list)
    diet: Optional[DietTotals] = None

    completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now_utc)

    @property
    def water_oz(self) -> float:
        return self.water.amount_oz if self.water else 0

    @property
    def calories_consumed(self) -> int:
        return self.diet.calories_consumed if self.diet else 0

    @property
    def calories_burned(self) -> int:
        return sum(
            (w.calories_burned or 0)
            for w in (self.outdoor_workout, self.indoor_workout)
            if w is not None
        )

    # Overwriting slots

    def with_outdoor_workout(self, workout: WorkoutLog) -> "DayLog":
        return self.model_copy(update={"outdoor_workout": workout})

    def with_indoor_workout(self, workout: WorkoutLog) -> "DayLog":
        return self.model_copy(update={"indoor_workout": workout})

    def with_reading(self, reading: ReadingLog) -> "DayLog":
        return self.model_copy(update={"reading": reading})

    def with_progress_pic(self, pic: ProgressPicLog) -> "DayLog":
        return self.model_copy(update={"progress_pic": pic})

    def with_diet_confirmed(self) -> "DayLog":
        return self.model_copy(update={"diet_confirmed": True})

    # Accumulating slots

    def with_water_added(self, amount_oz: float, water_target: int) -> "DayLog":
        total = self.water_oz + amount_oz
        return self._with_water_total(total, water_target)

    def with_water_removed(self, amount_oz: float, water_target: int) -> "DayLog":
        total = max(0, self.water_oz - amount_oz)
        return self._with_water_total(total, water_target)

    def _with_water_total(self, total: float, water_target: int) -> "DayLog":
        water = WaterLog(done=total >= water_target, amount_oz=total)
        return self.model_copy(update={"water": water})

    def with_meal_added(self, meal: Meal) -> "DayLog":
        return self._with_meals([*self.meals, meal])

    def with_last_meals_removed(self, count: int = 1) -> "DayLog":
        if count < 1 or not self.meals:
            return self
        return self._with_meals(self.meals[:-count] if count < len(self.meals) else [])

    def with_last_meal_replaced(self, meal: Meal) -> "DayLog":
        if not self.meals:
            return self
        return self._with_meals([*self.meals[:-1], meal])

    def with_meals_cleared(self) -> "DayLog":
        return self._with_meals([])

    def _with_meals(self, meals: list[Meal]) -> "DayLog":
        return self.model_copy(update={"meals": meals, "diet": DietTotals.from_meals(meals)})


class ProgressPhoto(BaseModel):
    """Uploaded progress photo, kept for every attempt"""
    user_id: str
    attempt: int
    day_number: int
    file_id: str
    uploaded_at: datetime = Field(default_factory=now_utc)
