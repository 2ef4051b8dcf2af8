"""Program configuration models"""
import re
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_WATER_TARGET_OZ = 128  # one gallon
DEFAULT_BASE_CALORIES = 2000
DEFAULT_ALERT_TIMES = ["19:00", "20:00", "21:00", "22:00"]

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class DietMode(str, Enum):
    """How the diet requirement of a day is judged"""
    CONFIRM = "confirm"  # user says they followed their diet
    TRACK = "track"  # at least one meal logged, no judgement
    DEFICIT = "deficit"  # eaten <= base calories + workout burn


class Book(BaseModel):
    """Reading material, in the order the user reads it"""
    title: str
    total_pages: Optional[int] = None
    current_page: int = 0
    started_day: int = 1
    finished_day: Optional[int] = None


class CaloriePhase(BaseModel):
    """Calorie target that applies to a range of challenge days"""
    start_day: int = Field(ge=1)
    end_day: Optional[int] = None  # open-ended when None
    calories: int = Field(gt=0)

    def covers(self, day_number: int) -> bool:
        return day_number >= self.start_day and (self.end_day is None or day_number <= self.end_day)


class UserGoal(BaseModel):
    type: str = "other"  # weight, fitness, habit, other
    description: str
    mentioned_at: datetime


class UserNote(BaseModel):
    note: str
    mentioned_at: datetime


class UserContext(BaseModel):
    """What the bot has learned about the user through conversation (append-only)"""
    goals: list[UserGoal] = Field(default_factory=list)
    why: Optional[str] = None
    struggles: list[str] = Field(default_factory=list)
    notes: list[UserNote] = Field(default_factory=list)


class ProgramConfiguration(BaseModel):
    """Per-user challenge settings, filled once by onboarding"""

    user_id: str
    diet_mode: DietMode = DietMode.CONFIRM
    diet_type: Optional[str] = None  # "keto", "clean eating", "no alcohol", ...

    # Body stats (track / deficit modes)
    gender: Optional[str] = None
    height_inches: Optional[int] = None
    weight_lbs: Optional[int] = None
    age: Optional[int] = None
    bmr: Optional[int] = None

    # Diet targets
    base_calories: Optional[int] = None  # deficit mode budget before workout burn
    calorie_target: Optional[int] = None  # track mode guide, not enforced
    protein_target: Optional[int] = None
    calorie_phases: list[CaloriePhase] = Field(default_factory=list)

    water_target: int = DEFAULT_WATER_TARGET_OZ
    books: list[Book] = Field(default_factory=list)
    outdoor_workout_type: Optional[str] = None  # "running", "hiking", ...
    indoor_workout_type: Optional[str] = None
    progress_pic_time: Optional[str] = None  # free text, e.g. "7am" or "after workout 1"
    alert_times: list[str] = Field(default_factory=lambda: list(DEFAULT_ALERT_TIMES))
    context: UserContext = Field(default_factory=UserContext)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("alert_times")
    @classmethod
    def validate_alert_times(cls, v: list[str]) -> list[str]:
        """Alert times must be zero-padded HH:MM, stored sorted without duplicates"""
        for value in v:
            if not _HHMM.match(value):
                raise ValueError(f"Alert time must be HH:MM, got '{value}'")
        return sorted(set(v))

    @property
    def current_book(self) -> Optional[Book]:
        """First book that is not finished yet"""
        for book in self.books:
            if book.finished_day is None:
                return book
        return self.books[-1] if self.books else None

    def calorie_target_for_day(self, day_number: int) -> Optional[int]:
        """Calorie target in effect on a given day (phases override the flat target)"""
        for phase in self.calorie_phases:
            if phase.covers(day_number):
                return phase.calories
        if self.diet_mode == DietMode.DEFICIT:
            return self.base_calories
        return self.calorie_target
