"""Onboarding state models"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from challenge_bot.models.program import Book, DietMode, ProgramConfiguration


class OnboardingStep(str, Enum):
    """Wizard steps; declaration order is the order they are asked in"""

    DIET_TYPE = "diet_type"
    DIET_MODE = "diet_mode"
    GENDER = "gender"
    HEIGHT = "height"
    WEIGHT = "weight"
    AGE = "age"
    BASE_CALORIES = "base_calories"
    CALORIE_TARGET = "calorie_target"
    PROTEIN_TARGET = "protein_target"
    WATER_TARGET = "water_target"
    FIRST_BOOK = "first_book"
    OUTDOOR_WORKOUT = "outdoor_workout"
    INDOOR_WORKOUT = "indoor_workout"
    PROGRESS_PIC_TIME = "progress_pic_time"
    TIMEZONE = "timezone"
    ALERT_TIMES = "alert_times"
    CONFIRM = "confirm"

    @classmethod
    def first(cls) -> "OnboardingStep":
        return next(iter(cls))


STEP_ORDER: list[OnboardingStep] = list(OnboardingStep)


class OnboardingDraft(BaseModel):
    """
    Answers collected so far.

    Each step contributes named fields; nothing here is required until the
    draft is turned into a ProgramConfiguration at commit time.
    """

    diet_type: Optional[str] = None
    diet_mode: Optional[DietMode] = None
    gender: Optional[str] = None
    height_inches: Optional[int] = None
    weight_lbs: Optional[int] = None
    age: Optional[int] = None
    bmr: Optional[int] = None
    base_calories: Optional[int] = None
    calorie_target: Optional[int] = None
    protein_target: Optional[int] = None
    water_target: Optional[int] = None
    books: Optional[list[Book]] = None
    outdoor_workout_type: Optional[str] = None
    indoor_workout_type: Optional[str] = None
    progress_pic_time: Optional[str] = None
    timezone: Optional[str] = None
    alert_times: Optional[list[str]] = None

    def merged(self, updates: dict) -> "OnboardingDraft":
        """Return a copy with the given answers added"""
        return self.model_validate({**self.model_dump(exclude_none=True), **updates})

    @property
    def tracks_body_stats(self) -> bool:
        return self.diet_mode in (DietMode.TRACK, DietMode.DEFICIT)

    @property
    def height_display(self) -> Optional[str]:
        if self.height_inches is None:
            return None
        return f"{self.height_inches // 12}'{self.height_inches % 12}\""

    def to_program(self, user_id: str, existing: Optional[ProgramConfiguration] = None) -> ProgramConfiguration:
        """
        Build the final configuration

        Context already gathered on the existing configuration is carried over.
        """
        fields = self.model_dump(exclude_none=True, exclude={"timezone"})
        if existing is not None:
            fields["context"] = existing.context
            fields["created_at"] = existing.created_at
        return ProgramConfiguration(user_id=user_id, **fields)


class OnboardingState(BaseModel):
    """User's position in the wizard, stored inline on the user record"""

    step: OnboardingStep = Field(default_factory=OnboardingStep.first)
    data: OnboardingDraft = Field(default_factory=OnboardingDraft)
