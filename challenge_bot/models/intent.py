"""Structured results returned by the AI collaborators"""
import logging
from typing import Annotated, Any, Literal, Optional
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

_PAYLOAD_FIELDS = ("outdoor_workout", "indoor_workout", "reading")

FALLBACK_RESPONSE = "Got it. Tell me what you've done today and I'll log it."


class WorkoutPayload(BaseModel):
    description: Optional[str] = None
    duration_mins: Optional[int] = Field(default=None, ge=0)
    calories_burned: Optional[int] = Field(default=None, ge=0)


class ReadingPayload(BaseModel):
    pages: int = Field(default=10, ge=1)
    book: Optional[str] = None


class Intent(BaseModel):
    """
    What the user's message asks the bot to do.

    Every logging field is optional: an absent or malformed field means
    "not logging that category".
    """

    outdoor_workout: Optional[WorkoutPayload] = None
    indoor_workout: Optional[WorkoutPayload] = None
    reading: Optional[ReadingPayload] = None
    water_oz: Optional[float] = Field(default=None, gt=0)
    water_removed_oz: Optional[float] = Field(default=None, gt=0)
    diet_confirmed: bool = False
    food_description: Optional[str] = None
    meal_correction: Optional[Literal["delete_last", "update_last", "clear"]] = None
    meal_delete_count: int = Field(default=1, ge=1)
    progress_pic: bool = False
    wants_status: bool = False

    # Things worth remembering about the user
    goal: Optional[str] = None
    goal_type: Optional[str] = None
    why: Optional[str] = None
    struggle: Optional[str] = None
    note: Optional[str] = None

    response_text: str = FALLBACK_RESPONSE

    @classmethod
    def from_raw(cls, raw: Any) -> "Intent":
        """
        Build an intent from untrusted extractor output, dropping bad fields

        Args:
            raw: Parsed JSON (anything)

        Returns:
            Intent with every field that validated on its own
        """
        if not isinstance(raw, dict):
            logger.warning(f"Intent payload is not an object: {type(raw).__name__}")
            return cls()

        clean: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            if name not in raw or raw[name] is None:
                continue
            value = raw[name]
            if name in _PAYLOAD_FIELDS and isinstance(value, bool):
                # "outdoor_workout": true means logged with no details
                if not value:
                    continue
                value = {}
            annotation = field.annotation
            if field.metadata:
                annotation = Annotated[(annotation, *field.metadata)]
            try:
                value = TypeAdapter(annotation).validate_python(value)
            except ValidationError:
                logger.warning(f"Dropping malformed intent field '{name}': {raw[name]!r}")
                continue
            clean[name] = value

        try:
            return cls(**clean)
        except ValidationError as e:
            logger.warning(f"Intent constraints failed, keeping reply only: {e}")
            return cls(response_text=clean.get("response_text") or FALLBACK_RESPONSE)

    @classmethod
    def conversation(cls, response_text: str) -> "Intent":
        return cls(response_text=response_text or FALLBACK_RESPONSE)

    @property
    def logs_anything(self) -> bool:
        return any([
            self.outdoor_workout, self.indoor_workout, self.reading,
            self.water_oz, self.water_removed_oz, self.diet_confirmed,
            self.food_description, self.meal_correction, self.progress_pic,
        ])


class PhotoClassification(BaseModel):
    """Result of classifying an uploaded photo"""
    kind: Literal["workout_screenshot", "progress_pic"] = "progress_pic"
    duration_mins: Optional[int] = None
    calories_burned: Optional[int] = None
    hr_avg: Optional[int] = None
    hr_max: Optional[int] = None
    workout_type: Optional[str] = None

    @property
    def is_workout(self) -> bool:
        return self.kind == "workout_screenshot"
