"""Food-related Pydantic models"""
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from challenge_bot.models.day_log import Meal


class FoodItem(BaseModel):
    """Individual food item with estimated macros (grams)"""
    description: str
    calories: int = Field(ge=0)
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)


class NutritionEstimate(BaseModel):
    """Itemized and aggregate estimate for one food description"""
    items: list[FoodItem] = Field(default_factory=list)
    total_calories: Optional[int] = None
    total_protein: Optional[float] = None
    total_carbs: Optional[float] = None
    total_fat: Optional[float] = None

    @model_validator(mode="after")
    def fill_totals(self) -> "NutritionEstimate":
        """Totals default to the sum of the items when the estimator omits them"""
        if self.total_calories is None:
            self.total_calories = sum(i.calories for i in self.items)
        if self.total_protein is None:
            self.total_protein = sum(i.protein for i in self.items)
        if self.total_carbs is None:
            self.total_carbs = sum(i.carbs for i in self.items)
        if self.total_fat is None:
            self.total_fat = sum(i.fat for i in self.items)
        return self

    def to_meal(self, description: str) -> Meal:
        return Meal(
            description=description,
            calories=self.total_calories,
            protein=self.total_protein,
            carbs=self.total_carbs,
            fat=self.total_fat,
        )
