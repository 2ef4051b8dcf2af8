"""
Nutrition estimation and meal formatting

The estimator asks the AI client for itemized macros. Formatting helpers
render the per-meal table and the running daily summary sent back after
every food log.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from challenge_bot.exceptions import ChallengeBotError, NutritionEstimateError
from challenge_bot.models.day_log import Meal
from challenge_bot.models.food import NutritionEstimate
from challenge_bot.services.ai_client import AIClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a precise nutrition estimator. You answer with JSON only."

ESTIMATE_PROMPT = """Parse this food entry and estimate macros. Be accurate but reasonable - use standard USDA values when possible.

Food entry: "{description}"
{diet_hint}
Respond ONLY with valid JSON in this exact format:
{{
  "items": [
    {{"description": "Food item name with portion", "calories": 0, "protein": 0, "carbs": 0, "fat": 0}}
  ],
  "total_calories": 0,
  "total_protein": 0,
  "total_carbs": 0,
  "total_fat": 0
}}

Rules:
- All macro values should be integers (round to nearest whole number)
- Use realistic portion sizes if not specified
- For restaurant food, estimate on the higher side
- Include cooking oils/butter if mentioned or implied (like "fried")
- Be specific in descriptions (e.g., "80/20 ground beef, 8oz cooked" not just "ground beef")"""

TABLE_WIDTH = 50
NAME_WIDTH = 28


class NutritionEstimator:
    """Best-effort calorie and macro estimates for free-text food descriptions"""

    def __init__(self, ai_client: AIClient):
        self.ai = ai_client

    async def estimate(self, description: str, diet_type: Optional[str] = None) -> NutritionEstimate:
        """
        Estimate the nutrition of a food description

        Args:
            description: What the user ate, in their words
            diet_type: Optional diet hint ("keto", "vegan", ...)

        Returns:
            NutritionEstimate with items and totals

        Raises:
            NutritionEstimateError: If the estimate could not be produced
        """
        diet_hint = f"The user follows a {diet_type} diet.\n" if diet_type else ""
        prompt = ESTIMATE_PROMPT.format(description=description, diet_hint=diet_hint)

        try:
            raw = await self.ai.complete_json(SYSTEM_PROMPT, prompt)
        except ChallengeBotError as e:
            raise NutritionEstimateError(
                f"Nutrition estimate failed: {e.message}",
                operation="estimate_nutrition",
                cause=e,
            ) from e

        try:
            estimate = NutritionEstimate.model_validate(raw)
        except ValidationError as e:
            raise NutritionEstimateError(
                "Nutrition estimate has an unexpected shape",
                operation="estimate_nutrition",
                cause=e,
            ) from e

        logger.info(f"Estimated '{description}': {estimate.total_calories} cal over {len(estimate.items)} items")
        return estimate


def _fmt_grams(value: float) -> str:
    return f"{value:g}g".rjust(5)


def format_meal_table(estimate: NutritionEstimate) -> str:
    """Monospace item table; a TOTAL row is added when there is more than one item"""
    lines = [
        "```",
        "Food                           Cal    P    C    F",
        "─" * TABLE_WIDTH,
    ]
    for item in estimate.items:
        name = item.description[:NAME_WIDTH].ljust(NAME_WIDTH)
        lines.append(
            f"{name} {str(item.calories).rjust(5)} {_fmt_grams(item.protein)} "
            f"{_fmt_grams(item.carbs)} {_fmt_grams(item.fat)}"
        )
    if len(estimate.items) > 1:
        lines.append("─" * TABLE_WIDTH)
        lines.append(
            f"{'TOTAL'.ljust(NAME_WIDTH)} {str(estimate.total_calories).rjust(5)} "
            f"{_fmt_grams(estimate.total_protein)} {_fmt_grams(estimate.total_carbs)} "
            f"{_fmt_grams(estimate.total_fat)}"
        )
    lines.append("```")
    return "\n".join(lines)


def format_daily_summary(
    meals: list[Meal],
    calorie_target: Optional[int],
    protein_target: Optional[int],
) -> str:
    """
    Running totals for the day against the calorie and protein targets

    Without a calorie target only the totals are shown.
    """
    total_cals = sum(m.calories for m in meals)
    total_protein = sum(m.protein for m in meals)
    protein = f"Protein: {total_protein:g}"
    if protein_target:
        protein += f" / {protein_target}g"
    else:
        protein += "g"

    if not calorie_target:
        return f"\n**Today:** {total_cals} cal | {protein}"

    remaining = calorie_target - total_cals
    lines = [f"\n**Today:** {total_cals} / {calorie_target} cal"]
    if remaining > 0:
        lines.append(f"**Remaining:** {remaining} cal | {protein}")
    elif remaining == 0:
        lines.append(f"**Status:** At calorie target | {protein}")
    else:
        lines.append(f"⚠️ **OVER by {abs(remaining)} cal** | {protein}")

    if 0 < total_cals < calorie_target * 0.7:
        lines.append(
            "\n_Note: You're quite a bit under target. Make sure you're eating enough to sustain your workouts._"
        )
    return "\n".join(lines)
