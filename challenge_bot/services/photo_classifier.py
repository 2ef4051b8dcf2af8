"""Photo classification: workout tracker screenshot vs. progress pic"""
import logging

from pydantic import ValidationError

from challenge_bot.exceptions import ChallengeBotError
from challenge_bot.models.intent import PhotoClassification
from challenge_bot.services.ai_client import AIClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You classify fitness photos. You answer with JSON only."

CLASSIFY_PROMPT = """Analyze this image. Is it:
1. A workout/fitness tracker screenshot (like Polar, Garmin, Apple Watch, etc.) showing workout data
2. A progress photo (selfie, mirror pic, body photo)

If it's a workout screenshot, extract:
- Duration (in minutes)
- Calories burned
- Average heart rate
- Max heart rate
- Workout type if visible

Respond with JSON only:
{
  "kind": "workout_screenshot" or "progress_pic",
  "duration_mins": number or null,
  "calories_burned": number or null,
  "hr_avg": number or null,
  "hr_max": number or null,
  "workout_type": string or null
}"""


class PhotoClassifier:
    """Any failure classifies the photo as a progress pic"""

    def __init__(self, ai_client: AIClient):
        self.ai = ai_client

    async def classify(self, image: bytes, media_type: str = "image/jpeg") -> PhotoClassification:
        try:
            raw = await self.ai.complete_json(SYSTEM_PROMPT, CLASSIFY_PROMPT, image=image, media_type=media_type)
            result = PhotoClassification.model_validate(raw)
        except (ChallengeBotError, ValidationError) as e:
            logger.warning(f"Photo classification failed, treating as progress pic: {e}", exc_info=True)
            return PhotoClassification()

        logger.info(f"Photo classified as {result.kind}")
        return result
