"""User-related Pydantic models"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from challenge_bot.config import DEFAULT_TIMEZONE
from challenge_bot.models.onboarding import OnboardingState
from challenge_bot.utils.datetime_helpers import now_utc


class User(BaseModel):
    """Challenge participant"""

    telegram_id: str
    username: Optional[str] = None
    first_name: Optional[str] = None

    current_day: int = Field(default=0, ge=0)  # 0 = not started yet
    attempt: int = Field(default=1, ge=1)  # bumped on every reset to day 1
    start_date: Optional[date] = None
    timezone: str = DEFAULT_TIMEZONE

    onboarding_complete: bool = False
    onboarding_state: Optional[OnboardingState] = None

    # Scheduler guards
    last_transition_date: Optional[date] = None
    last_alert_key: Optional[str] = None
    last_deadline_alert_date: Optional[date] = None

    challenge_completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    @property
    def is_active(self) -> bool:
        """Onboarded and still inside the challenge"""
        return self.onboarding_complete and self.challenge_completed_at is None

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or self.telegram_id
