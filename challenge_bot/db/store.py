"""Record store interface shared by the Postgres and in-memory backends"""
from datetime import date, datetime
from typing import Optional, Protocol

from challenge_bot.models.day_log import DayLog, ProgressPhoto
from challenge_bot.models.program import ProgramConfiguration
from challenge_bot.models.user import User


class RecordStore(Protocol):
    """
    Persistence for users, programs, day logs and progress photos.

    Day logs are keyed by (user_id, attempt, day_number). Two writes are
    compare-and-set so concurrent scheduler ticks and message handlers cannot
    double-apply them: `mark_day_complete` and `transition_user`.
    `save_day_log` writes task data only and never touches `completed`.
    """

    # Users

    async def get_user(self, telegram_id: str) -> Optional[User]: ...

    async def create_user(self, user: User) -> User:
        """Insert if absent; returns the stored user either way"""
        ...

    async def save_user(self, user: User) -> None: ...

    async def list_active_users(self) -> list[User]:
        """Onboarded users that have not finished the challenge"""
        ...

    async def transition_user(self, user: User, expected_day: int, expected_attempt: int) -> bool:
        """
        Write the user's day/attempt/start/transition fields only if the stored
        record is still on (expected_day, expected_attempt) and was last
        transitioned before user.last_transition_date. Returns whether the
        write happened.
        """
        ...

    async def record_alert(
        self,
        telegram_id: str,
        alert_key: Optional[str] = None,
        deadline_date: Optional[date] = None,
    ) -> None:
        """Persist alert dedupe marks without touching the rest of the user"""
        ...

    # Programs

    async def get_program(self, user_id: str) -> Optional[ProgramConfiguration]: ...

    async def save_program(self, program: ProgramConfiguration) -> None: ...

    # Day logs

    async def get_day_log(self, user_id: str, attempt: int, day_number: int) -> Optional[DayLog]: ...

    async def create_day_log(self, user_id: str, attempt: int, day_number: int, log_date: date) -> DayLog:
        """Get-or-create: an existing log for the key is returned untouched"""
        ...

    async def save_day_log(self, day_log: DayLog) -> None: ...

    async def mark_day_complete(
        self, user_id: str, attempt: int, day_number: int, completed_at: datetime
    ) -> bool:
        """Flip `completed` false -> true. Returns True only for the call that flipped it."""
        ...

    async def list_day_logs(self, user_id: str, attempt: Optional[int] = None) -> list[DayLog]:
        """Logs ordered by (attempt, day_number)"""
        ...

    # Progress photos

    async def save_progress_photo(self, photo: ProgressPhoto) -> None: ...

    async def list_progress_photos(self, user_id: str) -> list[ProgressPhoto]: ...
