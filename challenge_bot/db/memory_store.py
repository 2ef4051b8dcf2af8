"""
In-memory record store

Used for local runs (STORAGE_BACKEND=memory) and tests. Nothing is persisted
across restarts. Stored models are copied on the way in and out so callers
never share mutable state with the store.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Optional

from challenge_bot.models.day_log import DayLog, ProgressPhoto
from challenge_bot.models.program import ProgramConfiguration
from challenge_bot.models.user import User
from challenge_bot.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

DayKey = tuple[str, int, int]


def _transition_allowed(stored: User, user: User, expected_day: int, expected_attempt: int) -> bool:
    """Still on the expected day and not yet transitioned on the new date"""
    if (stored.current_day, stored.attempt) != (expected_day, expected_attempt):
        return False
    if stored.last_transition_date is None or user.last_transition_date is None:
        return True
    return stored.last_transition_date < user.last_transition_date


class InMemoryStore:
    """Dict-backed RecordStore"""

    def __init__(self):
        self._users: dict[str, User] = {}
        self._programs: dict[str, ProgramConfiguration] = {}
        self._day_logs: dict[DayKey, DayLog] = {}
        self._photos: list[ProgressPhoto] = []
        self._lock = asyncio.Lock()
        logger.info("InMemoryStore initialized - records are NOT persisted across restarts")

    # Users

    async def get_user(self, telegram_id: str) -> Optional[User]:
        user = self._users.get(telegram_id)
        return user.model_copy(deep=True) if user else None

    async def create_user(self, user: User) -> User:
        async with self._lock:
            if user.telegram_id not in self._users:
                self._users[user.telegram_id] = user.model_copy(deep=True)
                logger.info(f"Created user {user.telegram_id}")
            return self._users[user.telegram_id].model_copy(deep=True)

    async def save_user(self, user: User) -> None:
        async with self._lock:
            self._users[user.telegram_id] = user.model_copy(deep=True, update={"updated_at": now_utc()})

    async def list_active_users(self) -> list[User]:
        return [u.model_copy(deep=True) for u in self._users.values() if u.is_active]

    async def transition_user(self, user: User, expected_day: int, expected_attempt: int) -> bool:
        async with self._lock:
            stored = self._users.get(user.telegram_id)
            if stored is None or not _transition_allowed(stored, user, expected_day, expected_attempt):
                logger.info(
                    f"Transition for {user.telegram_id} skipped: expected day {expected_day} "
                    f"attempt {expected_attempt}, found "
                    f"{(stored.current_day, stored.attempt) if stored else 'no user'}"
                )
                return False
            self._users[user.telegram_id] = stored.model_copy(update={
                "current_day": user.current_day,
                "attempt": user.attempt,
                "start_date": user.start_date,
                "last_transition_date": user.last_transition_date,
                "challenge_completed_at": user.challenge_completed_at,
                "updated_at": now_utc(),
            })
            return True

    async def record_alert(
        self,
        telegram_id: str,
        alert_key: Optional[str] = None,
        deadline_date: Optional[date] = None,
    ) -> None:
        async with self._lock:
            stored = self._users.get(telegram_id)
            if stored is None:
                return
            update = {}
            if alert_key is not None:
                update["last_alert_key"] = alert_key
            if deadline_date is not None:
                update["last_deadline_alert_date"] = deadline_date
            self._users[telegram_id] = stored.model_copy(update=update)

    # Programs

    async def get_program(self, user_id: str) -> Optional[ProgramConfiguration]:
        program = self._programs.get(user_id)
        return program.model_copy(deep=True) if program else None

    async def save_program(self, program: ProgramConfiguration) -> None:
        stamp = now_utc()
        self._programs[program.user_id] = program.model_copy(deep=True, update={
            "created_at": program.created_at or stamp,
            "updated_at": stamp,
        })

    # Day logs

    async def get_day_log(self, user_id: str, attempt: int, day_number: int) -> Optional[DayLog]:
        day_log = self._day_logs.get((user_id, attempt, day_number))
        return day_log.model_copy(deep=True) if day_log else None

    async def create_day_log(self, user_id: str, attempt: int, day_number: int, log_date: date) -> DayLog:
        key = (user_id, attempt, day_number)
        async with self._lock:
            if key not in self._day_logs:
                self._day_logs[key] = DayLog(
                    user_id=user_id, attempt=attempt, day_number=day_number, date=log_date
                )
                logger.debug(f"Created day log {key}")
            return self._day_logs[key].model_copy(deep=True)

    async def save_day_log(self, day_log: DayLog) -> None:
        key = (day_log.user_id, day_log.attempt, day_log.day_number)
        async with self._lock:
            stored = self._day_logs.get(key)
            completion = (
                {"completed": stored.completed, "completed_at": stored.completed_at}
                if stored else {"completed": False, "completed_at": None}
            )
            self._day_logs[key] = day_log.model_copy(deep=True, update=completion)

    async def mark_day_complete(
        self, user_id: str, attempt: int, day_number: int, completed_at: datetime
    ) -> bool:
        key = (user_id, attempt, day_number)
        async with self._lock:
            stored = self._day_logs.get(key)
            if stored is None or stored.completed:
                return False
            self._day_logs[key] = stored.model_copy(update={"completed": True, "completed_at": completed_at})
            return True

    async def list_day_logs(self, user_id: str, attempt: Optional[int] = None) -> list[DayLog]:
        logs = [
            log.model_copy(deep=True)
            for (uid, att, _), log in self._day_logs.items()
            if uid == user_id and (attempt is None or att == attempt)
        ]
        return sorted(logs, key=lambda log: (log.attempt, log.day_number))

    # Progress photos

    async def save_progress_photo(self, photo: ProgressPhoto) -> None:
        self._photos.append(photo.model_copy())

    async def list_progress_photos(self, user_id: str) -> list[ProgressPhoto]:
        return [p.model_copy() for p in self._photos if p.user_id == user_id]
