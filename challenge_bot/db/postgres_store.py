"""PostgreSQL record store"""
import json
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, AsyncGenerator, Optional
import psycopg

from challenge_bot.db.connection import Database
from challenge_bot.exceptions import wrap_external_exception
from challenge_bot.models.day_log import DayLog, ProgressPhoto
from challenge_bot.models.onboarding import OnboardingState
from challenge_bot.models.program import ProgramConfiguration
from challenge_bot.models.user import User

logger = logging.getLogger(__name__)

# DayLog fields stored in day_logs.data; the rest are columns
_DAY_LOG_COLUMNS = {"user_id", "attempt", "day_number", "date", "completed", "completed_at", "created_at"}

_USER_COLUMNS = """
    telegram_id, username, first_name, current_day, attempt, start_date, timezone,
    onboarding_complete, onboarding_state, last_transition_date, last_alert_key,
    last_deadline_alert_date, challenge_completed_at, created_at, updated_at
"""


def _user_from_row(row: dict) -> User:
    state = row.get("onboarding_state")
    return User(**{**row, "onboarding_state": OnboardingState.model_validate(state) if state else None})


def _day_log_from_row(row: dict) -> DayLog:
    return DayLog(
        user_id=row["user_id"],
        attempt=row["attempt"],
        day_number=row["day_number"],
        date=row["log_date"],
        completed=row["completed"],
        completed_at=row["completed_at"],
        created_at=row["created_at"],
        **(row["data"] or {}),
    )


def _day_log_data(day_log: DayLog) -> str:
    return json.dumps(day_log.model_dump(mode="json", exclude=_DAY_LOG_COLUMNS))


class PostgresStore:
    """RecordStore backed by the tables in schema.sql"""

    def __init__(self, database: Database):
        self.db = database

    @asynccontextmanager
    async def _cursor(
        self, operation: str, user_id: Optional[str] = None
    ) -> AsyncGenerator[tuple[psycopg.AsyncConnection, psycopg.AsyncCursor], None]:
        """Connection + cursor with psycopg errors translated to our hierarchy"""
        try:
            async with self.db.connection() as conn:
                async with conn.cursor() as cur:
                    yield conn, cur
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation=operation, user_id=user_id) from e

    # Users

    async def get_user(self, telegram_id: str) -> Optional[User]:
        async with self._cursor("get_user", telegram_id) as (conn, cur):
            await cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE telegram_id = %s",
                (telegram_id,)
            )
            row = await cur.fetchone()
        return _user_from_row(row) if row else None

    async def create_user(self, user: User) -> User:
        """
        Create user (idempotent).

        DO UPDATE guarantees a row comes back whether or not the user existed;
        the stored record wins over the passed-in one.
        """
        async with self._cursor("create_user", user.telegram_id) as (conn, cur):
            await cur.execute(
                f"""
                INSERT INTO users (telegram_id, username, first_name, timezone)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (telegram_id) DO UPDATE SET
                    telegram_id = EXCLUDED.telegram_id
                RETURNING {_USER_COLUMNS}
                """,
                (user.telegram_id, user.username, user.first_name, user.timezone)
            )
            row = await cur.fetchone()
            await conn.commit()
        logger.info(f"Ensured user exists: {user.telegram_id}")
        return _user_from_row(row)

    async def save_user(self, user: User) -> None:
        state = user.onboarding_state.model_dump_json() if user.onboarding_state else None
        async with self._cursor("save_user", user.telegram_id) as (conn, cur):
            await cur.execute(
                """
                UPDATE users SET
                    username = %s, first_name = %s, current_day = %s, attempt = %s,
                    start_date = %s, timezone = %s, onboarding_complete = %s,
                    onboarding_state = %s, last_transition_date = %s, last_alert_key = %s,
                    last_deadline_alert_date = %s, challenge_completed_at = %s,
                    updated_at = NOW()
                WHERE telegram_id = %s
                """,
                (
                    user.username, user.first_name, user.current_day, user.attempt,
                    user.start_date, user.timezone, user.onboarding_complete,
                    state, user.last_transition_date, user.last_alert_key,
                    user.last_deadline_alert_date, user.challenge_completed_at,
                    user.telegram_id,
                )
            )
            await conn.commit()

    async def list_active_users(self) -> list[User]:
        async with self._cursor("list_active_users") as (conn, cur):
            await cur.execute(
                f"""
                SELECT {_USER_COLUMNS} FROM users
                WHERE onboarding_complete = TRUE AND challenge_completed_at IS NULL
                ORDER BY telegram_id
                """
            )
            rows = await cur.fetchall()
        return [_user_from_row(row) for row in rows]

    async def transition_user(self, user: User, expected_day: int, expected_attempt: int) -> bool:
        async with self._cursor("transition_user", user.telegram_id) as (conn, cur):
            await cur.execute(
                """
                UPDATE users SET
                    current_day = %s, attempt = %s, start_date = %s,
                    last_transition_date = %s, challenge_completed_at = %s,
                    updated_at = NOW()
                WHERE telegram_id = %s AND current_day = %s AND attempt = %s
                  AND (last_transition_date IS NULL OR last_transition_date < %s)
                RETURNING telegram_id
                """,
                (
                    user.current_day, user.attempt, user.start_date,
                    user.last_transition_date, user.challenge_completed_at,
                    user.telegram_id, expected_day, expected_attempt,
                    user.last_transition_date,
                )
            )
            row = await cur.fetchone()
            await conn.commit()
        if not row:
            logger.info(
                f"Transition for {user.telegram_id} skipped: no longer on day {expected_day} "
                f"attempt {expected_attempt}"
            )
        return row is not None

    async def record_alert(
        self,
        telegram_id: str,
        alert_key: Optional[str] = None,
        deadline_date: Optional[date] = None,
    ) -> None:
        async with self._cursor("record_alert", telegram_id) as (conn, cur):
            await cur.execute(
                """
                UPDATE users SET
                    last_alert_key = COALESCE(%s, last_alert_key),
                    last_deadline_alert_date = COALESCE(%s, last_deadline_alert_date)
                WHERE telegram_id = %s
                """,
                (alert_key, deadline_date, telegram_id)
            )
            await conn.commit()

    # Programs

    async def get_program(self, user_id: str) -> Optional[ProgramConfiguration]:
        async with self._cursor("get_program", user_id) as (conn, cur):
            await cur.execute(
                "SELECT config, created_at, updated_at FROM programs WHERE user_id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
        if not row:
            return None
        return ProgramConfiguration.model_validate({
            **row["config"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        })

    async def save_program(self, program: ProgramConfiguration) -> None:
        config = program.model_dump(mode="json", exclude={"created_at", "updated_at"})
        async with self._cursor("save_program", program.user_id) as (conn, cur):
            await cur.execute(
                """
                INSERT INTO programs (user_id, config)
                VALUES (%s, %s)
                ON CONFLICT (user_id) DO UPDATE SET
                    config = EXCLUDED.config,
                    updated_at = NOW()
                """,
                (program.user_id, json.dumps(config))
            )
            await conn.commit()
        logger.info(f"Saved program for {program.user_id} ({program.diet_mode.value} mode)")

    # Day logs

    async def get_day_log(self, user_id: str, attempt: int, day_number: int) -> Optional[DayLog]:
        async with self._cursor("get_day_log", user_id) as (conn, cur):
            await cur.execute(
                """
                SELECT * FROM day_logs
                WHERE user_id = %s AND attempt = %s AND day_number = %s
                """,
                (user_id, attempt, day_number)
            )
            row = await cur.fetchone()
        return _day_log_from_row(row) if row else None

    async def create_day_log(self, user_id: str, attempt: int, day_number: int, log_date: date) -> DayLog:
        # No-op update so RETURNING yields the existing row on conflict
        async with self._cursor("create_day_log", user_id) as (conn, cur):
            await cur.execute(
                """
                INSERT INTO day_logs (user_id, attempt, day_number, log_date)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (user_id, attempt, day_number) DO UPDATE SET
                    user_id = EXCLUDED.user_id
                RETURNING *
                """,
                (user_id, attempt, day_number, log_date)
            )
            row = await cur.fetchone()
            await conn.commit()
        return _day_log_from_row(row)

    async def save_day_log(self, day_log: DayLog) -> None:
        async with self._cursor("save_day_log", day_log.user_id) as (conn, cur):
            await cur.execute(
                """
                INSERT INTO day_logs (user_id, attempt, day_number, log_date, data)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (user_id, attempt, day_number) DO UPDATE SET
                    data = EXCLUDED.data,
                    updated_at = NOW()
                """,
                (
                    day_log.user_id, day_log.attempt, day_log.day_number,
                    day_log.date, _day_log_data(day_log),
                )
            )
            await conn.commit()

    async def mark_day_complete(
        self, user_id: str, attempt: int, day_number: int, completed_at: datetime
    ) -> bool:
        async with self._cursor("mark_day_complete", user_id) as (conn, cur):
            await cur.execute(
                """
                UPDATE day_logs SET completed = TRUE, completed_at = %s, updated_at = NOW()
                WHERE user_id = %s AND attempt = %s AND day_number = %s AND completed = FALSE
                RETURNING day_number
                """,
                (completed_at, user_id, attempt, day_number)
            )
            row = await cur.fetchone()
            await conn.commit()
        return row is not None

    async def list_day_logs(self, user_id: str, attempt: Optional[int] = None) -> list[DayLog]:
        query = "SELECT * FROM day_logs WHERE user_id = %s"
        params: list[Any] = [user_id]
        if attempt is not None:
            query += " AND attempt = %s"
            params.append(attempt)
        query += " ORDER BY attempt, day_number"

        async with self._cursor("list_day_logs", user_id) as (conn, cur):
            await cur.execute(query, params)
            rows = await cur.fetchall()
        return [_day_log_from_row(row) for row in rows]

    # Progress photos

    async def save_progress_photo(self, photo: ProgressPhoto) -> None:
        async with self._cursor("save_progress_photo", photo.user_id) as (conn, cur):
            await cur.execute(
                """
                INSERT INTO progress_photos (user_id, attempt, day_number, file_id, uploaded_at)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (photo.user_id, photo.attempt, photo.day_number, photo.file_id, photo.uploaded_at)
            )
            await conn.commit()

    async def list_progress_photos(self, user_id: str) -> list[ProgressPhoto]:
        async with self._cursor("list_progress_photos", user_id) as (conn, cur):
            await cur.execute(
                """
                SELECT user_id, attempt, day_number, file_id, uploaded_at
                FROM progress_photos WHERE user_id = %s
                ORDER BY uploaded_at
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
        return [ProgressPhoto(**row) for row in rows]
