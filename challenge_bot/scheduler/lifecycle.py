"""
Daily rollover: advance or reset every active user at their local rollover hour

Runs on a coarse repeating job (hourly by default). A user is judged only when
their local hour equals ROLLOVER_HOUR, at most once per local date
(`last_transition_date`), and the write itself is a compare-and-set on the
user's (current_day, attempt), so duplicate ticks are no-ops.
"""

import logging
from collections import Counter
from datetime import date, datetime
from typing import Callable, Optional

from telegram.ext import ContextTypes

from challenge_bot.config import CHALLENGE_LENGTH_DAYS, ROLLOVER_HOUR
from challenge_bot.db.store import RecordStore
from challenge_bot.models.user import User
from challenge_bot.services.completion import day_status
from challenge_bot.services.notifier import Notifier
from challenge_bot.utils import formatters
from challenge_bot.utils.datetime_helpers import local_now, now_utc

logger = logging.getLogger(__name__)

ADVANCED = "advanced"
RESET = "reset"
FINISHED = "finished"
SKIPPED = "skipped"
FAILED = "failed"


class LifecycleScheduler:
    """Per-user day advance / reset at the local rollover hour"""

    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = now_utc,
        rollover_hour: int = ROLLOVER_HOUR,
        challenge_length: int = CHALLENGE_LENGTH_DAYS,
    ):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.rollover_hour = rollover_hour
        self.challenge_length = challenge_length

    async def run_job(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """JobQueue callback"""
        await self.run_tick()

    async def run_tick(self, now: Optional[datetime] = None) -> Counter:
        """
        Check every active user once

        A failure for one user is logged and the scan continues.

        Returns:
            Counter of outcomes (advanced / reset / finished / skipped / failed)
        """
        now = now or self.clock()
        outcomes: Counter = Counter()
        users = await self.store.list_active_users()

        for user in users:
            try:
                outcome = await self.process_user(user, now)
            except Exception as e:
                logger.error(f"Rollover check failed for user {user.telegram_id}: {e}", exc_info=True)
                outcome = FAILED
            if outcome:
                outcomes[outcome] += 1

        if outcomes:
            logger.info(f"Rollover tick over {len(users)} users: {dict(outcomes)}")
        return outcomes

    async def process_user(self, user: User, now: datetime) -> Optional[str]:
        """
        Judge the user's current day if it is their rollover hour

        Returns:
            Outcome name, or None if the user was not due
        """
        local = local_now(user.timezone, now)
        if local.hour != self.rollover_hour:
            return None
        today = local.date()
        if user.last_transition_date is not None and user.last_transition_date >= today:
            return None

        program = await self.store.get_program(user.telegram_id)
        if program is None:
            logger.warning(f"Active user {user.telegram_id} has no program, skipping rollover")
            return SKIPPED

        day_log = await self.store.get_day_log(user.telegram_id, user.attempt, user.current_day)
        status = day_status(day_log, program)

        if not status.complete:
            return await self._reset(user, today, status.missing)

        if day_log is not None and not day_log.completed:
            await self.store.mark_day_complete(user.telegram_id, user.attempt, user.current_day, now)

        if user.current_day >= self.challenge_length:
            return await self._finish(user, today, now)

        previous_target = program.calorie_target_for_day(user.current_day)
        next_day = user.current_day + 1
        advanced = user.model_copy(update={"current_day": next_day, "last_transition_date": today})
        if not await self.store.transition_user(advanced, user.current_day, user.attempt):
            return SKIPPED

        await self.store.create_day_log(user.telegram_id, user.attempt, next_day, today)
        logger.info(f"User {user.telegram_id} advanced to day {next_day}")
        await self.notifier.send_text(
            user.telegram_id, formatters.format_new_day(next_day, program, previous_target)
        )
        return ADVANCED

    async def _reset(self, user: User, today: date, missing: list[str]) -> str:
        reset = user.model_copy(update={
            "current_day": 1,
            "attempt": user.attempt + 1,
            "start_date": today,
            "last_transition_date": today,
        })
        if not await self.store.transition_user(reset, user.current_day, user.attempt):
            return SKIPPED

        await self.store.create_day_log(user.telegram_id, reset.attempt, 1, today)
        logger.info(
            f"User {user.telegram_id} reset to day 1 (attempt {reset.attempt}) "
            f"after failing day {user.current_day}: {missing}"
        )
        await self.notifier.send_text(user.telegram_id, formatters.format_reset(user.current_day, missing))
        return RESET

    async def _finish(self, user: User, today: date, now: datetime) -> str:
        finished = user.model_copy(update={"challenge_completed_at": now, "last_transition_date": today})
        if not await self.store.transition_user(finished, user.current_day, user.attempt):
            return SKIPPED

        logger.info(f"User {user.telegram_id} finished the challenge")
        await self.notifier.send_text(user.telegram_id, formatters.format_challenge_finished())
        return FINISHED
