"""
Evening reminders and the near-deadline check-in

Runs every few minutes. An alert is due when the user's local clock is within
ALERT_TOLERANCE_MINUTES after one of their alert times; each (local date, time)
pair is sent at most once (`last_alert_key`). At DEADLINE_HOUR a final
check-in goes out once per local date (`last_deadline_alert_date`).
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Callable, Optional

from telegram.ext import ContextTypes

from challenge_bot.config import (
    ALERT_TOLERANCE_MINUTES,
    CHALLENGE_LENGTH_DAYS,
    DEADLINE_HOUR,
    REMINDER_MODEL,
    ROLLOVER_HOUR,
)
from challenge_bot.db.store import RecordStore
from challenge_bot.exceptions import ChallengeBotError
from challenge_bot.models.program import ProgramConfiguration
from challenge_bot.models.user import User
from challenge_bot.services.ai_client import AIClient
from challenge_bot.services.completion import CompletionStatus, day_status
from challenge_bot.services.notifier import Notifier
from challenge_bot.utils import formatters
from challenge_bot.utils.datetime_helpers import local_now, minutes_after, now_utc

logger = logging.getLogger(__name__)

REMINDER_SYSTEM = "You write short accountability reminders. Plain text only."

REMINDER_PROMPT = """Generate a brief, motivating reminder for someone on Day {day} of a {length}-day discipline challenge.
It's {clock} and they still need to complete: {missing}.
This is reminder {position} of {total} tonight{urgency}.

Keep it under 50 words. Be supportive but direct - not corny. They know the stakes.
Don't use excessive emojis. One is fine."""


def due_alert(alert_times: list[str], local: datetime, tolerance_minutes: int) -> Optional[tuple[int, str]]:
    """(position, HH:MM) of the alert whose window contains the local time, if any"""
    for position, hhmm in enumerate(sorted(alert_times)):
        if 0 <= minutes_after(local, hhmm) < tolerance_minutes:
            return position, hhmm
    return None


class AlertScheduler:
    """Reminder checks for every active user"""

    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        ai_client: Optional[AIClient] = None,
        clock: Callable[[], datetime] = now_utc,
        tolerance_minutes: int = ALERT_TOLERANCE_MINUTES,
        deadline_hour: int = DEADLINE_HOUR,
        rollover_hour: int = ROLLOVER_HOUR,
    ):
        self.store = store
        self.notifier = notifier
        self.ai = ai_client
        self.clock = clock
        self.tolerance_minutes = tolerance_minutes
        self.deadline_hour = deadline_hour
        self.rollover_hour = rollover_hour

    async def run_job(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """JobQueue callback"""
        await self.run_tick()

    async def run_tick(self, now: Optional[datetime] = None) -> Counter:
        """
        Check every active user once

        Returns:
            Counter with "alerts", "deadline" and "failed" entries
        """
        now = now or self.clock()
        sent: Counter = Counter()

        for user in await self.store.list_active_users():
            try:
                sent.update(await self.process_user(user, now))
            except Exception as e:
                logger.error(f"Alert check failed for user {user.telegram_id}: {e}", exc_info=True)
                sent["failed"] += 1

        if sent:
            logger.info(f"Alert tick: {dict(sent)}")
        return sent

    async def process_user(self, user: User, now: datetime) -> list[str]:
        """Send whatever is due for this user; returns the kinds sent"""
        local = local_now(user.timezone, now)
        program = await self.store.get_program(user.telegram_id)
        if program is None:
            return []

        sent = []
        alert = due_alert(program.alert_times, local, self.tolerance_minutes)
        if alert is not None:
            position, hhmm = alert
            key = f"{local.date().isoformat()}@{hhmm}"
            if user.last_alert_key != key:
                # Mark first: a failed send is not retried within the window
                await self.store.record_alert(user.telegram_id, alert_key=key)
                status = await self._status(user, program)
                if not status.complete:
                    text = await self._reminder_text(user, status, local, position, len(program.alert_times))
                    await self.notifier.send_text(user.telegram_id, text)
                    sent.append("alerts")

        if local.hour == self.deadline_hour and user.last_deadline_alert_date != local.date():
            await self.store.record_alert(user.telegram_id, deadline_date=local.date())
            status = await self._status(user, program)
            if not status.complete:
                await self.notifier.send_text(
                    user.telegram_id,
                    formatters.format_deadline_warning(user.current_day, status.missing, self.rollover_hour),
                )
                sent.append("deadline")

        return sent

    async def _status(self, user: User, program: ProgramConfiguration) -> CompletionStatus:
        day_log = await self.store.get_day_log(user.telegram_id, user.attempt, user.current_day)
        return day_status(day_log, program)

    async def _reminder_text(
        self,
        user: User,
        status: CompletionStatus,
        local: datetime,
        position: int,
        total: int,
    ) -> str:
        """AI-written reminder, or the template when the AI is unavailable"""
        fallback = formatters.format_alert(user.current_day, status.missing, position, total)
        if self.ai is None:
            return fallback

        prompt = REMINDER_PROMPT.format(
            day=user.current_day,
            length=CHALLENGE_LENGTH_DAYS,
            clock=local.strftime("%H:%M"),
            missing=", ".join(status.missing),
            position=position + 1,
            total=total,
            urgency=" (the last one, be more urgent)" if position == total - 1 and total > 1 else "",
        )
        try:
            text = await self.ai.complete(REMINDER_SYSTEM, prompt, model=REMINDER_MODEL, max_tokens=256)
        except ChallengeBotError as e:
            logger.warning(f"AI reminder failed for {user.telegram_id}, using template: {e.message}")
            return fallback
        return text.strip() or fallback
