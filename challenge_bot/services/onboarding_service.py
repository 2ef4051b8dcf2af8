"""
OnboardingService - drives the wizard against storage

The wizard decides; this service persists. A new state is saved before its
prompt is returned for sending, so a crash after the save only loses the
message, never the answer.
"""

import logging
from datetime import datetime
from typing import Callable

from challenge_bot.db.store import RecordStore
from challenge_bot.models.onboarding import OnboardingDraft
from challenge_bot.models.user import User
from challenge_bot.onboarding import wizard
from challenge_bot.onboarding.wizard import Advanced, Committed, Rejected
from challenge_bot.utils.datetime_helpers import local_today, now_utc

logger = logging.getLogger(__name__)


class OnboardingService:
    """Onboarding persistence and Day 1 activation"""

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.clock = clock

    async def begin(self, user: User) -> str:
        """
        Start onboarding, or resume it where the user left off

        Returns:
            Prompt for the current step
        """
        if user.onboarding_state is None:
            user.onboarding_state = wizard.start()
            await self.store.save_user(user)
            logger.info(f"Started onboarding for {user.telegram_id}")
        return wizard.prompt_for(user.onboarding_state)

    async def handle_reply(self, user: User, reply: str) -> str:
        """
        Apply one reply to the user's onboarding

        Args:
            user: User in onboarding (state is created if missing)
            reply: The user's message

        Returns:
            Message to send back
        """
        state = user.onboarding_state or wizard.start()
        result = wizard.advance(state, reply)

        if isinstance(result, Rejected):
            return result.message

        if isinstance(result, Advanced):
            user.onboarding_state = result.state
            await self.store.save_user(user)
            logger.info(f"Onboarding {user.telegram_id}: {state.step.value} -> {result.state.step.value}")
            return result.message

        if isinstance(result, Committed):
            await self.commit(user, result.data)
            return result.message

        raise TypeError(f"Unexpected wizard result: {result!r}")

    async def commit(self, user: User, draft: OnboardingDraft) -> User:
        """
        Write the program, activate Day 1 and open its log

        The rollover guard is set to the start date so a rollover later the
        same local day does not judge an empty Day 1.
        """
        existing = await self.store.get_program(user.telegram_id)
        program = draft.to_program(user.telegram_id, existing)
        await self.store.save_program(program)

        timezone = draft.timezone or user.timezone
        today = local_today(timezone, self.clock())
        activated = user.model_copy(update={
            "onboarding_complete": True,
            "onboarding_state": None,
            "current_day": 1,
            "attempt": 1,
            "start_date": today,
            "timezone": timezone,
            "last_transition_date": today,
            "challenge_completed_at": None,
        })
        await self.store.save_user(activated)
        await self.store.create_day_log(activated.telegram_id, activated.attempt, 1, today)

        logger.info(
            f"Onboarding complete for {user.telegram_id}: {program.diet_mode.value} mode, "
            f"timezone {timezone}, Day 1 on {today}"
        )
        return activated
