"""ProgramService - program lookups and the append-only user context"""
import logging
from datetime import datetime
from typing import Callable, Optional

from challenge_bot.db.store import RecordStore
from challenge_bot.models.intent import Intent
from challenge_bot.models.program import ProgramConfiguration, UserGoal, UserNote
from challenge_bot.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


class ProgramService:
    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.clock = clock

    async def get_program(self, user_id: str) -> Optional[ProgramConfiguration]:
        return await self.store.get_program(user_id)

    async def create_empty(self, user_id: str) -> ProgramConfiguration:
        """Default program for a new user; onboarding fills it in"""
        existing = await self.store.get_program(user_id)
        if existing is not None:
            return existing
        program = ProgramConfiguration(user_id=user_id, created_at=self.clock())
        await self.store.save_program(program)
        logger.info(f"Created empty program for {user_id}")
        return program

    async def add_context(self, user_id: str, intent: Intent) -> bool:
        """
        Remember goals, motivation, struggles and notes mentioned in a message

        Nothing is ever removed. A second, different "why" is kept as a note
        rather than replacing the first; struggles are de-duplicated.

        Returns:
            True if anything was added
        """
        if not (intent.goal or intent.why or intent.struggle or intent.note):
            return False

        program = await self.store.get_program(user_id)
        if program is None:
            logger.warning(f"No program for {user_id}, dropping context")
            return False

        context = program.context.model_copy(deep=True)
        stamp = self.clock()
        changed = False

        if intent.goal:
            context.goals.append(UserGoal(
                type=intent.goal_type or "other",
                description=intent.goal,
                mentioned_at=stamp,
            ))
            changed = True

        if intent.why:
            if context.why is None:
                context.why = intent.why
                changed = True
            elif context.why.strip().lower() != intent.why.strip().lower():
                context.notes.append(UserNote(note=f"Why: {intent.why}", mentioned_at=stamp))
                changed = True

        if intent.struggle:
            known = {s.strip().lower() for s in context.struggles}
            if intent.struggle.strip().lower() not in known:
                context.struggles.append(intent.struggle)
                changed = True

        if intent.note:
            context.notes.append(UserNote(note=intent.note, mentioned_at=stamp))
            changed = True

        if changed:
            await self.store.save_program(program.model_copy(update={"context": context}))
            logger.info(f"Updated context for {user_id}")
        return changed
