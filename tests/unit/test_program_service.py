"""Unit tests for ProgramService context updates"""
import pytest

from challenge_bot.models.intent import Intent
from challenge_bot.models.program import DietMode
from challenge_bot.services.program_service import ProgramService


@pytest.fixture
def program_service(store, clock):
    return ProgramService(store, clock)


@pytest.fixture
async def saved_program(store, program):
    await store.save_program(program)
    return program


class TestAddContext:

    @pytest.mark.asyncio
    async def test_nothing_to_remember(self, program_service, saved_program, store):
        assert await program_service.add_context(saved_program.user_id, Intent(water_oz=16)) is False

    @pytest.mark.asyncio
    async def test_goal_recorded_with_timestamp(self, program_service, saved_program, store, fixed_now):
        added = await program_service.add_context(
            saved_program.user_id, Intent(goal="lose 20 lbs", goal_type="weight")
        )

        assert added is True
        goals = (await store.get_program(saved_program.user_id)).context.goals
        assert goals[0].description == "lose 20 lbs"
        assert goals[0].type == "weight"
        assert goals[0].mentioned_at == fixed_now

    @pytest.mark.asyncio
    async def test_second_why_becomes_note(self, program_service, saved_program, store):
        await program_service.add_context(saved_program.user_id, Intent(why="for my kids"))
        await program_service.add_context(saved_program.user_id, Intent(why="For my kids"))
        await program_service.add_context(saved_program.user_id, Intent(why="prove I can"))

        context = (await store.get_program(saved_program.user_id)).context
        assert context.why == "for my kids"
        assert [n.note for n in context.notes] == ["Why: prove I can"]

    @pytest.mark.asyncio
    async def test_struggles_deduplicated(self, program_service, saved_program, store):
        assert await program_service.add_context(saved_program.user_id, Intent(struggle="late snacking"))
        assert not await program_service.add_context(saved_program.user_id, Intent(struggle="Late snacking "))

        context = (await store.get_program(saved_program.user_id)).context
        assert context.struggles == ["late snacking"]

    @pytest.mark.asyncio
    async def test_context_is_append_only(self, program_service, saved_program, store):
        await program_service.add_context(saved_program.user_id, Intent(note="travels on weekends"))
        await program_service.add_context(saved_program.user_id, Intent(goal="run a 10k"))

        context = (await store.get_program(saved_program.user_id)).context
        assert [n.note for n in context.notes] == ["travels on weekends"]
        assert len(context.goals) == 1

    @pytest.mark.asyncio
    async def test_missing_program(self, program_service):
        assert await program_service.add_context("nobody", Intent(note="hi")) is False


class TestCreateEmpty:

    @pytest.mark.asyncio
    async def test_defaults_saved(self, program_service, store, fixed_now):
        program = await program_service.create_empty("321")

        stored = await store.get_program("321")
        assert stored.diet_mode == DietMode.CONFIRM
        assert stored.water_target == 128
        assert stored.created_at == fixed_now

    @pytest.mark.asyncio
    async def test_existing_program_kept(self, program_service, saved_program, store):
        await program_service.add_context(saved_program.user_id, Intent(why="my kids"))

        program = await program_service.create_empty(saved_program.user_id)

        assert program.context.why == "my kids"
        assert (await store.get_program(saved_program.user_id)).context.why == "my kids"
