"""Global test fixtures and utilities for challenge-bot tests"""
import pytest
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

from challenge_bot.db.memory_store import InMemoryStore
from challenge_bot.models.program import Book, DietMode, ProgramConfiguration
from challenge_bot.models.user import User
from challenge_bot.services.ai_client import AIClient
from challenge_bot.services.container import ServiceContainer

UTC = ZoneInfo("UTC")


class FakeClock:
    """Callable clock that tests can move forward"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return now


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Mid-afternoon UTC on a plain weekday"""
    return datetime(2026, 3, 10, 15, 0, tzinfo=UTC)


@pytest.fixture
def clock(fixed_now):
    return FakeClock(fixed_now)


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Fresh in-memory record store"""
    return InMemoryStore()


# ============================================================================
# User & Program Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "123456789"


def build_program(user_id: str, diet_mode: DietMode = DietMode.CONFIRM, **overrides) -> ProgramConfiguration:
    fields = {
        "user_id": user_id,
        "diet_mode": diet_mode,
        "diet_type": "flexible",
        "water_target": 128,
        "books": [Book(title="Atomic Habits", total_pages=320)],
    }
    if diet_mode == DietMode.DEFICIT:
        fields["base_calories"] = 2000
    if diet_mode == DietMode.TRACK:
        fields["calorie_target"] = 2400
        fields["protein_target"] = 180
    fields.update(overrides)
    return ProgramConfiguration(**fields)


def build_user(user_id: str, **overrides) -> User:
    fields = {
        "telegram_id": user_id,
        "first_name": "Test",
        "current_day": 1,
        "attempt": 1,
        "start_date": date(2026, 3, 10),
        "timezone": "UTC",
        "onboarding_complete": True,
        "last_transition_date": date(2026, 3, 10),
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def program(test_user_id):
    """Confirm-mode program"""
    return build_program(test_user_id)


@pytest.fixture
def deficit_program(test_user_id):
    return build_program(test_user_id, DietMode.DEFICIT)


@pytest.fixture
def track_program(test_user_id):
    return build_program(test_user_id, DietMode.TRACK)


@pytest.fixture
def user(test_user_id):
    """Onboarded user on Day 1 of attempt 1, UTC timezone"""
    return build_user(test_user_id)


@pytest.fixture
async def active_user(store, user, program):
    """User and confirm-mode program saved in the store, with an empty Day 1 log"""
    await store.create_user(user)
    await store.save_program(program)
    await store.create_day_log(user.telegram_id, user.attempt, user.current_day, user.start_date)
    return await store.get_user(user.telegram_id)


# ============================================================================
# Collaborator Mocks
# ============================================================================

@pytest.fixture
def mock_ai_client():
    """AIClient with mocked provider calls"""
    client = MagicMock(spec=AIClient)
    client.complete = AsyncMock(return_value="")
    client.complete_json = AsyncMock(return_value={})
    return client


@pytest.fixture
def notifier():
    """Notification sink that records every send"""
    sink = MagicMock()
    sink.send_text = AsyncMock(return_value=True)
    sink.send_photo = AsyncMock(return_value=True)
    return sink


@pytest.fixture
def container(store, mock_ai_client, notifier, clock):
    return ServiceContainer(store=store, ai_client=mock_ai_client, notifier=notifier, clock=clock)


# ============================================================================
# Telegram Mocks
# ============================================================================

@pytest.fixture
def telegram_update(test_user_id):
    """Mock Telegram Update for a private text message"""
    update = MagicMock()
    update.effective_user.id = int(test_user_id)
    update.effective_user.username = "testuser"
    update.effective_user.first_name = "Test"
    update.message.text = "hello"
    update.message.reply_text = AsyncMock()
    update.message.chat.send_action = AsyncMock()
    return update


@pytest.fixture
def telegram_context(container):
    """Mock handler context carrying the service container"""
    context = MagicMock()
    context.bot_data = {"container": container}
    return context


@pytest.fixture
def make_program():
    """Factory fixture: make_program(user_id, diet_mode, **overrides)"""
    return build_program


@pytest.fixture
def make_user():
    """Factory fixture: make_user(user_id, **overrides)"""
    return build_user


@pytest.fixture
def make_clock():
    return FakeClock
