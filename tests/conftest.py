import os

# Keep the scheduler off Redis and Telegram during tests
os.environ.setdefault("NOTIFICATION_JOBSTORE", "memory")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "")

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock
from telegram import Update, User, Message, Chat, CallbackQuery
from telegram.ext import ContextTypes

from reminder_engine.services.category_service import CategoryRegistry
from reminder_engine.services.reconciler import ScheduleReconciler
from helpers import (
    DEVICE_ID,
    USER_ID,
    FakeNotificationCenter,
    FakePreferences,
    FakeReminderStore,
    FakeScheduleStore,
    FixedClock,
)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def reminder_store():
    return FakeReminderStore()


@pytest.fixture
def schedule_store():
    return FakeScheduleStore()


@pytest.fixture
def center(clock):
    return FakeNotificationCenter(clock)


@pytest.fixture
def preferences():
    return FakePreferences()


@pytest.fixture
def reconciler(clock, reminder_store, schedule_store, center, preferences):
    return ScheduleReconciler(
        user_id=USER_ID,
        device_id=DEVICE_ID,
        reminder_store=reminder_store,
        schedule_store=schedule_store,
        notification_center=center,
        categories=CategoryRegistry(center),
        preferences=preferences,
        lock=asyncio.Lock(),
        clock=clock,
    )


@pytest.fixture
def mock_session():
    session = AsyncMock()

    # Setup execute result
    mock_result = MagicMock()
    # Ensure scalar_one_or_none returns a value, not a coroutine
    mock_result.scalar_one_or_none.return_value = None
    mock_result.scalars.return_value.all.return_value = []
    mock_result.rowcount = 1

    session.execute.side_effect = None
    session.execute.return_value = mock_result

    session.get.return_value = None

    # Standard methods
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()

    return session


@pytest.fixture
def mock_update():
    update = MagicMock(spec=Update)

    user = MagicMock(spec=User)
    user.id = 12345
    user.first_name = "Test"
    update.effective_user = user

    message = MagicMock(spec=Message)
    message.chat = MagicMock(spec=Chat)
    message.chat.id = 12345
    message.message_id = 77
    message.text = "Hello"
    message.reply_to_message = None
    message.reply_text = AsyncMock()
    update.message = message

    cb = MagicMock(spec=CallbackQuery)
    cb.data = "test_data"
    cb.message = message
    cb.answer = AsyncMock()
    update.callback_query = cb

    return update


@pytest.fixture
def mock_context():
    context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)
    context.bot_data = {}
    context.bot = MagicMock()
    context.bot.send_message = AsyncMock()
    return context
