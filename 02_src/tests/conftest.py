"""Pytest configuration and fixtures."""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

TODAY = date(2024, 11, 20)
USER_ID = 111
STRANGER_ID = 999
CHAT_ID = 5000


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from rotabot.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from rotabot.tracker import Tracker

    return Tracker(storage)


@pytest.fixture
def clock():
    """Fixed 'today' for date arithmetic."""
    return lambda: TODAY


@pytest.fixture
def surface():
    from rotabot.models import Surface

    return Surface(chat_id=CHAT_ID)


@pytest.fixture
def messenger():
    """Messenger that records every sent message."""
    m = Mock()
    m.sent = []

    async def send(message):
        m.sent.append(message)

    m.send = AsyncMock(side_effect=send)
    m.answer_button = AsyncMock()
    return m


@pytest.fixture
def states():
    from rotabot.conversation import ConversationStateStore

    return ConversationStateStore()


@pytest.fixture
def dispatcher(storage, tracker, messenger, states, clock):
    """Dispatcher wired with the real dialogs and an allow-list of USER_ID."""
    from rotabot.conversation import AllowList, Dispatcher
    from rotabot.conversation.handlers import (
        Commands,
        LogEventDialog,
        RegisterItemDialog,
        ReportDialog,
    )

    return Dispatcher(
        states=states,
        authorizer=AllowList([USER_ID]),
        messenger=messenger,
        tracker=tracker,
        dialogs=[
            RegisterItemDialog(storage),
            LogEventDialog(storage, today=clock),
            ReportDialog(storage, today=clock),
        ],
        commands=Commands(storage, today=clock),
    )


@pytest_asyncio.fixture
async def household(storage):
    """Two followers, one lead and three items."""
    from rotabot.models import Role

    await storage.create_person("Alice", Role.FOLLOWS)
    await storage.create_person("Bob", Role.FOLLOWS)
    await storage.create_person("Mom", Role.LEADS)
    for name in ("Gruffalo", "Matilda", "Moomins"):
        await storage.create_item(name)
    return storage


@pytest.fixture
def failing_storage():
    """Storage double whose every call raises StorageError."""
    from rotabot.storage import StorageError

    st = Mock()
    error = StorageError("database is locked")
    for name in (
        "create_item",
        "list_readable_items",
        "create_person",
        "list_people",
        "create_event",
        "get_last_events",
        "get_ranked_items",
        "get_rarely_read_items",
        "save_trace_event",
        "get_trace_events",
    ):
        setattr(st, name, AsyncMock(side_effect=error))
    return st


def text(value: str):
    """Build a text event in the test chat."""
    from rotabot.models import Surface, TextInput

    return TextInput(text=value, surface=Surface(chat_id=CHAT_ID))


def click(payload: str, callback_id: str = ""):
    """Build a button click in the test chat."""
    from rotabot.models import ButtonClick, Surface

    return ButtonClick(payload=payload, surface=Surface(chat_id=CHAT_ID), callback_id=callback_id)
