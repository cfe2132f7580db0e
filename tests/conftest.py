"""
Pytest configuration and fixtures.
"""
from unittest.mock import AsyncMock

import pytest
from botbuilder.core import MemoryStorage

from standup_bot.bot import StandupBot
from standup_bot.repository import StandupRepository
from standup_bot.roster_store import RosterStore
from standup_bot.state import RosterMember, TeamData

from .helpers import ALICE, BOB, FakeTurnContext, make_activity


@pytest.fixture
def team():
    """TeamData with Bob and Alice on the roster (joined in that order)."""
    data = TeamData()
    store = RosterStore()
    store.add_or_update(data, RosterMember(id=BOB[0], name=BOB[1]))
    store.add_or_update(data, RosterMember(id=ALICE[0], name=ALICE[1]))
    return data


@pytest.fixture
def sender():
    """Proactive sender that always succeeds."""
    return AsyncMock(return_value=True)


@pytest.fixture
def repository():
    return StandupRepository(MemoryStorage())


@pytest.fixture
def bot(repository, sender):
    return StandupBot(repository, sender)


@pytest.fixture
def say(bot):
    """Send a message to the bot and get back the context with its replies."""
    async def _say(text, user=ALICE, **kwargs):
        context = FakeTurnContext(make_activity(text, user=user, **kwargs))
        await bot.on_message(context)
        return context
    return _say
