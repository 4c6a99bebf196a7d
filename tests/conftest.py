"""
Pytest configuration and shared fakes for Concierge tests.
"""

import os
import sys
import tempfile
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

# Keep test runs from writing session logs into the project tree.
# Must be set before anything imports concierge.util.logger.
os.environ.setdefault("CONCIERGE_LOG_DIR", tempfile.mkdtemp(prefix="concierge-test-logs-"))

# Add src directory to path so imports work without an editable install
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


class FakeUser:
    """Stand-in for discord.User / discord.Member."""

    def __init__(self, name="alice", user_id=1, *, bot=False, permissions=None):
        self.name = name
        self.id = user_id
        self.bot = bot
        self.mention = f"<@{user_id}>"
        self.guild_permissions = SimpleNamespace(
            **{"ban_members": False, "kick_members": False, **(permissions or {})}
        )
        self.ban = AsyncMock()
        self.kick = AsyncMock()

    def __str__(self):
        return self.name


class FakeMessage:
    """Stand-in for discord.Message with awaitable reply/send."""

    def __init__(self, content="", *, author=None, direct=False, mentions=None, message_id=100):
        self.id = message_id
        self.content = content
        self.author = author or FakeUser()
        self.guild = None if direct else SimpleNamespace(id=10, name="Test Guild")
        self.channel = SimpleNamespace(id=20, send=AsyncMock())
        self.mentions = list(mentions or [])
        self.reply = AsyncMock()


@pytest.fixture
def make_user():
    return FakeUser


@pytest.fixture
def make_message():
    return FakeMessage
