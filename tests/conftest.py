"""Shared pytest fixtures and environment defaults."""

import os
from unittest.mock import AsyncMock, Mock

import pytest

# Bot settings are instantiated at import time; provide required values first.
os.environ.setdefault("DISCORD_BOT_TOKEN", "test-discord-token")
os.environ.setdefault("RUNTIME_ENV", "test")
os.environ.setdefault("POSTGRES_URL", "postgresql://postgres@localhost:5432/nswg_test")


@pytest.fixture
def mock_bot():
    bot = Mock()
    bot.add_cog = AsyncMock()
    bot.get_cog = Mock()
    bot.wait_until_ready = AsyncMock()
    return bot


@pytest.fixture
def mock_interaction():
    interaction = Mock()
    interaction.response = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.is_done = Mock(return_value=False)
    interaction.followup = AsyncMock()
    interaction.followup.send = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    interaction.user = Mock()
    interaction.user.id = 123
    interaction.user.name = "requester"
    interaction.guild = Mock()
    interaction.guild.name = "NSWG"
    interaction.guild.id = 42
    return interaction
