"""Unit tests for guild member directory helpers."""

from unittest.mock import AsyncMock, Mock

import discord
import pytest

from nswg.discord_bot.utils.members import (
    GuildMember,
    fetch_guild_members,
    list_human_members,
)


def _member(member_id: int, name: str, *, bot: bool = False) -> Mock:
    member = Mock()
    member.id = member_id
    member.display_name = name
    member.bot = bot
    return member


def _listing(members):
    async def _iterate():
        for member in members:
            yield member

    return Mock(return_value=_iterate())


def _guild(cached=None, features=None) -> Mock:
    guild = Mock()
    guild.name = "NSWG"
    guild.id = 42
    guild.members = list(cached or [])
    guild.features = list(features or [])
    guild.chunk = AsyncMock()
    guild.fetch_members = _listing([])
    return guild


@pytest.mark.asyncio
async def test_cached_members_are_used_first() -> None:
    cached = [_member(1, "Alpha")]
    guild = _guild(cached=cached)

    members = await fetch_guild_members(guild)

    assert members == cached
    guild.chunk.assert_not_awaited()
    guild.fetch_members.assert_not_called()


@pytest.mark.asyncio
async def test_community_guild_uses_chunk_request() -> None:
    guild = _guild(features=["COMMUNITY"])
    guild.chunk.return_value = [_member(2, "Bravo")]

    members = await fetch_guild_members(guild)

    assert [member.id for member in members] == [2]
    guild.chunk.assert_awaited_once()


@pytest.mark.asyncio
async def test_chunk_failure_falls_back_to_listing() -> None:
    guild = _guild(features=["COMMUNITY"])
    guild.chunk.side_effect = discord.ClientException("chunking disabled")
    guild.fetch_members = _listing([_member(3, "Charlie")])

    members = await fetch_guild_members(guild)

    assert [member.id for member in members] == [3]


@pytest.mark.asyncio
async def test_listing_failure_without_cache_returns_none() -> None:
    guild = _guild()
    guild.fetch_members = Mock(
        side_effect=discord.ClientException("Intents.members must be enabled")
    )

    assert await fetch_guild_members(guild) is None


def test_list_human_members_drops_bots_and_sorts() -> None:
    members = [
        _member(1, "charlie"),
        _member(2, "Helper Bot", bot=True),
        _member(3, "Alpha"),
    ]

    assert list_human_members(members) == [
        GuildMember(id=3, display_name="Alpha"),
        GuildMember(id=1, display_name="charlie"),
    ]
