"""Guild member directory helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import discord

logger = logging.getLogger(__name__)

MISSING_ACCESS = 50001
MISSING_PERMISSIONS = 50013


@dataclass(frozen=True)
class GuildMember:
    """Minimal member identity used by the selection menu."""

    id: int
    display_name: str


async def fetch_guild_members(guild: discord.Guild) -> Sequence[discord.Member] | None:
    """Return the guild's members, preferring the local cache.

    Falls back from the cache to a gateway chunk request (community guilds),
    then a REST listing. If fetching fails the cache is used when it has
    anything in it; otherwise None is returned.
    """
    logger.info(
        "Loading members for guild %s (id=%s), cached=%s",
        guild.name,
        guild.id,
        len(guild.members),
    )
    if guild.members:
        return list(guild.members)

    try:
        if "COMMUNITY" in guild.features:
            try:
                members = await guild.chunk(cache=True)
                logger.info(
                    "Chunked %s members from community guild %s",
                    len(members),
                    guild.name,
                )
                return list(members)
            except (discord.HTTPException, discord.ClientException) as chunk_error:
                logger.warning(
                    "Chunk fetch failed for community guild %s, falling back to "
                    "member listing: %s",
                    guild.name,
                    chunk_error,
                )

        members = [member async for member in guild.fetch_members(limit=None)]
        logger.info("Fetched %s members from %s", len(members), guild.name)
        return members
    except (discord.HTTPException, discord.ClientException) as exc:
        code = getattr(exc, "code", None)
        if code == MISSING_ACCESS:
            logger.error("Missing access fetching members for %s", guild.name)
        elif code == MISSING_PERMISSIONS:
            logger.error("Missing permissions fetching members for %s", guild.name)
        else:
            logger.error("Error fetching guild members for %s: %s", guild.name, exc)

        if guild.members:
            logger.warning(
                "Falling back to %s cached members for %s",
                len(guild.members),
                guild.name,
            )
            return list(guild.members)
        return None


def list_human_members(members: Iterable[discord.Member]) -> list[GuildMember]:
    """Drop bots and return members sorted by display name."""
    humans = [
        GuildMember(id=member.id, display_name=member.display_name)
        for member in members
        if not member.bot
    ]
    return sorted(humans, key=lambda member: member.display_name.casefold())
