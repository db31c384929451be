"""
Raid attendance cog for the NSWG Discord bot.

Lets members pick someone from the guild and view that person's raid
attendance for a month as a colored calendar grid.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

import discord
from discord import app_commands
from discord.ext import commands

from nswg.attendance import (
    AttendanceRecord,
    AttendanceUnavailableError,
    fetch_player_attendance,
)
from nswg.attendance_calendar import (
    CALENDAR_LEGEND,
    build_attendance_calendar,
    render_calendar_block,
)
from nswg.discord_bot.config import settings
from nswg.discord_bot.utils.member_select import SelectionOutcome, select_member
from nswg.discord_bot.utils.members import fetch_guild_members, list_human_members
from nswg.discord_bot.utils.month_selection import (
    MONTH_OPTION_CHOICES,
    MonthSelectionError,
    resolve_requested_month,
)

logger = logging.getLogger(__name__)

ATTENDANCE_UNAVAILABLE_MESSAGE = (
    "There was an error retrieving attendance data. This could be due to a "
    "database connection issue. Please try again in a few minutes."
)


class AttendanceCog(commands.Cog):
    """Raid attendance calendar commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def _load_attendance(self, player_name: str) -> list[AttendanceRecord]:
        return await asyncio.to_thread(fetch_player_attendance, settings, player_name)

    def _build_calendar_embed(
        self,
        member_name: str,
        records: Sequence[AttendanceRecord],
        year: int,
        month: int,
        *,
        now: datetime,
    ) -> discord.Embed:
        attendance_calendar = build_attendance_calendar(
            member_name,
            records,
            year,
            month,
            tracking_start=settings.attendance_tracking_start,
            now=now,
        )
        embed = discord.Embed(
            title=f"Attendance Calendar for {member_name}",
            description=render_calendar_block(
                attendance_calendar, settings.attendance_tracking_start
            ),
            color=discord.Color.blue(),
        )
        embed.set_footer(text=CALENDAR_LEGEND)
        return embed

    @app_commands.command(
        name="nswg-attendance", description="View member attendance calendar"
    )
    @app_commands.describe(
        month="Select which month to view (up to 3 months back)",
        custom_date="Enter a specific date (MM/YYYY format)",
    )
    @app_commands.choices(month=MONTH_OPTION_CHOICES)
    async def nswg_attendance(
        self,
        interaction: discord.Interaction,
        month: str | None = None,
        custom_date: str | None = None,
    ) -> None:
        """Show a member's raid attendance calendar."""
        try:
            await interaction.response.defer(ephemeral=True)

            now = datetime.now(timezone.utc)
            try:
                year, month_number = resolve_requested_month(
                    month,
                    custom_date,
                    today=now.date(),
                    tracking_start=settings.attendance_tracking_start,
                    max_offset=settings.attendance_lookback_months,
                )
            except MonthSelectionError as exc:
                await interaction.edit_original_response(content=str(exc))
                return

            guild = interaction.guild
            if guild is None:
                await interaction.edit_original_response(
                    content="This command can only be used in a server."
                )
                return

            members = await fetch_guild_members(guild)
            if not members:
                await interaction.edit_original_response(
                    content=(
                        "Unable to fetch server members. Please ensure the bot has "
                        "the correct permissions and try again."
                    )
                )
                return

            member_list = list_human_members(members)
            if not member_list:
                await interaction.edit_original_response(
                    content="No members found in the server (excluding bots)."
                )
                return

            logger.info(
                "Found %s members in guild %s for attendance lookup",
                len(member_list),
                guild.name,
            )

            selection = await select_member(
                interaction,
                member_list,
                page_size=settings.member_select_page_size,
                timeout=settings.member_select_timeout_seconds,
            )

            if selection.outcome is SelectionOutcome.TIMED_OUT:
                await interaction.edit_original_response(
                    content="Selection timed out.", view=None
                )
                return
            if selection.outcome is SelectionOutcome.CANCELLED:
                await interaction.edit_original_response(
                    content="Selection cancelled.", view=None
                )
                return
            if selection.member is None:
                await interaction.edit_original_response(
                    content="Selected member not found.", view=None
                )
                return

            selected = selection.member
            try:
                records = await self._load_attendance(selected.display_name)
            except AttendanceUnavailableError as exc:
                logger.error(
                    "Error fetching attendance data for %s: %s",
                    selected.display_name,
                    exc,
                )
                await interaction.edit_original_response(
                    content=ATTENDANCE_UNAVAILABLE_MESSAGE, view=None
                )
                return

            embed = self._build_calendar_embed(
                selected.display_name,
                records,
                year,
                month_number,
                now=now,
            )
            await interaction.followup.send(embed=embed)
            await interaction.edit_original_response(
                content="Attendance calendar has been displayed.", view=None
            )
            logger.info(
                "Displayed %04d-%02d attendance for %s (%s records)",
                year,
                month_number,
                selected.display_name,
                len(records),
            )

        except Exception as e:
            logger.exception("Unexpected error in nswg_attendance: %s", e)
            try:
                await interaction.edit_original_response(
                    content="❌ An unexpected error occurred while loading attendance.",
                    view=None,
                )
            except discord.HTTPException as followup_error:
                logger.warning("Failed to report attendance error: %s", followup_error)


async def setup(bot: commands.Bot) -> None:
    """Add the attendance cog to the bot."""
    cog = AttendanceCog(bot)
    await bot.add_cog(cog)
