"""PERSCOM applicant sync cog for recruitment housekeeping."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import discord
from discord import app_commands
from discord.ext import commands, tasks

from nswg.applicant_sync import ApplicantSyncProcessor
from nswg.clients.perscom import PerscomAPI
from nswg.discord_bot.config import settings

logger = logging.getLogger(__name__)

MAX_APPLICANT_FIELDS = 25


class PerscomSync(commands.Cog):
    """Periodically prune denied applicants and expose manual PERSCOM commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self._sync_lock = asyncio.Lock()

    async def cog_load(self) -> None:
        """Start the sync loop when this cog is loaded and sync is enabled."""
        if settings.perscom_start_page_warning:
            logger.warning(settings.perscom_start_page_warning)
        if settings.perscom_sync_enabled and not self.task_prune_denied.is_running():
            self.task_prune_denied.start()

    async def cog_unload(self) -> None:
        """Cancel the background task when cog is unloaded."""
        self.task_prune_denied.cancel()

    def _new_api(self) -> PerscomAPI:
        return PerscomAPI(
            settings.perscom_api_token or "",
            base_url=settings.perscom_base_url,
            timeout_seconds=settings.perscom_timeout_seconds,
        )

    def _new_processor(self, api: PerscomAPI) -> ApplicantSyncProcessor:
        return ApplicantSyncProcessor(
            api,
            form_id=settings.perscom_submission_form_id,
            start_page=settings.perscom_submissions_start_page,
            denied_status_id=settings.perscom_denied_status_id or 0,
        )

    async def run_prune(self) -> dict[str, Any]:
        """Run one denied-applicant prune; concurrent runs are serialized."""
        async with self._sync_lock:
            async with self._new_api() as api:
                return await self._new_processor(api).prune_denied_applicants()

    @tasks.loop(minutes=settings.perscom_sync_interval_minutes)
    async def task_prune_denied(self) -> None:
        """Delete PERSCOM users behind denied applications."""
        try:
            summary = await self.run_prune()
        except Exception as exc:
            logger.exception("PERSCOM applicant sync failed: %s", exc)
            return

        logger.info(
            "PERSCOM applicant sync complete denied=%s deleted=%s failed=%s",
            summary["denied_count"],
            len(summary["deleted_user_ids"]),
            len(summary["failed_user_ids"]),
        )

    @task_prune_denied.before_loop
    async def before_prune_denied(self) -> None:
        await self.bot.wait_until_ready()

    @app_commands.command(
        name="perscom-sync",
        description="Delete PERSCOM users for denied applications (Admin only)",
    )
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def perscom_sync(self, interaction: discord.Interaction) -> None:
        """Run the denied-applicant prune now and report the result."""
        await interaction.response.defer(ephemeral=True)

        if not settings.perscom_configured:
            await interaction.followup.send("❌ PERSCOM is not configured.")
            return
        if settings.perscom_denied_status_id is None:
            await interaction.followup.send(
                "❌ No denied status is configured for PERSCOM sync."
            )
            return

        try:
            summary = await self.run_prune()
        except Exception as exc:
            logger.exception("Manual PERSCOM sync failed: %s", exc)
            await interaction.followup.send(
                "❌ An unexpected error occurred while syncing PERSCOM. "
                "Please try again later."
            )
            return

        failed = summary["failed_user_ids"]
        embed = discord.Embed(
            title="✅ PERSCOM Sync Complete" if not failed else "⚠️ PERSCOM Sync Partial",
            color=0x00FF00 if not failed else 0xFFA500,
        )
        embed.add_field(
            name="Submissions checked", value=str(summary["submissions_seen"])
        )
        embed.add_field(name="Denied", value=str(summary["denied_count"]))
        embed.add_field(
            name="Users deleted", value=str(len(summary["deleted_user_ids"]))
        )
        if failed:
            embed.add_field(
                name="Failed deletions",
                value=", ".join(str(user_id) for user_id in failed)[:1024],
                inline=False,
            )
        await interaction.followup.send(embed=embed)

    @app_commands.command(
        name="perscom-applicants",
        description="List applicants with an accepted PERSCOM status",
    )
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def perscom_applicants(self, interaction: discord.Interaction) -> None:
        """Show accepted applicants from the PERSCOM application form."""
        await interaction.response.defer(ephemeral=True)

        status_id = settings.perscom_accepted_status_id
        if not settings.perscom_configured or status_id is None:
            await interaction.followup.send(
                "❌ PERSCOM accepted-status lookup is not configured."
            )
            return

        try:
            async with self._new_api() as api:
                applicants = await self._new_processor(
                    api
                ).list_applicants_with_status(status_id)
        except Exception as exc:
            logger.exception("PERSCOM applicant lookup failed: %s", exc)
            await interaction.followup.send(
                "❌ Unable to reach PERSCOM right now. Please try again later."
            )
            return

        if not applicants:
            await interaction.followup.send("🔍 No accepted applicants found.")
            return

        embed = discord.Embed(
            title="📋 Accepted Applicants",
            description=f"Found {len(applicants)} accepted applicant(s).",
            color=0x0099FF,
        )
        for applicant in applicants[:MAX_APPLICANT_FIELDS]:
            embed.add_field(
                name=f"👤 {applicant.first_name or 'Unknown'}",
                value=(
                    f"💬 Discord: {applicant.discord_name or 'Unknown'}\n"
                    f"🎯 Position: {applicant.preferred_position or 'Unspecified'}"
                ),
                inline=True,
            )
        if len(applicants) > MAX_APPLICANT_FIELDS:
            embed.set_footer(
                text=f"Showing {MAX_APPLICANT_FIELDS} of {len(applicants)} applicants"
            )
        await interaction.followup.send(embed=embed)


async def setup(bot: commands.Bot) -> None:
    """Add the PerscomSync cog to the bot."""
    cog = PerscomSync(bot)
    await bot.add_cog(cog)
