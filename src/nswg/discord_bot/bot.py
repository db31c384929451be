"""Bot construction, slash-command registration and the health endpoint."""

from __future__ import annotations

import asyncio
import logging

import discord
from aiohttp import web
from discord import app_commands
from discord.ext import commands

from nswg.attendance import is_postgres_healthy
from nswg.discord_bot.config import settings

logger = logging.getLogger(__name__)

COGS = (
    "nswg.discord_bot.cogs.attendance",
    "nswg.discord_bot.cogs.perscom_sync",
)


class NSWGBot(commands.Bot):
    """Command bot that registers its slash commands per guild."""

    def __init__(self, *, health_port: int | None = None) -> None:
        intents = discord.Intents.default()
        intents.members = True
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)
        self.health_port = health_port
        self._health_runner: web.AppRunner | None = None
        self._commands_synced = False
        self.tree.error(self.on_app_command_error)

    async def setup_hook(self) -> None:
        for extension in COGS:
            await self.load_extension(extension)
            logger.info("Loaded extension %s", extension)

        if self.health_port is not None:
            await self.start_health_server(self.health_port)

    async def sync_guild_commands(self, guild: discord.abc.Snowflake) -> bool:
        """Register the global command set on one guild."""
        guild_name = getattr(guild, "name", guild.id)
        try:
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
        except discord.HTTPException as exc:
            logger.error("Failed to refresh commands for guild %s: %s", guild_name, exc)
            return False

        logger.info("Refreshed %s commands for guild %s", len(synced), guild_name)
        return True

    async def on_ready(self) -> None:
        logger.info("Command bot has logged in as %s", self.user)
        # on_ready fires again after every full reconnect.
        if self._commands_synced:
            return
        self._commands_synced = True
        logger.info("Started refreshing application (/) commands.")
        for guild in self.guilds:
            await self.sync_guild_commands(guild)
        logger.info("Finished refreshing all guild commands.")

    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info("Registering commands for new guild: %s", guild.name)
        await self.sync_guild_commands(guild)

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        command_name = interaction.command.name if interaction.command else "unknown"
        logger.error("Error executing command %s: %s", command_name, error)
        message = "There was an error executing this command!"
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as exc:
            logger.warning("Failed to report command error: %s", exc)

    async def health(self, request: web.Request) -> web.Response:
        ready = self.is_ready()
        postgres_ok = await asyncio.to_thread(is_postgres_healthy, settings)
        if not ready:
            status = "starting"
        elif postgres_ok:
            status = "healthy"
        else:
            status = "degraded"
        return web.json_response(
            {"status": status, "discord_ready": ready, "postgres": postgres_ok},
            status=200 if ready else 503,
        )

    async def start_health_server(self, port: int) -> None:
        app = web.Application()
        app.router.add_get("/health", self.health)
        runner = web.AppRunner(app)
        await runner.setup()
        await web.TCPSite(runner, host="0.0.0.0", port=port).start()
        self._health_runner = runner
        logger.info("Healthcheck listening on port %s", port)

    async def close(self) -> None:
        if self._health_runner is not None:
            await self._health_runner.cleanup()
            self._health_runner = None
        await super().close()


def create_bot() -> NSWGBot:
    """Build the bot with settings from the environment."""
    return NSWGBot(health_port=settings.healthcheck_port)
