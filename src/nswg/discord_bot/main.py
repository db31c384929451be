"""
NSWG Discord Bot Entry Point

Serves the raid attendance calendar and PERSCOM recruitment housekeeping
through slash commands organised as cogs.
"""

import asyncio
import logging

import discord

from nswg.discord_bot.bot import create_bot
from nswg.discord_bot.config import settings
from nswg.logging import configure_logging

configure_logging(settings.log_level, settings.discord_log_level)

logger = logging.getLogger(__name__)


async def main() -> None:
    """Log in and serve commands until the bot is closed."""
    bot = create_bot()
    logger.info(
        "Starting NSWG bot (env=%s, perscom_sync=%s)",
        settings.runtime_env,
        settings.perscom_sync_enabled,
    )

    try:
        await bot.start(settings.discord_bot_token)
    except discord.LoginFailure:
        logger.error("Discord rejected DISCORD_BOT_TOKEN; check the bot token.")
        raise
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    finally:
        await bot.close()


def run() -> None:
    """Sync entrypoint for console script."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
