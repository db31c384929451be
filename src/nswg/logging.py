"""Shared logging setup."""

import logging


def configure_logging(level: str = "INFO", discord_level: str | None = None) -> None:
    """Configure process-wide logging in a consistent way."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # discord.py gateway chatter is only useful when debugging the connection.
    if discord_level:
        logging.getLogger("discord").setLevel(discord_level.upper())
