"""PostgreSQL migration entry points for the attendance schema."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config

from nswg.logging import configure_logging
from nswg.settings import SharedSettings

_ALEMBIC_CFG_PATH = Path(__file__).resolve().parent / "alembic.ini"


def build_alembic_config(settings: SharedSettings) -> Config:
    """Alembic config pointed at the configured Postgres database."""
    cfg = Config(str(_ALEMBIC_CFG_PATH))
    cfg.set_main_option("sqlalchemy.url", settings.sqlalchemy_postgres_url)
    return cfg


def run_attendance_migrations(settings: SharedSettings | None = None) -> None:
    """Run Alembic migrations to ensure the attendance table exists and is current."""
    settings = settings or SharedSettings()
    configure_logging(settings.log_level)
    command.upgrade(build_alembic_config(settings), "head")
