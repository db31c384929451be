"""Alembic environment for the raid attendance schema."""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from nswg.settings import SharedSettings, normalize_sqlalchemy_postgres_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Schema is managed by hand-written revisions; there is no ORM metadata.
target_metadata = None


def _database_url() -> str:
    """Prefer the URL set by ``build_alembic_config``, else shared settings."""
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return normalize_sqlalchemy_postgres_url(url)
    return SharedSettings().sqlalchemy_postgres_url


def run_offline() -> None:
    """Emit SQL for the attendance revisions without connecting."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    """Apply the attendance revisions over a short-lived connection."""
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = _database_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
