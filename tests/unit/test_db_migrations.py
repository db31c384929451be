"""Unit tests for migration entry points."""

from pathlib import Path
from unittest.mock import patch

from nswg.db_migrations import build_alembic_config, run_attendance_migrations
from nswg.settings import SharedSettings


def _settings() -> SharedSettings:
    return SharedSettings(
        runtime_env="test", postgres_url="postgresql://postgres@db:5432/nswg"
    )


def test_alembic_config_targets_configured_database() -> None:
    cfg = build_alembic_config(_settings())

    assert cfg.get_main_option("sqlalchemy.url") == "postgresql+psycopg://postgres@db:5432/nswg"
    script_location = Path(cfg.get_main_option("script_location"))
    assert script_location.name == "migrations"
    assert (script_location / "env.py").exists()


def test_run_migrations_upgrades_to_head() -> None:
    with patch("nswg.db_migrations.command.upgrade") as upgrade:
        run_attendance_migrations(_settings())

    cfg, revision = upgrade.call_args.args
    assert revision == "head"
    assert cfg.get_main_option("sqlalchemy.url").startswith("postgresql+psycopg://")
