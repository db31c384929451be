"""Shared configuration settings across the bot and its tooling."""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Docker Compose default; set POSTGRES_URL when running outside Compose.
COMPOSE_POSTGRES_URL = "postgresql://postgres@postgres:5432/nswg"


def normalize_sqlalchemy_postgres_url(url: str) -> str:
    """Normalize psycopg DSN for SQLAlchemy usage."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


class SharedSettings(BaseSettings):
    """Base settings shared by the bot process and migration tooling."""

    runtime_env: str = "local"
    log_level: str = "INFO"
    discord_log_level: str | None = "WARNING"

    postgres_url: str = COMPOSE_POSTGRES_URL
    attendance_table: str = "raid_attendance"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @model_validator(mode="after")
    def validate_required_secrets(self) -> "SharedSettings":
        """Require an explicit database URL in non-local runtime environments."""
        env = self.runtime_env.strip().lower()
        if env in {"local", "dev", "development", "test"}:
            return self

        url = self.postgres_url.strip()
        if not url or url == COMPOSE_POSTGRES_URL:
            raise ValueError("POSTGRES_URL must be set when RUNTIME_ENV is non-local.")
        return self

    @property
    def sqlalchemy_postgres_url(self) -> str:
        """Postgres URL in the form SQLAlchemy/Alembic expects."""
        return normalize_sqlalchemy_postgres_url(self.postgres_url)
