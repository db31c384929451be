"""
Configuration management for the NSWG Discord bot.

This module uses Pydantic settings to handle environment variables
and configuration with type validation and default values.
"""

from datetime import datetime, timezone

from pydantic import field_validator, model_validator

from nswg.clients.perscom import DEFAULT_BASE_URL
from nswg.settings import SharedSettings


class Settings(SharedSettings):
    """
    Bot configuration settings with environment variable support.

    All settings can be overridden via environment variables.
    Required settings must be provided via environment variables or .env file.
    """

    discord_bot_token: str

    # Healthcheck Configuration
    healthcheck_port: int = 3000

    # Attendance calendar
    attendance_tracking_start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)
    attendance_lookback_months: int = 3
    member_select_page_size: int = 24
    member_select_timeout_seconds: float = 60.0

    # PERSCOM settings
    perscom_api_token: str | None = None
    perscom_base_url: str = DEFAULT_BASE_URL
    perscom_timeout_seconds: float = 10.0
    perscom_submission_form_id: int = 1
    perscom_submissions_start_page: int = 4
    perscom_accepted_status_id: int | None = None
    perscom_denied_status_id: int | None = None
    perscom_sync_enabled: bool = False
    perscom_sync_interval_minutes: int = 60

    @field_validator("attendance_tracking_start", mode="after")
    @classmethod
    def _tracking_start_as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("member_select_page_size")
    @classmethod
    def _validate_page_size(cls, value: int) -> int:
        # Discord allows 25 options per select; one slot is kept for "Next Page".
        if not 1 <= value <= 24:
            raise ValueError("MEMBER_SELECT_PAGE_SIZE must be between 1 and 24")
        return value

    @field_validator("perscom_submissions_start_page")
    @classmethod
    def _validate_start_page(cls, value: int) -> int:
        if value < 1:
            raise ValueError("PERSCOM_SUBMISSIONS_START_PAGE must be at least 1")
        return value

    @model_validator(mode="after")
    def validate_perscom_sync_settings(self) -> "Settings":
        """Require PERSCOM credentials when the applicant sync loop is enabled."""
        if not self.perscom_sync_enabled:
            return self

        if not (self.perscom_api_token or "").strip():
            raise ValueError(
                "PERSCOM_API_TOKEN must be set when PERSCOM_SYNC_ENABLED=true"
            )
        if self.perscom_denied_status_id is None:
            raise ValueError(
                "PERSCOM_DENIED_STATUS_ID must be set when PERSCOM_SYNC_ENABLED=true"
            )
        return self

    @property
    def perscom_configured(self) -> bool:
        """Whether PERSCOM calls can be made at all."""
        return bool((self.perscom_api_token or "").strip())

    @property
    def perscom_start_page_warning(self) -> str | None:
        """Notice logged when submission paging skips the first pages."""
        if self.perscom_submissions_start_page <= 1:
            return None
        return (
            "PERSCOM submission paging starts at page "
            f"{self.perscom_submissions_start_page}; earlier pages are skipped. "
            "Set PERSCOM_SUBMISSIONS_START_PAGE=1 to include them."
        )


settings = Settings()  # type: ignore[call-arg]
