"""Raid attendance persistence helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from psycopg import Connection, Error, connect, sql
from psycopg.rows import dict_row

from nswg.settings import SharedSettings

logger = logging.getLogger(__name__)


class AttendanceUnavailableError(RuntimeError):
    """Raised when the attendance store cannot be queried."""


@dataclass(frozen=True)
class AttendanceRecord:
    """One confirmed raid presence for a player."""

    attended_at: datetime

    @property
    def attended_at_utc(self) -> datetime:
        """Timestamp normalized to UTC; naive values are taken as UTC."""
        if self.attended_at.tzinfo is None:
            return self.attended_at.replace(tzinfo=timezone.utc)
        return self.attended_at.astimezone(timezone.utc)


def get_postgres_connection(settings: SharedSettings) -> Connection:
    """Create a PostgreSQL connection from shared settings."""
    return connect(settings.postgres_url)


def is_postgres_healthy(settings: SharedSettings) -> bool:
    """Return whether Postgres is reachable and queryable."""
    try:
        with get_postgres_connection(settings) as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
        return True
    except Exception:
        return False


def fetch_player_attendance(
    settings: SharedSettings, player_name: str
) -> list[AttendanceRecord]:
    """Load every attendance record stored for a player name."""
    normalized = player_name.strip()
    if not normalized:
        return []

    query = sql.SQL(
        """
        SELECT attended_at
        FROM {table}
        WHERE lower(player_name) = lower(%s)
        ORDER BY attended_at;
        """
    ).format(table=sql.Identifier(settings.attendance_table))

    try:
        with get_postgres_connection(settings) as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(query, (normalized,))
                rows = cursor.fetchall()
    except Error as exc:
        logger.error("Attendance lookup failed for player=%s: %s", normalized, exc)
        raise AttendanceUnavailableError(str(exc)) from exc

    records = [
        AttendanceRecord(attended_at=row["attended_at"])
        for row in rows
        if isinstance(row.get("attended_at"), datetime)
    ]
    logger.debug("Loaded %s attendance records for %s", len(records), normalized)
    return records
