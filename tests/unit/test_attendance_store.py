"""Unit tests for attendance persistence helpers."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from nswg.attendance import (
    AttendanceUnavailableError,
    fetch_player_attendance,
    is_postgres_healthy,
)
from nswg.settings import SharedSettings


@pytest.fixture
def settings() -> SharedSettings:
    return SharedSettings(
        runtime_env="test", postgres_url="postgresql://postgres@localhost:5432/nswg"
    )


def _connection(rows):
    cursor = MagicMock()
    cursor.fetchall.return_value = rows
    cursor.__enter__.return_value = cursor

    conn = MagicMock()
    conn.cursor.return_value = cursor
    conn.__enter__.return_value = conn
    return conn, cursor


def test_fetch_returns_records_for_player(settings) -> None:
    attended = datetime(2024, 1, 3, 20, 0, tzinfo=timezone.utc)
    conn, cursor = _connection([{"attended_at": attended}, {"attended_at": None}])

    with patch("nswg.attendance.connect", return_value=conn) as connect:
        records = fetch_player_attendance(settings, "  Alpha ")

    connect.assert_called_once_with(settings.postgres_url)
    assert cursor.execute.call_args.args[1] == ("Alpha",)
    assert [record.attended_at for record in records] == [attended]


def test_blank_player_name_skips_query(settings) -> None:
    with patch("nswg.attendance.connect") as connect:
        assert fetch_player_attendance(settings, "   ") == []

    connect.assert_not_called()


def test_database_errors_become_unavailable(settings) -> None:
    with patch(
        "nswg.attendance.connect",
        side_effect=psycopg.OperationalError("connection refused"),
    ):
        with pytest.raises(AttendanceUnavailableError, match="connection refused"):
            fetch_player_attendance(settings, "Alpha")


def test_is_postgres_healthy(settings) -> None:
    conn, _ = _connection([])

    with patch("nswg.attendance.connect", return_value=conn):
        assert is_postgres_healthy(settings) is True

    with patch(
        "nswg.attendance.connect", side_effect=psycopg.OperationalError("down")
    ):
        assert is_postgres_healthy(settings) is False
