"""Parse the month the attendance command should display."""

from __future__ import annotations

import re
from datetime import date, datetime

from discord import app_commands

from nswg.attendance_calendar import as_utc, format_tracking_start

CUSTOM_DATE_RE = re.compile(r"^([0-9]{1,2})/([0-9]{4})$")

MONTH_OPTION_CHOICES = [
    app_commands.Choice(name="📅 Current Month", value="0"),
    app_commands.Choice(name="⬅️ Last Month", value="1"),
    app_commands.Choice(name="⬅️ Two Months Ago", value="2"),
    app_commands.Choice(name="⬅️ Three Months Ago", value="3"),
]


class MonthSelectionError(ValueError):
    """User-supplied month or date cannot be displayed."""


def shift_month(year: int, month: int, months_back: int) -> tuple[int, int]:
    """Return the (year, month) that is ``months_back`` months earlier."""
    index = year * 12 + (month - 1) - months_back
    shifted_year, shifted_month = divmod(index, 12)
    return shifted_year, shifted_month + 1


def parse_custom_date(raw_value: str) -> tuple[int, int]:
    """Parse ``MM/YYYY`` into (year, month)."""
    match = CUSTOM_DATE_RE.match(raw_value.strip())
    if match is None:
        raise MonthSelectionError(
            "Invalid date format. Please use MM/YYYY format (e.g., 02/2024)"
        )

    month = int(match.group(1))
    year = int(match.group(2))
    if not 1 <= month <= 12:
        raise MonthSelectionError(
            "Invalid date format. Please use MM/YYYY format (e.g., 02/2024)"
        )
    return year, month


def resolve_requested_month(
    month_option: str | None,
    custom_date: str | None,
    *,
    today: date,
    tracking_start: datetime,
    max_offset: int = 3,
) -> tuple[int, int]:
    """Resolve command options into the (year, month) to display.

    ``custom_date`` wins over ``month_option``. With neither, the current
    month is shown. All validation happens here so nothing is fetched for a
    rejected request.
    """
    current = (today.year, today.month)

    if custom_date and custom_date.strip():
        requested = parse_custom_date(custom_date)
        start = as_utc(tracking_start)
        if requested < (start.year, start.month):
            raise MonthSelectionError(
                "Cannot view attendance before tracking start date "
                f"({format_tracking_start(tracking_start)})"
            )
        if requested > current:
            raise MonthSelectionError("Cannot view future dates")
        return requested

    if month_option is not None:
        try:
            months_back = int(month_option)
        except ValueError:
            months_back = -1
        if not 0 <= months_back <= max_offset:
            raise MonthSelectionError(
                "Invalid month selection. Choose one of the listed months."
            )
        return shift_month(today.year, today.month, months_back)

    return current
