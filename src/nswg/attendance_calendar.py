"""Raid attendance month calendar.

Maps a player's attendance records onto a Sunday-first month grid and
computes the attendance rate over the month's raid days. Everything here is
pure: the current time is passed in by the caller so results never depend on
the wall clock.

Raid days are Wednesdays and Saturdays. A raid day is *counted* when it is on
or after the tracking start and not after the cutoff, which is ``now`` for the
current UTC month and the last day of the month otherwise.
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import StrEnum

from nswg.attendance import AttendanceRecord

RAID_WEEKDAYS = frozenset({calendar.WEDNESDAY, calendar.SATURDAY})
WEEKDAY_LABELS = ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa")
CALENDAR_LEGEND = "🟩 = Present | 🟥 = Absent | ⬜ = Not a Raid Day"

ANSI_PRESENT = "\x1b[32;1m"
ANSI_ABSENT = "\x1b[31;1m"
ANSI_RESET = "\x1b[0m"

_CELL_WIDTH = 2
_CELL_PADDING = 1


class CalendarCell(StrEnum):
    """Display state of one grid cell."""

    PRESENT = "present"
    ABSENT = "absent"
    NOT_COUNTED = "not_counted"
    BLANK = "blank"


@dataclass(frozen=True)
class CalendarDay:
    """One grid cell; ``day`` is None for padding cells."""

    day: int | None
    cell: CalendarCell


_BLANK_DAY = CalendarDay(day=None, cell=CalendarCell.BLANK)


@dataclass(frozen=True)
class AttendanceCalendar:
    """Computed month view for one player."""

    member_name: str
    year: int
    month: int
    weeks: tuple[tuple[CalendarDay, ...], ...]
    attended: int
    total: int

    @property
    def rate(self) -> int | None:
        """Attendance percentage rounded half-up, or None with no counted days."""
        if self.total == 0:
            return None
        return math.floor(self.attended / self.total * 100 + 0.5)

    @property
    def month_label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in a month (1-12), leap years included."""
    return calendar.monthrange(year, month)[1]


def is_raid_day(day: date) -> bool:
    """Return whether the date falls on a raid weekday."""
    return day.weekday() in RAID_WEEKDAYS


def sunday_first_column(day: date) -> int:
    """Grid column for a date, Sunday=0 .. Saturday=6."""
    return (day.weekday() + 1) % 7


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_attendance_calendar(
    member_name: str,
    records: Iterable[AttendanceRecord],
    year: int,
    month: int,
    *,
    tracking_start: datetime,
    now: datetime,
) -> AttendanceCalendar:
    """Lay out ``records`` for ``year``/``month`` and count raid attendance.

    Only records whose UTC year and month match the viewed month are used.
    A counted raid day is present when any record falls within that UTC
    calendar day, so duplicate records for the same day count once.
    """
    last_day = days_in_month(year, month)
    tracking_start_utc = as_utc(tracking_start)
    now_utc = as_utc(now)

    attended_days: set[int] = set()
    for record in records:
        stamp = record.attended_at_utc
        if stamp.year == year and stamp.month == month:
            attended_days.add(stamp.day)

    if (now_utc.year, now_utc.month) == (year, month):
        cutoff = now_utc
    else:
        cutoff = datetime(year, month, last_day, tzinfo=timezone.utc)

    weeks: list[tuple[CalendarDay, ...]] = []
    week = [_BLANK_DAY] * 7
    attended = 0
    total = 0

    for day_number in range(1, last_day + 1):
        day_start = datetime(year, month, day_number, tzinfo=timezone.utc)
        column = sunday_first_column(day_start)
        cell = CalendarCell.NOT_COUNTED

        if is_raid_day(day_start) and tracking_start_utc <= day_start <= cutoff:
            total += 1
            if day_number in attended_days:
                attended += 1
                cell = CalendarCell.PRESENT
            else:
                cell = CalendarCell.ABSENT

        week[column] = CalendarDay(day=day_number, cell=cell)

        if column == 6 or day_number == last_day:
            weeks.append(tuple(week))
            week = [_BLANK_DAY] * 7

    return AttendanceCalendar(
        member_name=member_name,
        year=year,
        month=month,
        weeks=tuple(weeks),
        attended=attended,
        total=total,
    )


def _format_cell(day: CalendarDay) -> str:
    if day.day is None:
        return " " * _CELL_WIDTH

    text = f"{day.day:>{_CELL_WIDTH}}"
    if day.cell is CalendarCell.PRESENT:
        return f"{ANSI_PRESENT}{text}{ANSI_RESET}"
    if day.cell is CalendarCell.ABSENT:
        return f"{ANSI_ABSENT}{text}{ANSI_RESET}"
    return text


def _row(cells: Iterable[str]) -> str:
    pad = " " * _CELL_PADDING
    return "│" + "│".join(f"{pad}{cell}{pad}" for cell in cells) + "│"


def render_calendar_table(attendance_calendar: AttendanceCalendar) -> str:
    """Render the month as a box-drawn 7-column grid."""
    segment = "─" * (_CELL_WIDTH + 2 * _CELL_PADDING)
    span_width = len(segment) * 7 + 6

    lines = [
        "┌" + "─" * span_width + "┐",
        "│" + attendance_calendar.month_label.center(span_width) + "│",
        "├" + "┬".join([segment] * 7) + "┤",
        _row(WEEKDAY_LABELS),
    ]
    separator = "├" + "┼".join([segment] * 7) + "┤"
    for week in attendance_calendar.weeks:
        lines.append(separator)
        lines.append(_row(_format_cell(day) for day in week))
    lines.append("└" + "┴".join([segment] * 7) + "┘")
    return "\n".join(lines)


def format_tracking_start(tracking_start: datetime) -> str:
    start = as_utc(tracking_start)
    return f"{start:%B} {start.day}, {start.year}"


def render_attendance_summary(
    attendance_calendar: AttendanceCalendar, tracking_start: datetime
) -> str:
    """Return the rate line, or the no-data line when no raid day counted."""
    rate = attendance_calendar.rate
    if rate is None:
        return (
            "No attendance data available yet. "
            f"Tracking begins {format_tracking_start(tracking_start)}"
        )
    return (
        f"Attendance Rate: {rate}% "
        f"({attendance_calendar.attended}/{attendance_calendar.total} raids)"
    )


def render_calendar_block(
    attendance_calendar: AttendanceCalendar, tracking_start: datetime
) -> str:
    """Render the grid as an ``ansi`` code block followed by the summary."""
    table = render_calendar_table(attendance_calendar)
    summary = render_attendance_summary(attendance_calendar, tracking_start)
    return f"```ansi\n{table}\n```\n{summary}"
