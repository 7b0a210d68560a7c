"""
Date helpers shared by the scheduling components.

Everything here works at day granularity: datetimes are reduced to their date
part before any comparison, so "is D inside [start, end]" never depends on the
time of day a value happened to be created at.

Day-of-week indices follow the browser convention used in the stored data:
0 = Sunday ... 6 = Saturday.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import List, Union

DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """
    Convert a date, datetime or ISO-8601 string to a plain date.
    Raises ValueError for unparseable strings.
    """
    if isinstance(value, datetime):
        return _local(value).date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        raise ValueError("Empty date value")
    # "2025-09-14T23:00:00.000Z" (JavaScript toISOString of local midnight):
    # aware values are converted to local time before taking the date
    if "T" in s or " " in s:
        return _local(to_datetime(s)).date()
    return date.fromisoformat(s)


def _local(value: datetime) -> datetime:
    return value.astimezone() if value.tzinfo is not None else value


def to_datetime(value: Union[datetime, str]) -> datetime:
    if isinstance(value, datetime):
        return value
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def in_range(d: DateLike, start: DateLike, end: DateLike) -> bool:
    """
    Inclusive test: start <= d <= end, compared as dates.
    """
    return to_date(start) <= to_date(d) <= to_date(end)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    # closed intervals: sharing a single day counts
    return a_start <= b_end and b_start <= a_end


def day_of_week(d: DateLike) -> int:
    """
    Return 0 for Sunday through 6 for Saturday.
    """
    # date.weekday(): Monday=0 ... Sunday=6
    return (to_date(d).weekday() + 1) % 7


def week_number(d: DateLike) -> int:
    """
    Week of the year counted from 1 January (days 1-7 are week 1).
    """
    day_of_year = to_date(d).timetuple().tm_yday
    return (day_of_year - 1) // 7 + 1


def parse_hour(hhmm: str) -> int:
    """
    Return the hour part of 'H:MM' / 'HH:MM'.
    Raises ValueError for invalid formats.
    """
    parts = str(hhmm).strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h


def time_to_minutes(hhmm: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises ValueError for invalid formats.
    """
    h = parse_hour(hhmm)
    return h * 60 + int(str(hhmm).strip().split(":")[1])


def academic_year_for(d: DateLike) -> str:
    """
    Academic years start on 1 September: 2025-09-01 .. 2026-08-31 -> "2025-2026".
    """
    dd = to_date(d)
    first = dd.year if dd.month >= 9 else dd.year - 1
    return f"{first}-{first + 1}"


def add_months(d: date, n: int) -> date:
    """
    Move by n calendar months, clamping the day (31 Jan + 1 month -> 28/29 Feb).
    """
    month_index = d.month - 1 + n
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


def start_of_week(d: date) -> date:
    """Sunday on or before d."""
    return d - timedelta(days=day_of_week(d))


def week_days(anchor: DateLike) -> List[date]:
    """
    Sunday..Saturday of the week containing anchor.
    """
    start = start_of_week(to_date(anchor))
    return [start + timedelta(days=i) for i in range(7)]


def month_grid(anchor: DateLike) -> List[date]:
    """
    Days shown by a month view: the whole month padded with days of the
    previous and next month so the grid is made of complete Sunday-first weeks.
    """
    a = to_date(anchor)
    first = a.replace(day=1)
    last = a.replace(day=calendar.monthrange(a.year, a.month)[1])
    grid_start = start_of_week(first)
    # pad to Saturday
    grid_end = last + timedelta(days=(6 - day_of_week(last)))
    n = (grid_end - grid_start).days + 1
    return [grid_start + timedelta(days=i) for i in range(n)]
