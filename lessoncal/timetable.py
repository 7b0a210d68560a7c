"""
Recurring weekly classes.

A TimetableClass is not tied to any date: it repeats every week forever on its
`day`. This module projects that fixed weekly set onto concrete dates.

Hour rule (used by the week/day grids):
    start_hour <= hour < end_hour
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from lessoncal.dates import DateLike, day_of_week, parse_hour, to_date
from lessoncal.model import TimetableClass, ValidationError

log = logging.getLogger(__name__)


def validate_timetable_class(cls: TimetableClass) -> None:
    """
    Reject malformed classes before they reach the store.
    Times are compared at hour granularity.
    """
    if not cls.class_name.strip():
        raise ValidationError("Please enter a class name")
    if not (0 <= int(cls.day) <= 6):
        raise ValidationError(f"Invalid day index: {cls.day!r} (expected 0..6)")
    try:
        start = parse_hour(cls.start_time)
        end = parse_hour(cls.end_time)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    if start >= end:
        raise ValidationError("End time must be after start time")


def _hours(cls: TimetableClass) -> Optional[Tuple[int, int]]:
    try:
        return parse_hour(cls.start_time), parse_hour(cls.end_time)
    except ValueError:
        # stored data written by older versions may be malformed; never crash a render
        log.debug("Skipping class %s with invalid times %r-%r", cls.id, cls.start_time, cls.end_time)
        return None


class RecurringClassProjector:
    """
    Read-only projection over the in-memory class list.

    The list is held by reference, so changes made through the store are
    visible immediately.
    """

    def __init__(self, classes: List[TimetableClass]) -> None:
        self._classes = classes

    def classes_for_day(self, day_index: int) -> List[TimetableClass]:
        return [c for c in self._classes if c.day == day_index]

    def occurrences_on(self, d: DateLike) -> List[TimetableClass]:
        return self.classes_for_day(day_of_week(d))

    def occurrences_in_hour(self, d: DateLike, hour: int) -> List[TimetableClass]:
        out: List[TimetableClass] = []
        for c in self.occurrences_on(d):
            hours = _hours(c)
            if hours is None:
                continue
            start, end = hours
            if start <= hour < end:
                out.append(c)
        return out

    def occurrences_between(self, start: DateLike, end: DateLike) -> Iterator[Tuple[date, TimetableClass]]:
        """
        Yield (date, class) for every occurrence inside [start, end].
        """
        current = to_date(start)
        last = to_date(end)
        while current <= last:
            for c in self.occurrences_on(current):
                yield current, c
            current += timedelta(days=1)

    def linked_class(self, unit_id: str) -> Optional[TimetableClass]:
        """
        First class whose recurring_unit_id points at unit_id.
        """
        for c in self._classes:
            if c.recurring_unit_id and c.recurring_unit_id == unit_id:
                return c
        return None


def next_occurrences(
    cls: TimetableClass,
    start: DateLike,
    count: int,
    skip: Callable[[date], bool] | None = None,
    max_days: int = 366,
) -> List[date]:
    """
    Dates of the next `count` weekly occurrences of cls on or after start,
    leaving out dates for which skip(date) is true.

    Returns fewer than `count` dates if the lookahead window is exhausted.
    """
    first = to_date(start)
    offset = (cls.day - day_of_week(first)) % 7
    current = first + timedelta(days=offset)
    limit = first + timedelta(days=max_days)

    out: List[date] = []
    while len(out) < count and current <= limit:
        if skip is None or not skip(current):
            out.append(current)
        current += timedelta(days=7)
    return out


def sort_by_start(classes: Iterable[TimetableClass]) -> List[TimetableClass]:
    def key(c: TimetableClass) -> Tuple[int, int, str]:
        hours = _hours(c)
        return (c.day, hours[0] if hours else 99, c.class_name)

    return sorted(classes, key=key)
