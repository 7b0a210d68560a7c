"""
Conflict detection.

Two independent checks, both report-only (nothing is rejected):

- timetable classes: overlap on the same weekday
      start < other_end AND end > other_start
  (touching endpoints are fine: 9:00-10:00 and 10:00-11:00 do not clash)

- calendar events: closed date ranges sharing at least one day
"""

from __future__ import annotations

from typing import List, Tuple

from lessoncal.dates import ranges_overlap, time_to_minutes
from lessoncal.model import CalendarEvent, TimetableClass


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def find_timetable_conflicts(classes: List[TimetableClass]) -> List[Tuple[TimetableClass, TimetableClass]]:
    """
    Find overlapping class pairs (A,B), each pair appears once (i<j).
    """
    conflicts: List[Tuple[TimetableClass, TimetableClass]] = []

    # Pre-parse times; skip anything malformed or empty
    parsed: List[Tuple[int, int, int, TimetableClass]] = []
    for c in classes:
        try:
            start = time_to_minutes(c.start_time)
            end = time_to_minutes(c.end_time)
        except ValueError:
            continue
        if end <= start:
            continue
        parsed.append((c.day, start, end, c))

    # O(n^2) is fine for a weekly timetable
    for i in range(len(parsed)):
        d1, s1, e1, c1 = parsed[i]
        for j in range(i + 1, len(parsed)):
            d2, s2, e2, c2 = parsed[j]
            if d1 != d2:
                continue
            if _overlaps(s1, e1, s2, e2):
                conflicts.append((c1, c2))

    return conflicts


def find_event_overlaps(events: List[CalendarEvent]) -> List[Tuple[CalendarEvent, CalendarEvent]]:
    """
    Find event pairs whose date ranges share at least one day (i<j).
    """
    overlaps: List[Tuple[CalendarEvent, CalendarEvent]] = []
    for i in range(len(events)):
        a = events[i]
        for j in range(i + 1, len(events)):
            b = events[j]
            if ranges_overlap(a.start_date, a.end_date, b.start_date, b.end_date):
                overlaps.append((a, b))
    return overlaps
