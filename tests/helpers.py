"""
Shared fixtures for the scheduling tests.

Everything is built inside a temporary directory so tests never touch the
real data directory.
"""

from __future__ import annotations

import itertools
from datetime import datetime
from pathlib import Path

from lessoncal.content import InMemoryContentLibrary
from lessoncal.engine import SchedulingEngine
from lessoncal.model import Activity, CalendarEvent, LessonData, Unit
from lessoncal.store import SchedulingStore

YEAR = "2025-2026"


def fixed_clock() -> datetime:
    return datetime(2025, 9, 1, 8, 0, 0)


def make_content() -> InMemoryContentLibrary:
    lessons = {
        "1": LessonData(
            title="Pirates",
            total_time=45,
            category_order=["Welcome", "Main"],
            grouped={
                "Main": [Activity(activity="Sea shanty", time=30, category="Main")],
                "Welcome": [Activity(activity="Hello song", time=15, category="Welcome")],
            },
        ),
        "2": LessonData(title="Treasure", total_time=40),
        "3": LessonData(title="Islands", total_time=35),
    }
    units = [Unit(id="unit-1", name="Pirates", lesson_numbers=["1", "2", "3"])]
    return InMemoryContentLibrary(lessons=lessons, units=units)


def make_engine(data_dir: str | Path, content: InMemoryContentLibrary | None = None) -> SchedulingEngine:
    store = SchedulingStore("LKG", data_dir, YEAR, clock=fixed_clock)
    counter = itertools.count(1)
    return SchedulingEngine(
        store,
        content if content is not None else make_content(),
        id_factory=lambda: f"plan-{next(counter)}",
    )


def event(event_id: str, start: str, end: str, kind: str, title: str = "") -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        title=title or kind.title(),
        start_date=datetime.fromisoformat(start).date(),
        end_date=datetime.fromisoformat(end).date(),
        type=kind,
        color="",
    )
