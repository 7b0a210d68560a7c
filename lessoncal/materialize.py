"""
Lesson-plan materialization.

Turns calendar gestures into dated LessonPlan records:

- ActivityDrop on a day (month view) or a day+hour (week/day view)
  -> one plan holding that activity
- LessonDrop -> one plan holding all activities of a library lesson
- UnitDrop / assign_unit -> one plan per lesson of the unit, dated
  sequentially, and the unit's lessons recorded against the half-term

Rules:
- nothing is ever created on a holiday or inset day; a drop there is a
  silent no-op (None / [])
- a unit is materialized completely or not at all
- half-term removal and reordering never touch existing plans
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import Callable, List, Optional, Sequence

from lessoncal.content import ContentLibrary
from lessoncal.dates import DateLike, to_date, week_number
from lessoncal.events import EventOverlayResolver
from lessoncal.model import (
    Activity,
    ActivityDrop,
    Gesture,
    HalfTerm,
    LessonDrop,
    LessonPlan,
    TimetableClass,
    Unit,
    UnitDrop,
    ValidationError,
)
from lessoncal.store import SchedulingStore
from lessoncal.timetable import RecurringClassProjector, next_occurrences

log = logging.getLogger(__name__)

# how far ahead sequential dating may look for free days
MAX_LOOKAHEAD_DAYS = 366


def _new_plan_id() -> str:
    return f"plan-{uuid.uuid4().hex[:12]}"


class LessonPlanMaterializer:
    def __init__(
        self,
        store: SchedulingStore,
        resolver: EventOverlayResolver,
        projector: RecurringClassProjector,
        content: ContentLibrary,
        id_factory: Callable[[], str] = _new_plan_id,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.projector = projector
        self.content = content
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Single entry point
    # ------------------------------------------------------------------

    def materialize(self, gesture: Gesture, d: DateLike, hour: Optional[int] = None) -> List[LessonPlan]:
        """
        Dispatch a dropped item. Returns the plans created (possibly none).
        """
        match gesture:
            case ActivityDrop(activity=activity):
                plan = self.drop_activity(activity, d, hour)
                return [plan] if plan else []
            case LessonDrop(lesson_number=number):
                plan = self.drop_lesson(number, d, hour)
                return [plan] if plan else []
            case UnitDrop(unit=unit):
                return self.assign_unit(unit, d)
            case _:
                raise ValidationError(f"Unsupported drop: {type(gesture).__name__}")

    # ------------------------------------------------------------------
    # Single plans
    # ------------------------------------------------------------------

    def _blocked(self, d: date) -> bool:
        if self.resolver.is_blocked(d):
            log.info("Not scheduling on %s: %s day", d.isoformat(), self.resolver.classification_on(d))
            return True
        return False

    def _plan(
        self,
        d: date,
        activities: List[Activity],
        duration: int,
        hour: Optional[int] = None,
        **extra,
    ) -> LessonPlan:
        if hour is not None and not (0 <= hour <= 23):
            raise ValidationError(f"Invalid hour: {hour!r}")
        return LessonPlan(
            id=self.id_factory(),
            date=d,
            week=week_number(d),
            class_name=self.store.class_name,
            activities=activities,
            duration=duration,
            status="planned",
            time=f"{hour}:00" if hour is not None else None,
            **extra,
        )

    def drop_activity(self, activity: Activity, d: DateLike, hour: Optional[int] = None) -> Optional[LessonPlan]:
        day = to_date(d)
        if self._blocked(day):
            return None
        plan = self._plan(day, [activity], activity.time, hour)
        return self.store.add_lesson_plan(plan)

    def _lesson_activities(self, lesson_number: str) -> tuple[List[Activity], int, Optional[str]]:
        lesson = self.content.get_lesson_by_number(lesson_number)
        if lesson is None:
            return [], 0, None
        activities = []
        for a in lesson.activities():
            copy = Activity.from_dict(a.to_dict())
            copy.lesson_number = lesson_number
            activities.append(copy)
        return activities, lesson.total_time, lesson.title

    def drop_lesson(self, lesson_number: str, d: DateLike, hour: Optional[int] = None) -> Optional[LessonPlan]:
        day = to_date(d)
        if self.content.get_lesson_by_number(lesson_number) is None:
            log.info("Lesson %s not found in the library", lesson_number)
            return None
        if self._blocked(day):
            return None
        activities, duration, title = self._lesson_activities(lesson_number)
        plan = self._plan(day, activities, duration, hour, lesson_number=lesson_number, title=title)
        return self.store.add_lesson_plan(plan)

    def assign_lesson(self, lesson_number: str, dates: Sequence[DateLike]) -> List[LessonPlan]:
        """
        One plan of the same library lesson on each date; blocked dates are skipped.
        """
        if self.content.get_lesson_by_number(lesson_number) is None:
            return []
        plans = []
        for raw in dates:
            day = to_date(raw)
            if self._blocked(day):
                continue
            activities, duration, title = self._lesson_activities(lesson_number)
            plans.append(self._plan(day, activities, duration, lesson_number=lesson_number, title=title))
        return self.store.add_lesson_plans(plans)

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def _schedule_dates(self, unit: Unit, start: date, timetable_class: Optional[TimetableClass]) -> List[date]:
        count = len(unit.lesson_numbers)
        cls = timetable_class or self.projector.linked_class(unit.id)
        if cls is not None:
            return next_occurrences(cls, start, count, skip=self.resolver.is_blocked, max_days=MAX_LOOKAHEAD_DAYS)

        out: List[date] = []
        current = start
        limit = start + timedelta(days=MAX_LOOKAHEAD_DAYS)
        while len(out) < count and current <= limit:
            if not self.resolver.is_blocked(current):
                out.append(current)
            current += timedelta(days=1)
        return out

    def assign_unit(
        self,
        unit: Unit | str,
        start: DateLike,
        half_term_id: Optional[str] = None,
        timetable_class: Optional[TimetableClass] = None,
    ) -> List[LessonPlan]:
        """
        Date every lesson of the unit, in order, starting at `start`.

        Cadence: the weekly slot of `timetable_class` (or of the class linked
        to the unit through recurring_unit_id) if there is one, else one
        lesson per calendar day. Blocked days are skipped.

        The unit's lessons are also appended to the half-term covering
        `start` (or `half_term_id`), keeping its existing order and flag.
        """
        if isinstance(unit, str):
            found = self.content.get_unit_by_id(unit)
            if found is None:
                log.info("Unit %s not found in the library", unit)
                return []
            unit = found

        day = to_date(start)
        if self._blocked(day):
            return []
        if not unit.lesson_numbers:
            return []

        term_id = half_term_id or self.store.half_terms.half_term_for(day)
        if self.store.half_terms.half_term(term_id) is None:
            raise ValidationError(f"Unknown half-term id: {term_id!r}")

        dates = self._schedule_dates(unit, day, timetable_class)
        if len(dates) < len(unit.lesson_numbers):
            log.warning(
                "Unit %s: only %d of %d free dates within %d days of %s, nothing scheduled",
                unit.id, len(dates), len(unit.lesson_numbers), MAX_LOOKAHEAD_DAYS, day.isoformat(),
            )
            return []

        plans: List[LessonPlan] = []
        for lesson_number, lesson_date in zip(unit.lesson_numbers, dates):
            activities, duration, title = self._lesson_activities(lesson_number)
            plans.append(
                self._plan(
                    lesson_date,
                    activities,
                    duration,
                    lesson_number=lesson_number,
                    unit_id=unit.id,
                    unit_name=unit.name,
                    title=title,
                )
            )

        self.store.add_lesson_plans(plans)

        registry = self.store.half_terms
        existing = registry.lessons_for(term_id)
        merged = existing + [n for n in unit.lesson_numbers if n not in existing]
        registry.assign(term_id, merged, registry.is_complete(term_id))

        log.info("Unit %s: %d lessons scheduled from %s (%s)", unit.id, len(plans), day.isoformat(), term_id)
        return plans

    # ------------------------------------------------------------------
    # Half-term list edits (never touch dated plans)
    # ------------------------------------------------------------------

    def remove_lesson_from_half_term(self, half_term_id: str, lesson_number: str) -> HalfTerm:
        if self.store.half_terms.half_term(half_term_id) is None:
            raise ValidationError(f"Unknown half-term id: {half_term_id!r}")
        return self.store.half_terms.remove_lesson(half_term_id, lesson_number)

    def reorder_half_term(self, half_term_id: str, from_index: int, to_index: int) -> HalfTerm:
        if self.store.half_terms.half_term(half_term_id) is None:
            raise ValidationError(f"Unknown half-term id: {half_term_id!r}")
        return self.store.half_terms.reorder(half_term_id, from_index, to_index)
