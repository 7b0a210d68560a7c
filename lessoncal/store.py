"""
Scheduling store: the single owner of the mutable calendar state of one
class / year-group.

It holds
- timetable classes
- calendar events
- lesson plans
- the half-term registry (assignment state per academic year)

and is passed by reference to the projector, the resolver and the
materializer, so every component always sees the same lists.

Every mutator validates first (ValidationError, no state change on failure),
then mutates, then persists synchronously. A failed write is logged and
otherwise ignored: persistence is fire-and-forget for the state machine.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from lessoncal import storage
from lessoncal.events import validate_event
from lessoncal.halfterms import HalfTermRegistry
from lessoncal.model import PLAN_STATUSES, CalendarEvent, LessonPlan, TimetableClass, ValidationError
from lessoncal.timetable import validate_timetable_class

log = logging.getLogger(__name__)


class SchedulingStore:
    def __init__(
        self,
        class_name: str,
        data_dir: str | Path,
        academic_year: str,
        half_term_starts: dict | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if not class_name.strip():
            raise ValidationError("Please choose a class")
        self.class_name = class_name
        self.data_dir = Path(data_dir)
        self.clock = clock

        self.timetable_classes: List[TimetableClass] = []
        self.events: List[CalendarEvent] = []
        self.lesson_plans: List[LessonPlan] = []
        self.half_terms = HalfTermRegistry(
            current_year=academic_year,
            starts=half_term_starts,
            on_change=self._persist_half_terms,
        )

    # ------------------------------------------------------------------
    # Loading / persisting
    # ------------------------------------------------------------------

    def load(self) -> "SchedulingStore":
        # lists are refilled in place: components hold references to them
        self.timetable_classes[:] = storage.load_timetable(self.data_dir, self.class_name)
        self.events[:] = storage.load_events(self.data_dir, self.class_name)
        self.lesson_plans[:] = storage.load_lesson_plans(self.data_dir, self.class_name)

        years = set(storage.stored_half_term_years(self.data_dir, self.class_name))
        years.add(self.half_terms.current_year)
        for year in sorted(years):
            self.half_terms.load_year(year, storage.load_half_terms(self.data_dir, self.class_name, year))

        log.info(
            "Loaded %s: %d classes, %d events, %d lesson plans",
            self.class_name, len(self.timetable_classes), len(self.events), len(self.lesson_plans),
        )
        return self

    def _persist(self, what: str, write: Callable[[], None]) -> None:
        try:
            write()
        except OSError as exc:
            log.error("Could not save %s for %s: %s", what, self.class_name, exc)

    def _persist_timetable(self) -> None:
        self._persist("timetable", lambda: storage.save_timetable(self.data_dir, self.class_name, self.timetable_classes))

    def _persist_events(self) -> None:
        self._persist("calendar events", lambda: storage.save_events(self.data_dir, self.class_name, self.events))

    def _persist_plans(self) -> None:
        self._persist("lesson plans", lambda: storage.save_lesson_plans(self.data_dir, self.class_name, self.lesson_plans))

    def _persist_half_terms(self, year: str) -> None:
        self._persist(
            f"half-terms {year}",
            lambda: storage.save_half_terms(self.data_dir, self.class_name, year, self.half_terms.half_terms(year)),
        )

    # ------------------------------------------------------------------
    # Timetable classes
    # ------------------------------------------------------------------

    def get_timetable_class(self, class_id: str) -> Optional[TimetableClass]:
        for c in self.timetable_classes:
            if c.id == class_id:
                return c
        return None

    def add_timetable_class(self, cls: TimetableClass) -> TimetableClass:
        validate_timetable_class(cls)
        if self.get_timetable_class(cls.id) is not None:
            raise ValidationError(f"A class with id {cls.id!r} already exists")
        self.timetable_classes.append(cls)
        self._persist_timetable()
        return cls

    def update_timetable_class(self, cls: TimetableClass) -> TimetableClass:
        validate_timetable_class(cls)
        for i, existing in enumerate(self.timetable_classes):
            if existing.id == cls.id:
                self.timetable_classes[i] = cls
                self._persist_timetable()
                return cls
        raise ValidationError(f"Unknown class id: {cls.id!r}")

    def delete_timetable_class(self, class_id: str) -> bool:
        before = len(self.timetable_classes)
        self.timetable_classes[:] = [c for c in self.timetable_classes if c.id != class_id]
        if len(self.timetable_classes) == before:
            return False
        self._persist_timetable()
        return True

    # ------------------------------------------------------------------
    # Calendar events
    # ------------------------------------------------------------------

    def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        for e in self.events:
            if e.id == event_id:
                return e
        return None

    def add_event(self, event: CalendarEvent) -> CalendarEvent:
        validate_event(event)
        if self.get_event(event.id) is not None:
            raise ValidationError(f"An event with id {event.id!r} already exists")
        self.events.append(event)
        self._persist_events()
        return event

    def update_event(self, event: CalendarEvent) -> CalendarEvent:
        validate_event(event)
        for i, existing in enumerate(self.events):
            if existing.id == event.id:
                self.events[i] = event
                self._persist_events()
                return event
        raise ValidationError(f"Unknown event id: {event.id!r}")

    def delete_event(self, event_id: str) -> bool:
        """
        Events own nothing: deleting one never touches plans or half-terms.
        """
        before = len(self.events)
        self.events[:] = [e for e in self.events if e.id != event_id]
        if len(self.events) == before:
            return False
        self._persist_events()
        return True

    # ------------------------------------------------------------------
    # Lesson plans
    # ------------------------------------------------------------------

    def get_lesson_plan(self, plan_id: str) -> Optional[LessonPlan]:
        for p in self.lesson_plans:
            if p.id == plan_id:
                return p
        return None

    def add_lesson_plans(self, plans: List[LessonPlan]) -> List[LessonPlan]:
        """
        Append several plans with a single write.
        """
        for plan in plans:
            _validate_plan(plan)
        now = self.clock()
        for plan in plans:
            plan.created_at = plan.created_at or now
            plan.updated_at = plan.updated_at or now
            self.lesson_plans.append(plan)
        if plans:
            self._persist_plans()
        return plans

    def add_lesson_plan(self, plan: LessonPlan) -> LessonPlan:
        return self.add_lesson_plans([plan])[0]

    def update_lesson_plan(self, plan: LessonPlan) -> LessonPlan:
        """
        Upsert by id; refreshes updated_at.
        """
        _validate_plan(plan)
        now = self.clock()
        plan.updated_at = now
        for i, existing in enumerate(self.lesson_plans):
            if existing.id == plan.id:
                plan.created_at = plan.created_at or existing.created_at
                self.lesson_plans[i] = plan
                self._persist_plans()
                return plan
        plan.created_at = plan.created_at or now
        self.lesson_plans.append(plan)
        self._persist_plans()
        return plan

    def set_plan_status(self, plan_id: str, status: str) -> Optional[LessonPlan]:
        plan = self.get_lesson_plan(plan_id)
        if plan is None:
            return None
        if status not in PLAN_STATUSES:
            raise ValidationError(f"Unknown status: {status!r} (expected one of {', '.join(PLAN_STATUSES)})")
        plan.status = status
        plan.updated_at = self.clock()
        self._persist_plans()
        return plan

    def delete_lesson_plan(self, plan_id: str) -> bool:
        """
        Half-term assignments are left alone; see model.py for the ownership rule.
        """
        before = len(self.lesson_plans)
        self.lesson_plans[:] = [p for p in self.lesson_plans if p.id != plan_id]
        if len(self.lesson_plans) == before:
            return False
        self._persist_plans()
        return True


def _validate_plan(plan: LessonPlan) -> None:
    if plan.status not in PLAN_STATUSES:
        raise ValidationError(f"Unknown status: {plan.status!r} (expected one of {', '.join(PLAN_STATUSES)})")
    if plan.duration < 0:
        raise ValidationError("Duration cannot be negative")
