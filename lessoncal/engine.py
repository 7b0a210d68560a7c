"""
Scheduling engine: wires one SchedulingStore into the projector, the event
resolver, the half-term registry and the materializer, and exposes the
queries the grid asks for every cell. Mutations are delegated to the store,
the registry and the materializer, so callers only need the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence

from lessoncal.content import ContentLibrary, InMemoryContentLibrary
from lessoncal.dates import DateLike, day_of_week, parse_hour, to_date, week_number
from lessoncal.events import EventOverlayResolver
from lessoncal.halfterms import HalfTermRegistry
from lessoncal.materialize import LessonPlanMaterializer
from lessoncal.model import CalendarEvent, Gesture, HalfTerm, LessonPlan, TimetableClass, Unit
from lessoncal.store import SchedulingStore
from lessoncal.timetable import RecurringClassProjector, sort_by_start

ALL_UNITS = "all"


@dataclass
class DayCell:
    """
    Everything that occupies one date of the grid.
    """

    date: date
    classification: str
    half_term: str
    events: List[CalendarEvent] = field(default_factory=list)
    classes: List[TimetableClass] = field(default_factory=list)
    plans: List[LessonPlan] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return self.classification in ("holiday", "inset")


def _plan_hour(plan: LessonPlan) -> Optional[int]:
    if not plan.time:
        return None
    try:
        return parse_hour(plan.time)
    except ValueError:
        return None


class SchedulingEngine:
    def __init__(self, store: SchedulingStore, content: ContentLibrary | None = None, **materializer_kwargs) -> None:
        self.store = store
        self.content = content if content is not None else InMemoryContentLibrary()
        self.projector = RecurringClassProjector(store.timetable_classes)
        self.resolver = EventOverlayResolver(store.events)
        self.materializer = LessonPlanMaterializer(
            store, self.resolver, self.projector, self.content, **materializer_kwargs
        )

    @property
    def half_terms(self) -> HalfTermRegistry:
        return self.store.half_terms

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_lesson_plans_for_date(self, d: DateLike, unit_filter: str = ALL_UNITS) -> List[LessonPlan]:
        """
        Plans on a date, untimed ones first, then by hour, then by creation.
        """
        day = to_date(d)
        plans = [
            p for p in self.store.lesson_plans
            if p.date == day and (unit_filter == ALL_UNITS or p.unit_id == unit_filter)
        ]

        def key(p: LessonPlan):
            hour = _plan_hour(p)
            return (hour is not None, hour or 0, p.created_at.isoformat() if p.created_at else "")

        return sorted(plans, key=key)

    def get_lesson_plans_for_hour(self, d: DateLike, hour: int, unit_filter: str = ALL_UNITS) -> List[LessonPlan]:
        return [p for p in self.get_lesson_plans_for_date(d, unit_filter) if _plan_hour(p) == hour]

    def get_events_for_date(self, d: DateLike) -> List[CalendarEvent]:
        return self.resolver.events_on(d)

    def get_timetable_classes_for_day(self, day_index: int) -> List[TimetableClass]:
        return sort_by_start(self.projector.classes_for_day(day_index))

    def is_holiday(self, d: DateLike) -> bool:
        return self.resolver.is_holiday(d)

    def is_inset_day(self, d: DateLike) -> bool:
        return self.resolver.is_inset_day(d)

    def get_week_number(self, d: DateLike) -> int:
        return week_number(d)

    def half_term_for(self, d: DateLike) -> str:
        return self.half_terms.half_term_for(d)

    def day_cell(self, d: DateLike, unit_filter: str = ALL_UNITS) -> DayCell:
        day = to_date(d)
        return DayCell(
            date=day,
            classification=self.resolver.classification_on(day),
            half_term=self.half_term_for(day),
            events=self.get_events_for_date(day),
            classes=self.get_timetable_classes_for_day(day_of_week(day)),
            plans=self.get_lesson_plans_for_date(day, unit_filter),
        )

    # ------------------------------------------------------------------
    # Mutations (delegated)
    # ------------------------------------------------------------------

    def materialize(self, gesture: Gesture, d: DateLike, hour: Optional[int] = None) -> List[LessonPlan]:
        return self.materializer.materialize(gesture, d, hour)

    def assign_lesson(self, lesson_number: str, dates: Sequence[DateLike]) -> List[LessonPlan]:
        return self.materializer.assign_lesson(lesson_number, dates)

    def assign_unit(
        self,
        unit: Unit | str,
        start: DateLike,
        half_term_id: Optional[str] = None,
        timetable_class: Optional[TimetableClass] = None,
    ) -> List[LessonPlan]:
        return self.materializer.assign_unit(unit, start, half_term_id, timetable_class)

    def assign_half_term(
        self,
        term_id: str,
        lessons: Iterable[str],
        is_complete: bool,
        stacks: Optional[List[str]] = None,
        year: Optional[str] = None,
    ) -> HalfTerm:
        return self.half_terms.assign(term_id, lessons, is_complete, stacks=stacks, year=year)

    def set_half_term_complete(self, term_id: str, is_complete: bool, year: Optional[str] = None) -> HalfTerm:
        return self.half_terms.set_complete(term_id, is_complete, year=year)

    def copy_half_term(self, source_year: str, source_id: str, target_year: str, target_id: str) -> HalfTerm:
        return self.half_terms.copy_term(source_year, source_id, target_year, target_id)

    def remove_lesson_from_half_term(self, term_id: str, lesson_number: str) -> HalfTerm:
        return self.materializer.remove_lesson_from_half_term(term_id, lesson_number)

    def reorder_half_term(self, term_id: str, from_index: int, to_index: int) -> HalfTerm:
        return self.materializer.reorder_half_term(term_id, from_index, to_index)

    def add_timetable_class(self, cls: TimetableClass) -> TimetableClass:
        return self.store.add_timetable_class(cls)

    def delete_timetable_class(self, class_id: str) -> bool:
        return self.store.delete_timetable_class(class_id)

    def add_event(self, event: CalendarEvent) -> CalendarEvent:
        return self.store.add_event(event)

    def delete_event(self, event_id: str) -> bool:
        return self.store.delete_event(event_id)

    def delete_lesson_plan(self, plan_id: str) -> bool:
        return self.store.delete_lesson_plan(plan_id)

    def set_plan_status(self, plan_id: str, status: str) -> Optional[LessonPlan]:
        return self.store.set_plan_status(plan_id, status)
