"""
Calendar grid state machine (rendering lives in the CLI).

State:
- view_mode:   month | week | day
- current_date:  anchor of the month and week views
- day_view_date: anchor of the day view (tracked separately, so going
                 back to month view keeps its position)
- unit_filter:   "all" or a unit id
- selected_date_with_plans: open summary (date, plans) or None
- create_request_date: date handed to the lesson builder after a click on
                 an empty day

Clicking a date:
- holiday / inset day -> BLOCKED, nothing changes
- no visible plans    -> CREATE
- one or more plans   -> SUMMARY
"""

from __future__ import annotations

import enum
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from lessoncal.config import DAY_VIEW_HOURS
from lessoncal.dates import DateLike, add_months, month_grid, to_date, week_days
from lessoncal.engine import ALL_UNITS, DayCell, SchedulingEngine
from lessoncal.model import Gesture, LessonPlan, ValidationError

log = logging.getLogger(__name__)

VIEW_MODES = ("month", "week", "day")


class GridAction(enum.Enum):
    BLOCKED = "blocked"
    CREATE = "create"
    SUMMARY = "summary"


class CalendarGridView:
    def __init__(self, engine: SchedulingEngine, today: DateLike | None = None, view_mode: str = "month") -> None:
        if view_mode not in VIEW_MODES:
            raise ValidationError(f"Unknown view mode: {view_mode!r}")
        self.engine = engine
        self._today = to_date(today) if today is not None else None
        start = self.today()
        self.view_mode = view_mode
        self.current_date: date = start
        self.day_view_date: date = start
        self.unit_filter: str = ALL_UNITS
        self.selected_date_with_plans: Optional[Tuple[date, List[LessonPlan]]] = None
        self.create_request_date: Optional[date] = None
        self.create_request_hour: Optional[int] = None

    def today(self) -> date:
        return self._today or date.today()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValidationError(f"Unknown view mode: {mode!r} (expected one of {', '.join(VIEW_MODES)})")
        self.view_mode = mode

    def _step(self, direction: int) -> None:
        if self.view_mode == "month":
            self.current_date = add_months(self.current_date, direction)
        elif self.view_mode == "week":
            self.current_date = self.current_date + timedelta(weeks=direction)
        else:
            self.day_view_date = self.day_view_date + timedelta(days=direction)

    def next(self) -> None:
        self._step(1)

    def previous(self) -> None:
        self._step(-1)

    def go_today(self) -> None:
        self.current_date = self.today()
        self.day_view_date = self.today()

    def go_to(self, d: DateLike) -> None:
        """
        Jump the cursor of the active view to d.
        """
        if self.view_mode == "day":
            self.day_view_date = to_date(d)
        else:
            self.current_date = to_date(d)

    def set_unit_filter(self, unit_id: Optional[str]) -> None:
        self.unit_filter = unit_id or ALL_UNITS

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def visible_days(self) -> List[date]:
        if self.view_mode == "month":
            return month_grid(self.current_date)
        if self.view_mode == "week":
            return week_days(self.current_date)
        return [self.day_view_date]

    def hours(self) -> List[int]:
        return list(DAY_VIEW_HOURS)

    def cells(self) -> List[DayCell]:
        return [self.engine.day_cell(d, self.unit_filter) for d in self.visible_days()]

    def title(self) -> str:
        if self.view_mode == "month":
            return self.current_date.strftime("%B %Y")
        if self.view_mode == "week":
            first = week_days(self.current_date)[0]
            return f"Week of {first.day} {first.strftime('%b %Y')}"
        d = self.day_view_date
        return f"{d.strftime('%A')} {d.day} {d.strftime('%b %Y')}"

    def visible_plans(self, d: DateLike) -> List[LessonPlan]:
        return self.engine.get_lesson_plans_for_date(d, self.unit_filter)

    # ------------------------------------------------------------------
    # Clicks
    # ------------------------------------------------------------------

    def _is_blocked(self, d: date) -> bool:
        return self.engine.resolver.is_blocked(d)

    def click_date(self, d: DateLike) -> GridAction:
        day = to_date(d)
        if self._is_blocked(day):
            return GridAction.BLOCKED

        plans = self.visible_plans(day)
        if plans:
            self.selected_date_with_plans = (day, plans)
            return GridAction.SUMMARY

        self.create_request_date = day
        self.create_request_hour = None
        return GridAction.CREATE

    def click_slot(self, d: DateLike, hour: int) -> GridAction:
        day = to_date(d)
        if self._is_blocked(day):
            return GridAction.BLOCKED

        plans = self.engine.get_lesson_plans_for_hour(day, hour, self.unit_filter)
        if plans:
            self.selected_date_with_plans = (day, plans)
            return GridAction.SUMMARY

        self.create_request_date = day
        self.create_request_hour = hour
        return GridAction.CREATE

    def close_summary(self) -> None:
        self.selected_date_with_plans = None

    def clear_create_request(self) -> None:
        self.create_request_date = None
        self.create_request_hour = None

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def delete_plan(self, plan_id: str) -> bool:
        """
        Delete a plan and refresh the open summary; closes it once empty.
        """
        deleted = self.engine.delete_lesson_plan(plan_id)
        if deleted and self.selected_date_with_plans is not None:
            day, plans = self.selected_date_with_plans
            remaining = [p for p in plans if p.id != plan_id]
            self.selected_date_with_plans = (day, remaining) if remaining else None
        return deleted

    def drop(self, gesture: Gesture, d: DateLike, hour: Optional[int] = None) -> List[LessonPlan]:
        return self.engine.materialize(gesture, d, hour)
