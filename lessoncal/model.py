"""
Central data model definitions used across the project.

This module defines the canonical structure of the scheduling objects so that:
- all modules share the same field names
- the JSON files written by storage.py keep the camelCase layout of the
  browser app they come from (dates as ISO-8601 strings)
- drag-and-drop gestures are plain tagged values, not ad-hoc dict shapes

Ownership:
- HalfTerm.lessons is owned by the half-term registry
- LessonPlan records are owned by the plan collection of the store
The two are never updated together: a lesson can sit in a half-term without
a dated LessonPlan, and deleting a LessonPlan leaves the half-term untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, List, Dict, Union

from lessoncal.dates import to_date, to_datetime


EVENT_TYPES = ("holiday", "inset", "event")
PLAN_STATUSES = ("planned", "completed", "cancelled")


class ValidationError(ValueError):
    """
    Raised at the boundary of a mutating call when its input is malformed.

    The message is meant to be shown to the user as-is.
    """


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass
class Activity:
    """
    One teaching activity from the content library.

    Only the fields the calendar needs are typed; everything else
    (links, html descriptions, ...) is carried in `extra` untouched.
    """

    activity: str
    description: str = ""
    time: int = 0
    category: str = ""
    lesson_number: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update(
            {
                "activity": self.activity,
                "description": self.description,
                "time": self.time,
                "category": self.category,
            }
        )
        if self.lesson_number is not None:
            out["lessonNumber"] = self.lesson_number
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        known = {"activity", "description", "time", "category", "lessonNumber"}
        try:
            minutes = int(data.get("time") or 0)
        except (TypeError, ValueError):
            minutes = 0
        return cls(
            activity=str(data.get("activity", "")),
            description=str(data.get("description", "") or ""),
            time=minutes,
            category=str(data.get("category", "") or ""),
            lesson_number=_opt_str(data.get("lessonNumber")),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class CalendarEvent:
    """
    An ad-hoc closed date interval (holiday, inset day or event).

    Both ends are inclusive and compared at day granularity.
    """

    id: str
    title: str
    start_date: date
    end_date: date
    type: str
    color: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "type": self.type,
            "description": self.description,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarEvent":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            start_date=to_date(data["startDate"]),
            end_date=to_date(data["endDate"]),
            type=str(data.get("type", "event")),
            color=str(data.get("color", "")),
            description=_opt_str(data.get("description")),
        )


@dataclass
class TimetableClass:
    """
    A weekly recurring occupancy slot, repeating forever.

    day: 0..6 for Sunday..Saturday
    start_time / end_time: "H:MM" or "HH:MM"

    recurring_unit_id is advisory: it tells the materializer which weekly
    cadence to use for that unit, it never schedules anything by itself.
    """

    id: str
    day: int
    start_time: str
    end_time: str
    class_name: str
    location: str = ""
    color: str = ""
    recurring_unit_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "day": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "className": self.class_name,
            "location": self.location,
            "color": self.color,
            "recurringUnitId": self.recurring_unit_id or "",
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimetableClass":
        return cls(
            id=str(data["id"]),
            day=int(data.get("day", 0)),
            start_time=str(data.get("startTime", "")),
            end_time=str(data.get("endTime", "")),
            class_name=str(data.get("className", "")),
            location=str(data.get("location", "") or ""),
            color=str(data.get("color", "") or ""),
            recurring_unit_id=_opt_str(data.get("recurringUnitId")),
        )


@dataclass
class HalfTerm:
    """
    One of the 6 fixed half-terms of an academic year plus its assignment state.
    """

    id: str
    name: str
    months: str
    lessons: List[str] = field(default_factory=list)
    is_complete: bool = False
    stacks: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "months": self.months,
            "lessons": list(self.lessons),
            "isComplete": self.is_complete,
            "stacks": list(self.stacks),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HalfTerm":
        lessons = data.get("lessons") or []
        stacks = data.get("stacks") or []
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            months=str(data.get("months", "")),
            lessons=[str(x) for x in lessons] if isinstance(lessons, list) else [],
            is_complete=bool(data.get("isComplete", False)),
            stacks=[str(x) for x in stacks] if isinstance(stacks, list) else [],
        )


@dataclass
class Unit:
    """
    An ordered grouping of lesson numbers; the order is the teaching sequence.
    """

    id: str
    name: str
    lesson_numbers: List[str]
    description: str = ""
    color: str = ""
    term: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "lessonNumbers": list(self.lesson_numbers),
            "color": self.color,
            "term": self.term,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Unit":
        created = data.get("createdAt")
        updated = data.get("updatedAt")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            lesson_numbers=[str(x) for x in data.get("lessonNumbers") or []],
            description=str(data.get("description", "") or ""),
            color=str(data.get("color", "") or ""),
            term=_opt_str(data.get("term")),
            created_at=to_datetime(created) if created else None,
            updated_at=to_datetime(updated) if updated else None,
        )


@dataclass
class LessonData:
    """
    A library lesson as returned by the content collaborator.
    """

    total_time: int = 0
    category_order: List[str] = field(default_factory=list)
    grouped: Dict[str, List[Activity]] = field(default_factory=dict)
    title: Optional[str] = None

    def activities(self) -> List[Activity]:
        """
        Flatten `grouped` following `category_order`; categories missing from
        the order come last, in insertion order.
        """
        ordered = [c for c in self.category_order if c in self.grouped]
        ordered += [c for c in self.grouped if c not in ordered]
        out: List[Activity] = []
        for category in ordered:
            out.extend(self.grouped[category])
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LessonData":
        grouped_raw = data.get("grouped") or {}
        grouped: Dict[str, List[Activity]] = {}
        if isinstance(grouped_raw, dict):
            for category, items in grouped_raw.items():
                if isinstance(items, list):
                    grouped[str(category)] = [Activity.from_dict(x) for x in items if isinstance(x, dict)]
        try:
            total = int(data.get("totalTime") or 0)
        except (TypeError, ValueError):
            total = 0
        return cls(
            total_time=total,
            category_order=[str(x) for x in data.get("categoryOrder") or []],
            grouped=grouped,
            title=_opt_str(data.get("title")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "totalTime": self.total_time,
            "categoryOrder": list(self.category_order),
            "grouped": {k: [a.to_dict() for a in v] for k, v in self.grouped.items()},
        }


@dataclass
class LessonPlan:
    """
    The dated, concrete occurrence of a lesson on the calendar.

    `date` is the only key used for grid placement; several plans may share a date.
    """

    id: str
    date: date
    week: int
    class_name: str
    activities: List[Activity] = field(default_factory=list)
    duration: int = 0
    notes: str = ""
    status: str = "planned"
    time: Optional[str] = None
    lesson_number: Optional[str] = None
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None
    title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "week": self.week,
            "className": self.class_name,
            "activities": [a.to_dict() for a in self.activities],
            "duration": self.duration,
            "notes": self.notes,
            "status": self.status,
            "time": self.time,
            "lessonNumber": self.lesson_number,
            "unitId": self.unit_id,
            "unitName": self.unit_name,
            "title": self.title,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LessonPlan":
        created = data.get("createdAt")
        updated = data.get("updatedAt")
        activities = data.get("activities") or []
        return cls(
            id=str(data["id"]),
            date=to_date(data["date"]),
            week=int(data.get("week") or 0),
            class_name=str(data.get("className", "")),
            activities=[Activity.from_dict(a) for a in activities if isinstance(a, dict)],
            duration=int(data.get("duration") or 0),
            notes=str(data.get("notes", "") or ""),
            status=str(data.get("status", "planned")),
            time=_opt_str(data.get("time")),
            lesson_number=_opt_str(data.get("lessonNumber")),
            unit_id=_opt_str(data.get("unitId")),
            unit_name=_opt_str(data.get("unitName")),
            title=_opt_str(data.get("title")),
            created_at=to_datetime(created) if created else None,
            updated_at=to_datetime(updated) if updated else None,
        )

    @property
    def display_title(self) -> str:
        return self.title or f"Lesson {self.lesson_number or ''}".strip()


# ---------------------------------------------------------------------------
# Gestures (drag-and-drop payloads)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActivityDrop:
    activity: Activity


@dataclass(frozen=True)
class LessonDrop:
    lesson_number: str


@dataclass(frozen=True)
class UnitDrop:
    unit: Unit


Gesture = Union[ActivityDrop, LessonDrop, UnitDrop]
