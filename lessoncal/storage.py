"""
Persistent storage for one class / year-group.

Every collection is one JSON file inside the data directory, keyed by the
active class identifier (and academic year for half-terms):

    timetable-{class}.json            TimetableClass[]
    calendar-events-{class}.json      CalendarEvent[]
    half-terms-{class}-{year}.json    HalfTerm[]
    lesson-plans-{class}.json         LessonPlan[]
    units-{class}.json                Unit[]
    lessons-{class}.json              {lessonNumber: LessonData}

Design rationale:
- loading never crashes the application: a missing or corrupted file simply
  yields an empty collection (logged, so the user can find out why)
- one collection per file keeps writes small and the store swappable
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, TypeVar

from lessoncal.model import CalendarEvent, HalfTerm, LessonData, LessonPlan, TimetableClass, Unit

log = logging.getLogger(__name__)

T = TypeVar("T")


def class_key(class_name: str) -> str:
    """
    Normalize a class identifier for use in file names: "Lower Kindergarten" -> "lower-kindergarten".
    """
    slug = re.sub(r"[^a-z0-9]+", "-", class_name.strip().lower()).strip("-")
    return slug or "default"


def timetable_path(data_dir: Path, class_name: str) -> Path:
    return data_dir / f"timetable-{class_key(class_name)}.json"


def events_path(data_dir: Path, class_name: str) -> Path:
    return data_dir / f"calendar-events-{class_key(class_name)}.json"


def half_terms_path(data_dir: Path, class_name: str, year: str) -> Path:
    return data_dir / f"half-terms-{class_key(class_name)}-{year}.json"


def lesson_plans_path(data_dir: Path, class_name: str) -> Path:
    return data_dir / f"lesson-plans-{class_key(class_name)}.json"


def units_path(data_dir: Path, class_name: str) -> Path:
    return data_dir / f"units-{class_key(class_name)}.json"


def lessons_path(data_dir: Path, class_name: str) -> Path:
    return data_dir / f"lessons-{class_key(class_name)}.json"


# ---------------------------------------------------------------------------
# Generic JSON helpers
# ---------------------------------------------------------------------------


def _read_json(path: Path) -> Any:
    """
    Return parsed JSON, or None if the file is missing or unreadable.
    """
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.warning("Ignoring unreadable file %s: %s", path, exc)
        return None


def _write_json(path: Path, payload: Any) -> None:
    """
    Write JSON, creating parent directories if needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _load_list(path: Path, from_dict: Callable[[Dict[str, Any]], T]) -> List[T]:
    data = _read_json(path)
    if not isinstance(data, list):
        if data is not None:
            log.warning("Ignoring %s: expected a JSON array", path)
        return []

    out: List[T] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            continue
        try:
            out.append(from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            # skip the broken record, keep the rest
            log.warning("Skipping record %d in %s: %s", i, path, exc)
    return out


def _save_list(path: Path, items: Iterable[Any]) -> None:
    _write_json(path, [x.to_dict() for x in items])


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def load_timetable(data_dir: Path, class_name: str) -> List[TimetableClass]:
    return _load_list(timetable_path(data_dir, class_name), TimetableClass.from_dict)


def save_timetable(data_dir: Path, class_name: str, classes: Iterable[TimetableClass]) -> None:
    _save_list(timetable_path(data_dir, class_name), classes)


def load_events(data_dir: Path, class_name: str) -> List[CalendarEvent]:
    return _load_list(events_path(data_dir, class_name), CalendarEvent.from_dict)


def save_events(data_dir: Path, class_name: str, events: Iterable[CalendarEvent]) -> None:
    _save_list(events_path(data_dir, class_name), events)


def load_half_terms(data_dir: Path, class_name: str, year: str) -> List[HalfTerm]:
    return _load_list(half_terms_path(data_dir, class_name, year), HalfTerm.from_dict)


def save_half_terms(data_dir: Path, class_name: str, year: str, half_terms: Iterable[HalfTerm]) -> None:
    _save_list(half_terms_path(data_dir, class_name, year), half_terms)


def stored_half_term_years(data_dir: Path, class_name: str) -> List[str]:
    """
    Academic years that have a half-terms file for this class.
    """
    prefix = f"half-terms-{class_key(class_name)}-"
    if not data_dir.exists():
        return []
    years = []
    for p in data_dir.glob(f"{prefix}*.json"):
        year = p.stem[len(prefix):]
        if re.fullmatch(r"\d{4}-\d{4}", year):
            years.append(year)
    return sorted(years)


def load_lesson_plans(data_dir: Path, class_name: str) -> List[LessonPlan]:
    return _load_list(lesson_plans_path(data_dir, class_name), LessonPlan.from_dict)


def save_lesson_plans(data_dir: Path, class_name: str, plans: Iterable[LessonPlan]) -> None:
    _save_list(lesson_plans_path(data_dir, class_name), plans)


def load_units(data_dir: Path, class_name: str) -> List[Unit]:
    return _load_list(units_path(data_dir, class_name), Unit.from_dict)


def save_units(data_dir: Path, class_name: str, units: Iterable[Unit]) -> None:
    _save_list(units_path(data_dir, class_name), units)


def load_lessons(data_dir: Path, class_name: str) -> Dict[str, LessonData]:
    path = lessons_path(data_dir, class_name)
    data = _read_json(path)
    if not isinstance(data, dict):
        if data is not None:
            log.warning("Ignoring %s: expected a JSON object", path)
        return {}
    out: Dict[str, LessonData] = {}
    for number, raw in data.items():
        if isinstance(raw, dict):
            out[str(number)] = LessonData.from_dict(raw)
    return out


def save_lessons(data_dir: Path, class_name: str, lessons: Dict[str, LessonData]) -> None:
    _write_json(lessons_path(data_dir, class_name), {k: v.to_dict() for k, v in lessons.items()})
