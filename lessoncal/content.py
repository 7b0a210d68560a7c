"""
Content-library collaborator.

The scheduling core never edits lessons or units; it only asks two questions:

    get_lesson_by_number(n) -> LessonData | None
    get_unit_by_id(id)      -> Unit | None

Two implementations:
- InMemoryContentLibrary: dicts, usually loaded from the JSON files in the
  data directory (see storage.py)
- HttpContentLibrary: read-only REST client for a remote content API
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol
from urllib.parse import quote

import requests

from lessoncal import storage
from lessoncal.model import LessonData, Unit

log = logging.getLogger(__name__)


class ContentLibrary(Protocol):
    def get_lesson_by_number(self, lesson_number: str) -> Optional[LessonData]: ...

    def get_unit_by_id(self, unit_id: str) -> Optional[Unit]: ...


class InMemoryContentLibrary:
    def __init__(
        self,
        lessons: Dict[str, LessonData] | None = None,
        units: Iterable[Unit] | None = None,
    ) -> None:
        self.lessons: Dict[str, LessonData] = dict(lessons or {})
        self.units: List[Unit] = list(units or [])

    @classmethod
    def from_data_dir(cls, data_dir: Path, class_name: str) -> "InMemoryContentLibrary":
        return cls(
            lessons=storage.load_lessons(data_dir, class_name),
            units=storage.load_units(data_dir, class_name),
        )

    def get_lesson_by_number(self, lesson_number: str) -> Optional[LessonData]:
        return self.lessons.get(str(lesson_number))

    def get_unit_by_id(self, unit_id: str) -> Optional[Unit]:
        for u in self.units:
            if u.id == unit_id:
                return u
        return None

    def lesson_exists(self, lesson_number: str) -> bool:
        return str(lesson_number) in self.lessons


class HttpContentLibrary:
    """
    GET {base_url}/lessons/{n}  -> LessonData JSON
    GET {base_url}/units/{id}   -> Unit JSON

    404 means "not found" and yields None; any other HTTP error is raised.
    Results (including misses) are cached for the lifetime of the instance.
    """

    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self._lessons: Dict[str, Optional[LessonData]] = {}
        self._units: Dict[str, Optional[Unit]] = {}

    def _get(self, path: str) -> Optional[dict]:
        url = f"{self.base_url}/{path}"
        resp = self.session.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            log.debug("Content API: %s not found", url)
            return None
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, dict) else None

    def get_lesson_by_number(self, lesson_number: str) -> Optional[LessonData]:
        key = str(lesson_number)
        if key not in self._lessons:
            data = self._get(f"lessons/{quote(key, safe='')}")
            self._lessons[key] = LessonData.from_dict(data) if data is not None else None
        return self._lessons[key]

    def get_unit_by_id(self, unit_id: str) -> Optional[Unit]:
        if unit_id not in self._units:
            data = self._get(f"units/{quote(unit_id, safe='')}")
            self._units[unit_id] = Unit.from_dict(data) if data is not None else None
        return self._units[unit_id]

    def lesson_exists(self, lesson_number: str) -> bool:
        return self.get_lesson_by_number(lesson_number) is not None
