"""
Half-term registry.

A UK academic year is split into 6 fixed half-terms. Each date maps to exactly
one of them via start cutoffs (month, day), in academic order:

    A1  Autumn 1   01 Sep
    A2  Autumn 2   25 Oct
    SP1 Spring 1   01 Jan
    SP2 Spring 2   01 Mar
    SM1 Summer 1   15 Apr   (SP2/SM1 split falls inside April)
    SM2 Summer 2   01 Jun   (runs to 31 Aug, so the mapping is total)

Besides the calendar mapping, the registry keeps per academic year the ordered
list of lesson numbers assigned to each half-term and a completion flag.

Invariants kept on every mutation:
- a list is stored without duplicates (first occurrence wins)
- an empty list is never complete
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from lessoncal.dates import DateLike, to_date
from lessoncal.model import HalfTerm, ValidationError

log = logging.getLogger(__name__)

# (id, name, months)
HALF_TERM_CATALOGUE: List[Tuple[str, str, str]] = [
    ("A1", "Autumn 1", "Sep-Oct"),
    ("A2", "Autumn 2", "Nov-Dec"),
    ("SP1", "Spring 1", "Jan-Feb"),
    ("SP2", "Spring 2", "Mar-Apr"),
    ("SM1", "Summer 1", "Apr-May"),
    ("SM2", "Summer 2", "Jun-Jul"),
]

HALF_TERM_IDS: List[str] = [t[0] for t in HALF_TERM_CATALOGUE]

DEFAULT_STARTS: Dict[str, Tuple[int, int]] = {
    "A1": (9, 1),
    "A2": (10, 25),
    "SP1": (1, 1),
    "SP2": (3, 1),
    "SM1": (4, 15),
    "SM2": (6, 1),
}


def _academic_key(month: int, day: int) -> Tuple[int, int]:
    # September becomes month 0, August month 11
    return ((month - 9) % 12, day)


def default_half_terms() -> List[HalfTerm]:
    return [HalfTerm(id=i, name=n, months=m) for i, n, m in HALF_TERM_CATALOGUE]


def check_half_term_starts(starts: Dict[str, Tuple[int, int]] | None) -> List[Tuple[Tuple[int, int], str]]:
    """
    Merge custom (month, day) starts over the defaults and validate them.

    Returns [(academic key, id), ...] in academic order; raises ValidationError
    for an unknown id, an impossible date, a moved A1 or out-of-order starts.
    """
    merged = dict(DEFAULT_STARTS)
    if starts:
        merged.update(starts)
    unknown = set(merged) - set(HALF_TERM_IDS)
    if unknown:
        raise ValidationError(f"Unknown half-term id: {', '.join(sorted(unknown))}")
    for term_id, (month, day) in merged.items():
        try:
            # non-leap year: a half-term cannot start on 29 February
            date(2001, month, day)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid start for half-term {term_id}: {month}-{day}") from exc
    if merged["A1"] != (9, 1):
        raise ValidationError("Autumn 1 must start on 1 September")
    keyed = [(_academic_key(*merged[i]), i) for i in HALF_TERM_IDS]
    for (k1, a), (k2, b) in zip(keyed, keyed[1:]):
        if not k1 < k2:
            raise ValidationError(f"Half-term {b} must start after {a}")
    return keyed


class HalfTermRegistry:
    def __init__(
        self,
        current_year: str,
        starts: Dict[str, Tuple[int, int]] | None = None,
        on_change: Callable[[str], None] | None = None,
    ) -> None:
        self._starts = check_half_term_starts(starts)
        self.current_year = current_year
        self.on_change = on_change
        self._by_year: Dict[str, Dict[str, HalfTerm]] = {}

    # ------------------------------------------------------------------
    # Calendar mapping
    # ------------------------------------------------------------------

    def half_term_for(self, d: DateLike) -> str:
        dd = to_date(d)
        key = _academic_key(dd.month, dd.day)
        found = HALF_TERM_IDS[0]
        for start_key, term_id in self._starts:
            if start_key <= key:
                found = term_id
        return found

    # ------------------------------------------------------------------
    # Assignment state
    # ------------------------------------------------------------------

    def load_year(self, year: str, half_terms: Iterable[HalfTerm]) -> None:
        """
        Install stored state for a year. Unknown ids are dropped, missing ids
        are filled from the catalogue, and the invariants are re-applied.
        """
        terms = {t.id: t for t in default_half_terms()}
        for stored in half_terms:
            if stored.id not in terms:
                log.warning("Dropping unknown half-term %r from year %s", stored.id, year)
                continue
            base = terms[stored.id]
            base.lessons = _dedupe(stored.lessons)
            base.stacks = list(stored.stacks)
            base.is_complete = stored.is_complete and bool(base.lessons)
        self._by_year[year] = terms

    def _year(self, year: Optional[str]) -> Dict[str, HalfTerm]:
        """
        State of a year for reading; an unknown year is an empty default view
        that is not remembered.
        """
        y = year or self.current_year
        if y in self._by_year:
            return self._by_year[y]
        return {t.id: t for t in default_half_terms()}

    def _year_for_update(self, year: Optional[str]) -> Dict[str, HalfTerm]:
        y = year or self.current_year
        if y not in self._by_year:
            self._by_year[y] = {t.id: t for t in default_half_terms()}
        return self._by_year[y]

    def years(self) -> List[str]:
        return sorted(self._by_year)

    def half_terms(self, year: Optional[str] = None) -> List[HalfTerm]:
        terms = self._year(year)
        return [terms[i] for i in HALF_TERM_IDS]

    def half_term(self, term_id: str, year: Optional[str] = None) -> Optional[HalfTerm]:
        return self._year(year).get(term_id)

    def lessons_for(self, term_id: str, year: Optional[str] = None) -> List[str]:
        term = self.half_term(term_id, year)
        return list(term.lessons) if term else []

    def is_complete(self, term_id: str, year: Optional[str] = None) -> bool:
        term = self.half_term(term_id, year)
        return term.is_complete if term else False

    def assign(
        self,
        term_id: str,
        lessons: Iterable[str],
        is_complete: bool,
        stacks: Optional[List[str]] = None,
        year: Optional[str] = None,
    ) -> HalfTerm:
        """
        Replace the ordered lesson list and completion flag of one half-term.

        This is a full replace, not a merge: callers read-modify-write.
        """
        term = self._year_for_update(year).get(term_id)
        if term is None:
            raise ValidationError(f"Unknown half-term id: {term_id!r}")

        term.lessons = _dedupe(lessons)
        # an empty half-term can never be complete
        term.is_complete = bool(is_complete) and bool(term.lessons)
        if stacks is not None:
            term.stacks = list(stacks)

        log.debug("Half-term %s/%s now has %d lessons (complete=%s)",
                  year or self.current_year, term_id, len(term.lessons), term.is_complete)
        self._changed(year)
        return term

    def set_complete(self, term_id: str, is_complete: bool, year: Optional[str] = None) -> HalfTerm:
        return self.assign(term_id, self.lessons_for(term_id, year), is_complete, year=year)

    def remove_lesson(self, term_id: str, lesson_number: str, year: Optional[str] = None) -> HalfTerm:
        remaining = [x for x in self.lessons_for(term_id, year) if x != lesson_number]
        return self.assign(term_id, remaining, self.is_complete(term_id, year), year=year)

    def reorder(self, term_id: str, from_index: int, to_index: int, year: Optional[str] = None) -> HalfTerm:
        """
        Move one lesson: splice it out at from_index, re-insert at to_index.
        """
        lessons = self.lessons_for(term_id, year)
        n = len(lessons)
        if not (0 <= from_index < n) or not (0 <= to_index < n):
            raise ValidationError(f"Lesson position out of range (half-term {term_id} has {n} lessons)")
        moved = lessons.pop(from_index)
        lessons.insert(to_index, moved)
        return self.assign(term_id, lessons, self.is_complete(term_id, year), year=year)

    def assigned_half_term(self, lesson_number: str, year: Optional[str] = None) -> Optional[str]:
        for term in self.half_terms(year):
            if lesson_number in term.lessons:
                return term.id
        return None

    def unassigned(self, candidates: Iterable[str], year: Optional[str] = None) -> List[str]:
        """
        Candidates not yet assigned to any half-term of the year.
        """
        taken = {x for term in self.half_terms(year) for x in term.lessons}
        return [c for c in candidates if c not in taken]

    def copy_term(self, source_year: str, source_id: str, target_year: str, target_id: str) -> HalfTerm:
        """
        Copy the lessons and stacks of one half-term into another one
        (possibly in another academic year). The copy starts incomplete.
        """
        if not (source_year and source_id and target_year and target_id):
            raise ValidationError("Please select all required fields")
        if source_year == target_year and source_id == target_id:
            raise ValidationError("Source and target cannot be the same")
        source = self.half_term(source_id, source_year)
        if source is None:
            raise ValidationError(f"Unknown half-term id: {source_id!r}")
        return self.assign(target_id, list(source.lessons), False, stacks=list(source.stacks), year=target_year)

    def _changed(self, year: Optional[str]) -> None:
        if self.on_change is not None:
            self.on_change(year or self.current_year)


def _dedupe(items: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for x in items:
        s = str(x).strip()
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out
