"""
Calendar event overlay.

Events are closed date ranges (both ends inclusive, compared as dates).
When several events cover the same day a single classification is derived:

    holiday > inset > event > none

Holiday and inset days block ordinary scheduling: no lesson can be created or
dropped on them.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from lessoncal.config import EVENT_COLORS
from lessoncal.dates import DateLike, in_range
from lessoncal.model import EVENT_TYPES, CalendarEvent, ValidationError

log = logging.getLogger(__name__)

NONE = "none"
BLOCKING_TYPES = ("holiday", "inset")


def validate_event(event: CalendarEvent) -> None:
    if not event.title.strip():
        raise ValidationError("Please enter an event title")
    if event.type not in EVENT_TYPES:
        raise ValidationError(f"Unknown event type: {event.type!r} (expected one of {', '.join(EVENT_TYPES)})")
    if event.start_date > event.end_date:
        raise ValidationError("End date must be after start date")
    if not event.color:
        event.color = EVENT_COLORS[event.type]


class EventOverlayResolver:
    """
    Linear scans over the event list; recomputed on every query.
    """

    def __init__(self, events: List[CalendarEvent]) -> None:
        self._events = events

    def events_on(self, d: DateLike) -> List[CalendarEvent]:
        return [e for e in self._events if in_range(d, e.start_date, e.end_date)]

    def dominant_event(self, d: DateLike) -> Optional[CalendarEvent]:
        """
        The event that decides classification_on(d): the first event (in
        insertion order) of the highest-precedence type covering d.
        """
        covering = self.events_on(d)
        for kind in EVENT_TYPES:
            for e in covering:
                if e.type == kind:
                    return e
        return None

    def classification_on(self, d: DateLike) -> str:
        dominant = self.dominant_event(d)
        return dominant.type if dominant is not None else NONE

    def is_holiday(self, d: DateLike) -> bool:
        return any(e.type == "holiday" for e in self.events_on(d))

    def is_inset_day(self, d: DateLike) -> bool:
        return any(e.type == "inset" for e in self.events_on(d))

    def is_blocked(self, d: DateLike) -> bool:
        return self.classification_on(d) in BLOCKING_TYPES
