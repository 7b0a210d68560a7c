"""
iCalendar (.ics) export.

We convert the calendar of one class into a file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Mapping:
- CalendarEvent  -> all-day VEVENT (DTEND is exclusive, so end + 1 day)
- TimetableClass -> weekly recurring VEVENT starting in the week of `anchor`
- LessonPlan     -> timed VEVENT if it has a time, otherwise all-day
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from lessoncal.dates import day_of_week, time_to_minutes
from lessoncal.model import CalendarEvent, LessonPlan, TimetableClass

# RFC 5545 BYDAY codes, indexed 0=Sunday
BYDAY = ["SU", "MO", "TU", "WE", "TH", "FR", "SA"]


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _ics_date(d: date) -> str:
    return d.strftime("%Y%m%d")


def _dt_local(d: date, minutes: int) -> str:
    """
    Convert date + minutes since midnight to 'YYYYMMDDTHHMM00'.
    """
    dt = datetime(d.year, d.month, d.day) + timedelta(minutes=minutes)
    return dt.strftime("%Y%m%dT%H%M00")


def _begin(lines: List[str], uid: str, stamp: str) -> None:
    lines.append("BEGIN:VEVENT")
    lines.append(f"UID:{_ics_escape(uid)}")
    lines.append(f"DTSTAMP:{stamp}")


def export_calendar_to_ics(
    out_path: str | Path,
    events: Iterable[CalendarEvent] = (),
    classes: Iterable[TimetableClass] = (),
    plans: Iterable[LessonPlan] = (),
    anchor: Optional[date] = None,
    class_name: str = "",
) -> int:
    """
    Export to an .ics file. Returns number of exported VEVENTs.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    anchor = anchor or date.today()
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    lines: List[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//lessoncal//EN")
    lines.append("CALSCALE:GREGORIAN")
    if class_name:
        lines.append(f"X-WR-CALNAME:{_ics_escape(class_name)}")

    count = 0
    for ev in events:
        _begin(lines, f"{ev.id}@lessoncal", stamp)
        lines.append(f"DTSTART;VALUE=DATE:{_ics_date(ev.start_date)}")
        lines.append(f"DTEND;VALUE=DATE:{_ics_date(ev.end_date + timedelta(days=1))}")
        lines.append(f"SUMMARY:{_ics_escape(ev.title)}")
        lines.append(f"CATEGORIES:{ev.type.upper()}")
        if ev.description:
            lines.append(f"DESCRIPTION:{_ics_escape(ev.description)}")
        lines.append("END:VEVENT")
        count += 1

    for c in classes:
        try:
            start = time_to_minutes(c.start_time)
            end = time_to_minutes(c.end_time)
        except ValueError:
            continue
        if end <= start:
            continue
        first = anchor + timedelta(days=(c.day - day_of_week(anchor)) % 7)
        _begin(lines, f"{c.id}@lessoncal", stamp)
        lines.append(f"DTSTART:{_dt_local(first, start)}")
        lines.append(f"DTEND:{_dt_local(first, end)}")
        lines.append(f"RRULE:FREQ=WEEKLY;BYDAY={BYDAY[c.day]}")
        lines.append(f"SUMMARY:{_ics_escape(c.class_name)}")
        if c.location:
            lines.append(f"LOCATION:{_ics_escape(c.location)}")
        lines.append("END:VEVENT")
        count += 1

    for p in plans:
        _begin(lines, f"{p.id}@lessoncal", stamp)
        start_minutes: Optional[int] = None
        if p.time:
            try:
                start_minutes = time_to_minutes(p.time)
            except ValueError:
                start_minutes = None
        if start_minutes is not None:
            length = max(p.duration, 60)
            lines.append(f"DTSTART:{_dt_local(p.date, start_minutes)}")
            lines.append(f"DTEND:{_dt_local(p.date, start_minutes + length)}")
        else:
            lines.append(f"DTSTART;VALUE=DATE:{_ics_date(p.date)}")
            lines.append(f"DTEND;VALUE=DATE:{_ics_date(p.date + timedelta(days=1))}")
        summary = p.display_title
        if p.unit_name:
            summary = f"{summary} ({p.unit_name})"
        lines.append(f"SUMMARY:{_ics_escape(summary)}")
        if p.notes:
            lines.append(f"DESCRIPTION:{_ics_escape(p.notes)}")
        lines.append(f"STATUS:{'CANCELLED' if p.status == 'cancelled' else 'CONFIRMED'}")
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
