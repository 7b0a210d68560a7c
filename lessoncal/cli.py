"""
CLI (Command Line Interface).

Terminal commands on top of the scheduling engine, e.g.:

    lessoncal show month --date 2025-09-01
    lessoncal timetable add --day Monday --start 9:00 --end 10:00 --name "Music"
    lessoncal event add --title "Half term" --start 2025-10-27 --end 2025-10-31 --type holiday
    lessoncal plan drop-activity 2025-09-15 --name "Hello song" --minutes 5 --hour 9
    lessoncal unit assign unit-1 2025-09-15
    lessoncal halfterm show A1
    lessoncal conflicts
    lessoncal export calendar.ics

All state is read from and written to the data directory of the selected
class (see storage.py). Output is rendered with rich.
"""

from __future__ import annotations

import argparse
import logging
import uuid
from datetime import date
from pathlib import Path
from typing import List, Optional

import requests
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich import box
from rich.markup import escape

from lessoncal.config import (
    DAY_NAMES,
    DEFAULT_CLASS_COLOR,
    DEFAULT_CLASS_END,
    DEFAULT_CLASS_START,
    EVENT_COLORS,
    TERM_COLORS,
    load_settings,
)
from lessoncal.conflicts import find_event_overlaps, find_timetable_conflicts
from lessoncal.content import ContentLibrary, HttpContentLibrary, InMemoryContentLibrary
from lessoncal.dates import academic_year_for, to_date
from lessoncal.engine import SchedulingEngine
from lessoncal.export_ics import export_calendar_to_ics
from lessoncal.grid import CalendarGridView
from lessoncal.halfterms import HALF_TERM_IDS
from lessoncal.model import Activity, ActivityDrop, CalendarEvent, TimetableClass, ValidationError
from lessoncal.store import SchedulingStore

console = Console()


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_day(value: str) -> int:
    """
    Accept 0..6 (0=Sunday) or a day name / prefix ("mon", "Monday").
    """
    v = value.strip().lower()
    if v.isdigit():
        n = int(v)
        if 0 <= n <= 6:
            return n
    for i, name in enumerate(DAY_NAMES):
        if len(v) >= 3 and name.lower().startswith(v):
            return i
    raise argparse.ArgumentTypeError(f"invalid day: {value!r}")


def _parse_date(value: str) -> date:
    try:
        return to_date(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r} (expected YYYY-MM-DD)") from exc


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


def _build_engine(args: argparse.Namespace) -> SchedulingEngine:
    """
    Load settings, the store and the content library for the selected class.
    """
    settings = load_settings(args.data_dir)
    class_name = args.class_name or settings.class_name
    year = args.year or settings.academic_year or academic_year_for(date.today())

    store = SchedulingStore(
        class_name=class_name,
        data_dir=settings.data_dir,
        academic_year=year,
        half_term_starts=settings.half_term_starts,
    ).load()

    content: ContentLibrary
    if args.content_url:
        content = HttpContentLibrary(args.content_url)
    else:
        content = InMemoryContentLibrary.from_data_dir(settings.data_dir, class_name)
    return SchedulingEngine(store, content)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


def _month_cell_text(cell, current_month: int) -> str:
    day = str(cell.date.day) if cell.date.month == current_month else f"[dim]{cell.date.day}[/dim]"
    parts = [day]
    if cell.classification == "holiday":
        parts.append(f"[{EVENT_COLORS['holiday']}]Holiday[/]")
    elif cell.classification == "inset":
        parts.append(f"[{EVENT_COLORS['inset']}]Inset Day[/]")
    else:
        if cell.events:
            ev = cell.events[0]
            parts.append(f"[{ev.color or EVENT_COLORS['event']}]{escape(ev.title)}[/]")
            if len(cell.events) > 1:
                parts.append(f"+{len(cell.events) - 1} more")
        if cell.plans:
            parts.append(escape(cell.plans[0].display_title))
            if len(cell.plans) > 1:
                parts.append(f"+{len(cell.plans) - 1} more")
        if cell.classes:
            parts.append("[dim]" + "•" * min(len(cell.classes), 3) + "[/dim]")
    return "\n".join(parts)


def _render_month(view: CalendarGridView) -> None:
    table = Table(title=view.title(), box=box.SIMPLE_HEAVY, show_lines=True)
    for name in DAY_NAMES:
        table.add_column(name[:3], min_width=10, vertical="top")
    cells = view.cells()
    month = view.current_date.month
    for i in range(0, len(cells), 7):
        table.add_row(*[_month_cell_text(c, month) for c in cells[i:i + 7]])
    console.print(table)


def _slot_text(view: CalendarGridView, cell, hour: int) -> str:
    if cell.blocked:
        return "[dim]-[/dim]"
    parts = []
    for c in view.engine.projector.occurrences_in_hour(cell.date, hour):
        parts.append(f"[{c.color or 'cyan'}]{escape(c.class_name)}[/]")
    for p in view.engine.get_lesson_plans_for_hour(cell.date, hour, view.unit_filter):
        parts.append(f"[bold]{escape(p.display_title)}[/bold]")
    return "\n".join(parts)


def _render_hours(view: CalendarGridView) -> None:
    cells = view.cells()
    table = Table(title=view.title(), box=box.SIMPLE_HEAVY, show_lines=True)
    table.add_column("Time", style="dim")
    for cell in cells:
        header = cell.date.strftime("%a %d")
        if cell.blocked:
            header += f"\n{'Holiday' if cell.classification == 'holiday' else 'Inset Day'}"
        table.add_column(header, min_width=12, vertical="top")

    untimed = [", ".join(escape(p.display_title) for p in c.plans if not p.time) for c in cells]
    if any(untimed):
        table.add_row("all day", *untimed)
    for hour in view.hours():
        table.add_row(f"{hour}:00", *[_slot_text(view, c, hour) for c in cells])
    console.print(table)


def _cmd_show(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    view = CalendarGridView(engine, view_mode=args.mode)
    if args.date:
        view.go_to(args.date)
    view.set_unit_filter(args.unit)
    if args.mode == "month":
        _render_month(view)
    else:
        _render_hours(view)
    return 0


# ---------------------------------------------------------------------------
# timetable
# ---------------------------------------------------------------------------


def _cmd_timetable(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    if args.action == "list":
        classes = [c for day in range(7) for c in engine.get_timetable_classes_for_day(day)]
        if not classes:
            console.print("No timetable classes.")
            return 0
        table = Table(box=box.SIMPLE)
        for col in ("ID", "Day", "Time", "Class", "Location", "Unit"):
            table.add_column(col)
        for c in classes:
            table.add_row(c.id, DAY_NAMES[c.day], f"{c.start_time}-{c.end_time}", escape(c.class_name),
                          c.location, c.recurring_unit_id or "")
        console.print(table)
        return 0

    if args.action == "add":
        cls = TimetableClass(
            id=_new_id("class"),
            day=args.day,
            start_time=args.start,
            end_time=args.end,
            class_name=args.name,
            location=args.location,
            color=args.color or DEFAULT_CLASS_COLOR,
            recurring_unit_id=args.unit,
        )
        engine.add_timetable_class(cls)
        console.print(f"Added: {cls.id} ({DAY_NAMES[cls.day]} {cls.start_time}-{cls.end_time} {cls.class_name})")
        return 0

    if args.action == "remove":
        if not engine.delete_timetable_class(args.id):
            console.print(f"Not found: {args.id}")
            return 1
        console.print(f"Removed: {args.id}")
        return 0
    return 2


# ---------------------------------------------------------------------------
# event
# ---------------------------------------------------------------------------


def _cmd_event(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    store = engine.store
    if args.action == "list":
        if not store.events:
            console.print("No calendar events.")
            return 0
        table = Table(box=box.SIMPLE)
        for col in ("ID", "Type", "From", "To", "Title"):
            table.add_column(col)
        for e in sorted(store.events, key=lambda x: (x.start_date, x.end_date)):
            table.add_row(e.id, f"[{e.color}]{e.type}[/]", e.start_date.isoformat(), e.end_date.isoformat(),
                          escape(e.title))
        console.print(table)
        return 0

    if args.action == "add":
        event = CalendarEvent(
            id=_new_id("event"),
            title=args.title,
            start_date=args.start,
            end_date=args.end or args.start,
            type=args.type,
            color=EVENT_COLORS[args.type],
            description=args.description,
        )
        engine.add_event(event)
        console.print(f"Added: {event.id} ({event.type} {event.start_date}..{event.end_date} {event.title})")
        return 0

    if args.action == "remove":
        if not engine.delete_event(args.id):
            console.print(f"Not found: {args.id}")
            return 1
        console.print(f"Removed: {args.id}")
        return 0
    return 2


# ---------------------------------------------------------------------------
# plan
# ---------------------------------------------------------------------------


def _cmd_plan(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    store = engine.store

    if args.action == "list":
        plans = store.lesson_plans
        if args.date:
            plans = engine.get_lesson_plans_for_date(args.date, args.unit or "all")
        elif args.unit:
            plans = [p for p in plans if p.unit_id == args.unit]
        if not plans:
            console.print("No lesson plans.")
            return 0
        table = Table(box=box.SIMPLE)
        for col in ("ID", "Date", "Week", "Time", "Lesson", "Unit", "Min", "Status"):
            table.add_column(col)
        for p in sorted(plans, key=lambda x: (x.date, x.time or "")):
            table.add_row(p.id, p.date.isoformat(), str(p.week), p.time or "", p.display_title,
                          p.unit_name or "", str(p.duration), p.status)
        console.print(table)
        return 0

    if args.action == "drop-activity":
        activity = Activity(activity=args.name, description=args.description, time=args.minutes,
                            category=args.category)
        created = engine.materialize(ActivityDrop(activity), args.date, args.hour)
        if not created:
            console.print(f"{args.date} is a holiday or inset day: nothing scheduled.")
            return 0
        console.print(f"Planned: {created[0].id} on {created[0].date} (week {created[0].week})")
        return 0

    if args.action == "assign-lesson":
        created = engine.assign_lesson(args.lesson, args.dates)
        if not created:
            console.print("Nothing scheduled (unknown lesson or only blocked dates).")
            return 0
        for p in created:
            console.print(f"Planned: {p.id} on {p.date} (lesson {p.lesson_number})")
        return 0

    if args.action == "delete":
        if not engine.delete_lesson_plan(args.id):
            console.print(f"Not found: {args.id}")
            return 1
        console.print(f"Deleted: {args.id}")
        return 0

    if args.action == "status":
        plan = engine.set_plan_status(args.id, args.status)
        if plan is None:
            console.print(f"Not found: {args.id}")
            return 1
        console.print(f"{plan.id}: {plan.status}")
        return 0
    return 2


# ---------------------------------------------------------------------------
# unit
# ---------------------------------------------------------------------------


def _cmd_unit(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    unit = engine.content.get_unit_by_id(args.unit_id)
    if unit is None:
        console.print(f"Unknown unit: {args.unit_id}")
        return 1

    timetable_class = None
    if args.class_id:
        timetable_class = engine.store.get_timetable_class(args.class_id)
        if timetable_class is None:
            console.print(f"Unknown timetable class: {args.class_id}")
            return 1

    created = engine.assign_unit(unit, args.start, args.half_term, timetable_class)
    if not created:
        console.print(f"Nothing scheduled for unit {unit.name}.")
        return 0
    term = args.half_term or engine.half_term_for(args.start)
    console.print(f"Scheduled {len(created)} lessons of {unit.name} ({term}):")
    for p in created:
        console.print(f"  {p.date.isoformat()}  lesson {p.lesson_number}")
    return 0


# ---------------------------------------------------------------------------
# halfterm
# ---------------------------------------------------------------------------


def _cmd_halfterm(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    registry = engine.half_terms

    if args.action == "list":
        table = Table(title=f"Half-terms {registry.current_year}", box=box.SIMPLE)
        for col in ("ID", "Name", "Months", "Lessons", "Status"):
            table.add_column(col)
        for t in registry.half_terms():
            status = "Complete" if t.is_complete else ("In Progress" if t.lessons else "Empty")
            table.add_row(f"[{TERM_COLORS.get(t.id, 'white')}]{t.id}[/]", t.name, t.months,
                          str(len(t.lessons)), status)
        console.print(table)
        return 0

    if args.action == "show":
        term = registry.half_term(args.id)
        if term is None:
            console.print(f"Unknown half-term: {args.id}")
            return 1
        console.print(f"{term.name} ({term.id}) {'Complete' if term.is_complete else 'In Progress'}")
        if not term.lessons:
            console.print("No lessons assigned.")
        for i, number in enumerate(term.lessons):
            lesson = engine.content.get_lesson_by_number(number)
            title = lesson.title if lesson and lesson.title else f"Lesson {number}"
            minutes = f"{lesson.total_time} mins" if lesson else "missing from library"
            console.print(f"  {i}. {number}  {title}  [dim]{minutes}[/dim]")
        return 0

    if args.action == "remove":
        engine.remove_lesson_from_half_term(args.id, args.lesson)
        console.print(f"Removed lesson {args.lesson} from {args.id}")
        return 0

    if args.action == "reorder":
        term = engine.reorder_half_term(args.id, args.from_index, args.to_index)
        console.print(f"{term.id}: {', '.join(term.lessons)}")
        return 0

    if args.action == "complete":
        term = engine.set_half_term_complete(args.id, not args.undo)
        console.print(f"{term.id}: {'Complete' if term.is_complete else 'In Progress'}")
        return 0

    if args.action == "copy":
        term = engine.copy_half_term(args.source_year, args.source_id, args.target_year, args.target_id)
        console.print(f"Copied {len(term.lessons)} lessons to {args.target_year} {term.id}")
        return 0
    return 2


# ---------------------------------------------------------------------------
# conflicts / export
# ---------------------------------------------------------------------------


def _cmd_conflicts(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    """
    Print overlapping timetable classes and overlapping calendar events.
    """
    class_confs = find_timetable_conflicts(engine.store.timetable_classes)
    event_confs = find_event_overlaps(engine.store.events)
    if not class_confs and not event_confs:
        console.print("No conflicts found.")
        return 0

    if class_confs:
        console.print(f"Timetable conflicts: {len(class_confs)}")
        for a, b in class_confs:
            console.print(f"- {DAY_NAMES[a.day]} {a.start_time}-{a.end_time} {a.class_name}  <->  "
                          f"{b.start_time}-{b.end_time} {b.class_name}")
    if event_confs:
        console.print(f"Overlapping events: {len(event_confs)}")
        for a, b in event_confs:
            console.print(f"- {a.start_date}..{a.end_date} {a.type} {a.title}  <->  "
                          f"{b.start_date}..{b.end_date} {b.type} {b.title}")
    return 0


def _cmd_export(args: argparse.Namespace, engine: SchedulingEngine) -> int:
    out_path = (args.out or "").strip()
    if not out_path:
        console.print("Please provide output .ics path.")
        return 1
    store = engine.store
    n = export_calendar_to_ics(
        out_path,
        events=store.events,
        classes=store.timetable_classes,
        plans=store.lesson_plans,
        class_name=store.class_name,
    )
    console.print(f"Exported {n} entries to: {out_path}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="lessoncal", description="Lesson planner calendar")
    parser.add_argument("--data-dir", type=Path, default=None, help="Data directory (default: $LESSONCAL_DATA_DIR)")
    parser.add_argument("--class-name", type=str, default=None, help="Class / year group (e.g. LKG)")
    parser.add_argument("--year", type=str, default=None, help="Academic year (e.g. 2025-2026)")
    parser.add_argument("--content-url", type=str, default=None, help="Base URL of a content API")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    sub = parser.add_subparsers(dest="command", required=True)

    p_show = sub.add_parser("show", help="Show the calendar grid")
    p_show.add_argument("mode", nargs="?", choices=["month", "week", "day"], default="month")
    p_show.add_argument("--date", type=_parse_date, default=None)
    p_show.add_argument("--unit", type=str, default=None, help="Only show plans of this unit")

    p_tt = sub.add_parser("timetable", help="Manage weekly timetable classes")
    tt = p_tt.add_subparsers(dest="action", required=True)
    tt.add_parser("list")
    tt_add = tt.add_parser("add")
    tt_add.add_argument("--day", type=_parse_day, required=True, help="0-6 (0=Sunday) or day name")
    tt_add.add_argument("--start", type=str, default=DEFAULT_CLASS_START)
    tt_add.add_argument("--end", type=str, default=DEFAULT_CLASS_END)
    tt_add.add_argument("--name", type=str, required=True)
    tt_add.add_argument("--location", type=str, default="")
    tt_add.add_argument("--color", type=str, default="")
    tt_add.add_argument("--unit", type=str, default=None, help="Linked recurring unit id")
    tt_rm = tt.add_parser("remove")
    tt_rm.add_argument("id")

    p_ev = sub.add_parser("event", help="Manage holidays, inset days and events")
    ev = p_ev.add_subparsers(dest="action", required=True)
    ev.add_parser("list")
    ev_add = ev.add_parser("add")
    ev_add.add_argument("--title", type=str, required=True)
    ev_add.add_argument("--start", type=_parse_date, required=True)
    ev_add.add_argument("--end", type=_parse_date, default=None)
    ev_add.add_argument("--type", choices=list(EVENT_COLORS), default="event")
    ev_add.add_argument("--description", type=str, default=None)
    ev_rm = ev.add_parser("remove")
    ev_rm.add_argument("id")

    p_plan = sub.add_parser("plan", help="Manage lesson plans")
    pl = p_plan.add_subparsers(dest="action", required=True)
    pl_list = pl.add_parser("list")
    pl_list.add_argument("--date", type=_parse_date, default=None)
    pl_list.add_argument("--unit", type=str, default=None)
    pl_drop = pl.add_parser("drop-activity", help="Plan a single activity on a date")
    pl_drop.add_argument("date", type=_parse_date)
    pl_drop.add_argument("--name", type=str, required=True)
    pl_drop.add_argument("--minutes", type=int, default=0)
    pl_drop.add_argument("--description", type=str, default="")
    pl_drop.add_argument("--category", type=str, default="")
    pl_drop.add_argument("--hour", type=int, default=None)
    pl_assign = pl.add_parser("assign-lesson", help="Plan a library lesson on one or more dates")
    pl_assign.add_argument("lesson")
    pl_assign.add_argument("dates", type=_parse_date, nargs="+")
    pl_del = pl.add_parser("delete")
    pl_del.add_argument("id")
    pl_status = pl.add_parser("status")
    pl_status.add_argument("id")
    pl_status.add_argument("status", choices=["planned", "completed", "cancelled"])

    p_unit = sub.add_parser("unit", help="Schedule units")
    un = p_unit.add_subparsers(dest="action", required=True)
    un_assign = un.add_parser("assign", help="Date every lesson of a unit starting at a date")
    un_assign.add_argument("unit_id")
    un_assign.add_argument("start", type=_parse_date)
    un_assign.add_argument("--half-term", choices=HALF_TERM_IDS, default=None)
    un_assign.add_argument("--class-id", type=str, default=None, help="Follow this timetable class weekly")

    p_ht = sub.add_parser("halfterm", help="Half-term lesson assignment")
    ht = p_ht.add_subparsers(dest="action", required=True)
    ht.add_parser("list")
    ht_show = ht.add_parser("show")
    ht_show.add_argument("id", choices=HALF_TERM_IDS)
    ht_rm = ht.add_parser("remove")
    ht_rm.add_argument("id", choices=HALF_TERM_IDS)
    ht_rm.add_argument("lesson")
    ht_re = ht.add_parser("reorder")
    ht_re.add_argument("id", choices=HALF_TERM_IDS)
    ht_re.add_argument("from_index", type=int)
    ht_re.add_argument("to_index", type=int)
    ht_done = ht.add_parser("complete")
    ht_done.add_argument("id", choices=HALF_TERM_IDS)
    ht_done.add_argument("--undo", action="store_true")
    ht_copy = ht.add_parser("copy")
    ht_copy.add_argument("source_year")
    ht_copy.add_argument("source_id", choices=HALF_TERM_IDS)
    ht_copy.add_argument("target_year")
    ht_copy.add_argument("target_id", choices=HALF_TERM_IDS)

    sub.add_parser("conflicts", help="Show overlapping classes and events")

    p_export = sub.add_parser("export", help="Export the calendar to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")

    return parser


COMMANDS = {
    "show": _cmd_show,
    "timetable": _cmd_timetable,
    "event": _cmd_event,
    "plan": _cmd_plan,
    "unit": _cmd_unit,
    "halfterm": _cmd_halfterm,
    "conflicts": _cmd_conflicts,
    "export": _cmd_export,
}


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        engine = _build_engine(args)
        code = handler(args, engine)
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1)
    except requests.RequestException as exc:
        console.print(f"[red]Content API error:[/red] {escape(str(exc))}")
        raise SystemExit(1)

    raise SystemExit(code)
