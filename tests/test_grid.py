import tempfile
import unittest
from datetime import date

from lessoncal.grid import CalendarGridView, GridAction
from lessoncal.model import Activity, ActivityDrop, Unit, UnitDrop, ValidationError
from tests.helpers import event, make_engine


class TestNavigation(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.engine = make_engine(self._tmp.name)
        self.grid = CalendarGridView(self.engine, today=date(2025, 9, 15))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_starts_on_today_in_month_view(self) -> None:
        self.assertEqual(self.grid.view_mode, "month")
        self.assertEqual(self.grid.current_date, date(2025, 9, 15))
        self.assertEqual(self.grid.day_view_date, date(2025, 9, 15))
        self.assertEqual(self.grid.title(), "September 2025")

    def test_month_grid_is_whole_weeks(self) -> None:
        days = self.grid.visible_days()
        self.assertEqual(days[0], date(2025, 8, 31))
        self.assertEqual(days[-1], date(2025, 10, 4))
        self.assertEqual(len(days) % 7, 0)

    def test_month_navigation(self) -> None:
        self.grid.next()
        self.assertEqual(self.grid.title(), "October 2025")
        self.grid.previous()
        self.grid.previous()
        self.assertEqual(self.grid.title(), "August 2025")

    def test_week_navigation(self) -> None:
        self.grid.set_view_mode("week")
        self.assertEqual(self.grid.title(), "Week of 14 Sep 2025")
        self.grid.next()
        self.assertEqual(self.grid.visible_days()[0], date(2025, 9, 21))
        self.assertEqual(len(self.grid.visible_days()), 7)

    def test_day_cursor_is_independent(self) -> None:
        self.grid.set_view_mode("day")
        self.grid.next()
        self.grid.next()
        self.assertEqual(self.grid.visible_days(), [date(2025, 9, 17)])
        self.assertEqual(self.grid.title(), "Wednesday 17 Sep 2025")

        self.grid.set_view_mode("month")
        self.assertEqual(self.grid.current_date, date(2025, 9, 15))
        self.grid.next()
        self.assertEqual(self.grid.day_view_date, date(2025, 9, 17))

    def test_go_today_resets_both_cursors(self) -> None:
        self.grid.next()
        self.grid.set_view_mode("day")
        self.grid.previous()
        self.grid.go_today()
        self.assertEqual(self.grid.current_date, date(2025, 9, 15))
        self.assertEqual(self.grid.day_view_date, date(2025, 9, 15))

    def test_go_to(self) -> None:
        self.grid.go_to("2026-02-10")
        self.assertEqual(self.grid.title(), "February 2026")
        self.assertEqual(len(self.grid.visible_days()), 28)

    def test_unknown_view_mode(self) -> None:
        with self.assertRaises(ValidationError):
            self.grid.set_view_mode("year")
        with self.assertRaises(ValidationError):
            CalendarGridView(self.engine, view_mode="agenda")

    def test_hours(self) -> None:
        hours = self.grid.hours()
        self.assertEqual(hours[0], 8)
        self.assertEqual(hours[-1], 18)


class TestClicks(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.engine = make_engine(self._tmp.name)
        self.engine.store.add_event(event("hol", "2025-10-27", "2025-10-31", "holiday"))
        self.engine.store.add_event(event("trip", "2025-09-19", "2025-09-19", "event"))
        self.grid = CalendarGridView(self.engine, today=date(2025, 9, 15))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_click_blocked_day_changes_nothing(self) -> None:
        self.assertEqual(self.grid.click_date(date(2025, 10, 28)), GridAction.BLOCKED)
        self.assertIsNone(self.grid.create_request_date)
        self.assertIsNone(self.grid.selected_date_with_plans)
        self.assertEqual(self.grid.click_slot(date(2025, 10, 28), 9), GridAction.BLOCKED)

    def test_click_empty_day_requests_create(self) -> None:
        self.assertEqual(self.grid.click_date("2025-09-19"), GridAction.CREATE)
        self.assertEqual(self.grid.create_request_date, date(2025, 9, 19))
        self.assertIsNone(self.grid.create_request_hour)
        self.grid.clear_create_request()
        self.assertIsNone(self.grid.create_request_date)

    def test_click_empty_slot_keeps_hour(self) -> None:
        self.assertEqual(self.grid.click_slot(date(2025, 9, 15), 11), GridAction.CREATE)
        self.assertEqual(self.grid.create_request_hour, 11)

    def test_click_day_with_plans_opens_summary(self) -> None:
        plans = self.grid.drop(ActivityDrop(Activity(activity="Drums", time=20)), date(2025, 9, 15), 9)
        self.assertEqual(self.grid.click_date(date(2025, 9, 15)), GridAction.SUMMARY)
        self.assertEqual(self.grid.selected_date_with_plans, (date(2025, 9, 15), plans))
        self.grid.close_summary()
        self.assertIsNone(self.grid.selected_date_with_plans)

        self.assertEqual(self.grid.click_slot(date(2025, 9, 15), 9), GridAction.SUMMARY)
        self.assertEqual(self.grid.click_slot(date(2025, 9, 15), 10), GridAction.CREATE)

    def test_delete_plan_refreshes_then_closes_summary(self) -> None:
        drop = ActivityDrop(Activity(activity="Drums", time=20))
        first = self.grid.drop(drop, date(2025, 9, 15))[0]
        second = self.grid.drop(drop, date(2025, 9, 15))[0]
        self.grid.click_date(date(2025, 9, 15))

        self.assertTrue(self.grid.delete_plan(first.id))
        self.assertEqual(self.grid.selected_date_with_plans, (date(2025, 9, 15), [second]))
        self.assertTrue(self.grid.delete_plan(second.id))
        self.assertIsNone(self.grid.selected_date_with_plans)
        self.assertFalse(self.grid.delete_plan("missing"))

    def test_drop_on_blocked_day(self) -> None:
        self.assertEqual(self.grid.drop(ActivityDrop(Activity(activity="Drums")), "2025-10-29"), [])
        self.assertEqual(self.engine.store.lesson_plans, [])

    def test_unit_filter(self) -> None:
        self.grid.drop(ActivityDrop(Activity(activity="Drums")), date(2025, 9, 15))
        self.grid.drop(UnitDrop(Unit(id="unit-1", name="Pirates", lesson_numbers=["1"])), date(2025, 9, 15))

        self.assertEqual(len(self.grid.visible_plans(date(2025, 9, 15))), 2)
        self.grid.set_unit_filter("unit-1")
        visible = self.grid.visible_plans(date(2025, 9, 15))
        self.assertEqual([p.unit_id for p in visible], ["unit-1"])

        self.grid.set_unit_filter("other")
        self.assertEqual(self.grid.click_date(date(2025, 9, 15)), GridAction.CREATE)
        self.grid.set_unit_filter(None)
        self.assertEqual(len(self.grid.visible_plans(date(2025, 9, 15))), 2)

    def test_cells(self) -> None:
        self.grid.set_view_mode("week")
        self.engine.store.add_event(event("inset", "2025-09-16", "2025-09-16", "inset"))
        cells = {c.date: c for c in self.grid.cells()}
        self.assertEqual(len(cells), 7)
        self.assertTrue(cells[date(2025, 9, 16)].blocked)
        self.assertEqual(cells[date(2025, 9, 19)].classification, "event")
        self.assertFalse(cells[date(2025, 9, 19)].blocked)
        self.assertEqual(cells[date(2025, 9, 15)].half_term, "A1")


if __name__ == "__main__":
    unittest.main()
