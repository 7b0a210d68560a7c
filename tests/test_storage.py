"""
Unit tests for the JSON storage layer and the store on top of it.
"""

import json
import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest import mock

from lessoncal import storage
from lessoncal.model import Activity, LessonPlan, TimetableClass, ValidationError
from lessoncal.store import SchedulingStore
from tests.helpers import YEAR, event, fixed_clock, make_engine


class TestStorageFiles(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_class_key(self) -> None:
        self.assertEqual(storage.class_key("Lower Kindergarten"), "lower-kindergarten")
        self.assertEqual(storage.class_key(" LKG "), "lkg")
        self.assertEqual(storage.class_key("!!!"), "default")

    def test_missing_files_are_empty(self) -> None:
        self.assertEqual(storage.load_events(self.data_dir, "LKG"), [])
        self.assertEqual(storage.load_lessons(self.data_dir, "LKG"), {})
        self.assertEqual(storage.stored_half_term_years(self.data_dir / "nope", "LKG"), [])

    def test_corrupt_file_is_empty(self) -> None:
        storage.events_path(self.data_dir, "LKG").write_text("{not json", encoding="utf-8")
        with self.assertLogs("lessoncal.storage", level="WARNING"):
            self.assertEqual(storage.load_events(self.data_dir, "LKG"), [])

    def test_broken_record_is_skipped(self) -> None:
        path = storage.events_path(self.data_dir, "LKG")
        good = event("e1", "2025-10-01", "2025-10-02", "holiday").to_dict()
        path.write_text(json.dumps([good, {"id": "e2"}, "junk"]), encoding="utf-8")
        with self.assertLogs("lessoncal.storage", level="WARNING"):
            loaded = storage.load_events(self.data_dir, "LKG")
        self.assertEqual([e.id for e in loaded], ["e1"])

    def test_camel_case_layout(self) -> None:
        storage.save_events(self.data_dir, "LKG", [event("e1", "2025-10-01", "2025-10-02", "holiday")])
        raw = json.loads(storage.events_path(self.data_dir, "LKG").read_text(encoding="utf-8"))
        self.assertEqual(raw[0]["startDate"], "2025-10-01")
        self.assertEqual(raw[0]["endDate"], "2025-10-02")

    def test_stored_half_term_years(self) -> None:
        storage.save_half_terms(self.data_dir, "LKG", "2024-2025", [])
        storage.save_half_terms(self.data_dir, "LKG", "2025-2026", [])
        storage.save_half_terms(self.data_dir, "UKG", "2023-2024", [])
        self.assertEqual(storage.stored_half_term_years(self.data_dir, "LKG"), ["2024-2025", "2025-2026"])


class TestSchedulingStore(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _store(self, class_name: str = "LKG") -> SchedulingStore:
        return SchedulingStore(class_name, self.data_dir, YEAR, clock=fixed_clock).load()

    def test_round_trip_through_files(self) -> None:
        engine = make_engine(self.data_dir)
        engine.store.add_event(event("hol", "2025-10-27", "2025-10-31", "holiday"))
        engine.store.add_timetable_class(
            TimetableClass(id="c1", day=1, start_time="9:00", end_time="10:00", class_name="Music")
        )
        engine.materializer.assign_unit("unit-1", date(2025, 9, 15))

        reloaded = self._store()
        self.assertEqual([e.id for e in reloaded.events], ["hol"])
        self.assertEqual([c.id for c in reloaded.timetable_classes], ["c1"])
        self.assertEqual([p.lesson_number for p in reloaded.lesson_plans], ["1", "2", "3"])
        self.assertEqual(reloaded.lesson_plans[0].created_at, fixed_clock())
        self.assertEqual(reloaded.half_terms.lessons_for("A1"), ["1", "2", "3"])

    def test_classes_are_isolated(self) -> None:
        self._store("LKG").add_event(event("hol", "2025-10-27", "2025-10-31", "holiday"))
        self.assertEqual(self._store("UKG").events, [])

    def test_load_keeps_list_identity(self) -> None:
        store = self._store()
        events = store.events
        store.load()
        self.assertIs(store.events, events)

    def test_blank_class_name(self) -> None:
        with self.assertRaises(ValidationError):
            SchedulingStore("  ", self.data_dir, YEAR)

    def test_duplicate_event_id(self) -> None:
        store = self._store()
        store.add_event(event("e1", "2025-10-01", "2025-10-01", "event"))
        with self.assertRaises(ValidationError):
            store.add_event(event("e1", "2025-11-01", "2025-11-01", "event"))

    def test_update_and_delete_event(self) -> None:
        store = self._store()
        store.add_event(event("e1", "2025-10-01", "2025-10-01", "event"))
        store.update_event(event("e1", "2025-10-01", "2025-10-03", "holiday"))
        self.assertEqual(store.get_event("e1").type, "holiday")
        with self.assertRaises(ValidationError):
            store.update_event(event("e9", "2025-10-01", "2025-10-01", "event"))
        self.assertTrue(store.delete_event("e1"))
        self.assertFalse(store.delete_event("e1"))

    def test_plan_upsert_and_status(self) -> None:
        store = self._store()
        plan = LessonPlan(id="p1", date=date(2025, 9, 15), week=37, class_name="LKG",
                          activities=[Activity(activity="Drums", time=10)], duration=10)
        store.update_lesson_plan(plan)
        self.assertEqual(len(store.lesson_plans), 1)
        self.assertEqual(store.set_plan_status("p1", "completed").status, "completed")
        self.assertIsNone(store.set_plan_status("missing", "completed"))
        with self.assertRaises(ValidationError):
            store.set_plan_status("p1", "done")

    def test_negative_duration_rejected(self) -> None:
        store = self._store()
        plan = LessonPlan(id="p1", date=date(2025, 9, 15), week=37, class_name="LKG", duration=-5)
        with self.assertRaises(ValidationError):
            store.add_lesson_plan(plan)
        self.assertEqual(store.lesson_plans, [])

    def test_write_failure_is_logged_not_raised(self) -> None:
        store = self._store()
        with mock.patch("lessoncal.storage._write_json", side_effect=OSError("disk full")):
            with self.assertLogs("lessoncal.store", level="ERROR") as logs:
                store.add_event(event("e1", "2025-10-01", "2025-10-01", "event"))
        self.assertIn("disk full", logs.output[0])
        # in-memory state is kept
        self.assertEqual([e.id for e in store.events], ["e1"])


if __name__ == "__main__":
    unittest.main()
