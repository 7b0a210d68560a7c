import argparse
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests
from rich.console import Console

from lessoncal import cli, storage
from lessoncal.model import LessonData, Unit


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)
        self.output = io.StringIO()
        patcher = mock.patch.object(cli, "console", Console(file=self.output, width=200))
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> int:
        args = ["--data-dir", str(self.data_dir), "--class-name", "LKG", "--year", "2025-2026", *argv]
        with self.assertRaises(SystemExit) as ctx:
            cli.main(args)
        return ctx.exception.code

    def test_parse_day(self) -> None:
        self.assertEqual(cli._parse_day("0"), 0)
        self.assertEqual(cli._parse_day("mon"), 1)
        self.assertEqual(cli._parse_day("Saturday"), 6)
        with self.assertRaises(argparse.ArgumentTypeError):
            cli._parse_day("mo")

    def test_drop_on_holiday_creates_nothing(self) -> None:
        self.assertEqual(self.run_cli("event", "add", "--title", "Half term", "--start", "2025-10-27",
                                      "--end", "2025-10-31", "--type", "holiday"), 0)
        self.assertEqual(self.run_cli("plan", "drop-activity", "2025-10-28", "--name", "Drums"), 0)
        self.assertIn("nothing scheduled", self.output.getvalue())
        self.assertEqual(storage.load_lesson_plans(self.data_dir, "LKG"), [])

        self.assertEqual(self.run_cli("plan", "drop-activity", "2025-10-20", "--name", "Drums", "--hour", "9"), 0)
        plans = storage.load_lesson_plans(self.data_dir, "LKG")
        self.assertEqual([(p.date.isoformat(), p.time) for p in plans], [("2025-10-20", "9:00")])

    def test_validation_error_exits_1(self) -> None:
        code = self.run_cli("event", "add", "--title", "Trip", "--start", "2025-10-27", "--end", "2025-10-20")
        self.assertEqual(code, 1)
        self.assertIn("End date must be after start date", self.output.getvalue())

    def test_unit_assign(self) -> None:
        storage.save_lessons(self.data_dir, "LKG", {"1": LessonData(title="Pirates", total_time=30)})
        storage.save_units(self.data_dir, "LKG", [Unit(id="unit-1", name="Pirates", lesson_numbers=["1", "2"])])

        self.assertEqual(self.run_cli("unit", "assign", "unit-1", "2025-09-15"), 0)
        self.assertIn("Scheduled 2 lessons", self.output.getvalue())
        halfterms = storage.load_half_terms(self.data_dir, "LKG", "2025-2026")
        a1 = [t for t in halfterms if t.id == "A1"][0]
        self.assertEqual(a1.lessons, ["1", "2"])

        self.assertEqual(self.run_cli("unit", "assign", "missing", "2025-09-15"), 1)

    def test_show_and_export(self) -> None:
        self.run_cli("timetable", "add", "--day", "mon", "--name", "Music")
        self.assertEqual(self.run_cli("show", "month", "--date", "2025-09-01"), 0)
        self.assertIn("September 2025", self.output.getvalue())
        self.assertEqual(self.run_cli("show", "week", "--date", "2025-09-15"), 0)

        out = self.data_dir / "calendar.ics"
        self.assertEqual(self.run_cli("export", str(out)), 0)
        self.assertIn("RRULE:FREQ=WEEKLY;BYDAY=MO", out.read_text(encoding="utf-8"))

    def test_conflicts(self) -> None:
        self.run_cli("timetable", "add", "--day", "1", "--start", "9:00", "--end", "10:00", "--name", "A")
        self.run_cli("timetable", "add", "--day", "1", "--start", "9:30", "--end", "10:30", "--name", "B")
        self.assertEqual(self.run_cli("conflicts"), 0)
        self.assertIn("Timetable conflicts: 1", self.output.getvalue())

    def test_bad_half_term_settings_fall_back_to_defaults(self) -> None:
        (self.data_dir / "settings.json").write_text(
            json.dumps({"half_term_starts": {"SP2": "12-01"}}), encoding="utf-8"
        )
        self.assertEqual(self.run_cli("halfterm", "list"), 0)
        self.assertIn("Spring 2", self.output.getvalue())

    def test_content_api_failure_exits_1(self) -> None:
        with mock.patch("requests.Session.get", side_effect=requests.ConnectionError("connection refused")):
            code = self.run_cli("--content-url", "http://content.invalid/api", "unit", "assign", "unit-1", "2025-09-15")
        self.assertEqual(code, 1)
        self.assertIn("connection refused", self.output.getvalue())
        self.assertEqual(storage.load_lesson_plans(self.data_dir, "LKG"), [])

    def test_content_api_server_error_exits_1(self) -> None:
        resp = mock.Mock(status_code=503)
        resp.raise_for_status.side_effect = requests.HTTPError("503 Service Unavailable")
        with mock.patch("requests.Session.get", return_value=resp):
            code = self.run_cli("--content-url", "http://content.invalid/api", "plan", "assign-lesson", "1", "2025-09-15")
        self.assertEqual(code, 1)
        self.assertIn("503", self.output.getvalue())

    def test_halfterm_reorder_out_of_range(self) -> None:
        self.assertEqual(self.run_cli("halfterm", "reorder", "A1", "0", "1"), 1)


if __name__ == "__main__":
    unittest.main()
