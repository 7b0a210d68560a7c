import unittest

from lessoncal.conflicts import find_event_overlaps, find_timetable_conflicts
from lessoncal.model import TimetableClass
from tests.helpers import event


def _cls(cid: str, day: int, start: str, end: str) -> TimetableClass:
    return TimetableClass(id=cid, day=day, start_time=start, end_time=end, class_name=cid)


class TestTimetableConflicts(unittest.TestCase):
    def test_overlap_same_day(self) -> None:
        a = _cls("a", 1, "9:00", "10:00")
        b = _cls("b", 1, "9:30", "10:30")
        self.assertEqual(find_timetable_conflicts([a, b]), [(a, b)])

    def test_touching_endpoints_are_fine(self) -> None:
        classes = [_cls("a", 1, "9:00", "10:00"), _cls("b", 1, "10:00", "11:00")]
        self.assertEqual(find_timetable_conflicts(classes), [])

    def test_different_days(self) -> None:
        classes = [_cls("a", 1, "9:00", "10:00"), _cls("b", 2, "9:00", "10:00")]
        self.assertEqual(find_timetable_conflicts(classes), [])

    def test_malformed_times_are_skipped(self) -> None:
        classes = [_cls("a", 1, "nine", "10:00"), _cls("b", 1, "9:00", "10:00"), _cls("c", 1, "11:00", "10:00")]
        self.assertEqual(find_timetable_conflicts(classes), [])


class TestEventOverlaps(unittest.TestCase):
    def test_shared_day(self) -> None:
        a = event("a", "2025-10-20", "2025-10-27", "event")
        b = event("b", "2025-10-27", "2025-10-31", "holiday")
        c = event("c", "2025-11-01", "2025-11-01", "inset")
        self.assertEqual(find_event_overlaps([a, b, c]), [(a, b)])


if __name__ == "__main__":
    unittest.main()
