"""
Unit tests for the calendar event overlay.

Precedence: holiday > inset > event > none.
Ranges are inclusive at both ends.
"""

import unittest
from datetime import date, timedelta

from lessoncal.events import EventOverlayResolver, validate_event
from lessoncal.model import ValidationError
from tests.helpers import event


class TestEventOverlay(unittest.TestCase):
    def setUp(self) -> None:
        self.events = [
            event("e1", "2025-10-20", "2025-10-31", "event", "Book week"),
            event("e2", "2025-10-27", "2025-10-31", "holiday", "Half term"),
            event("e3", "2025-10-24", "2025-10-27", "inset", "Training"),
            event("e4", "2025-12-01", "2025-12-01", "event", "Nativity"),
            event("e5", "2025-12-01", "2025-12-02", "event", "Fair"),
        ]
        self.resolver = EventOverlayResolver(self.events)

    def test_boundaries_are_inclusive(self) -> None:
        for e in self.events:
            self.assertIn(e, self.resolver.events_on(e.start_date))
            self.assertIn(e, self.resolver.events_on(e.end_date))
            self.assertNotIn(e, self.resolver.events_on(e.end_date + timedelta(days=1)))
            self.assertNotIn(e, self.resolver.events_on(e.start_date - timedelta(days=1)))

    def test_holiday_wins_over_everything(self) -> None:
        # e1 (event), e2 (holiday) and e3 (inset) all cover the 27th
        self.assertEqual(len(self.resolver.events_on(date(2025, 10, 27))), 3)
        self.assertEqual(self.resolver.classification_on(date(2025, 10, 27)), "holiday")

    def test_inset_wins_over_event(self) -> None:
        self.assertEqual(self.resolver.classification_on(date(2025, 10, 24)), "inset")

    def test_event_and_none(self) -> None:
        self.assertEqual(self.resolver.classification_on(date(2025, 10, 21)), "event")
        self.assertEqual(self.resolver.classification_on(date(2025, 11, 5)), "none")

    def test_same_type_first_inserted_dominates(self) -> None:
        self.assertEqual(len(self.resolver.events_on(date(2025, 12, 1))), 2)
        dominant = self.resolver.dominant_event(date(2025, 12, 1))
        self.assertIsNotNone(dominant)
        assert dominant is not None
        self.assertEqual(dominant.id, "e4")
        self.assertIsNone(self.resolver.dominant_event(date(2025, 11, 5)))

    def test_holiday_and_inset_flags(self) -> None:
        self.assertTrue(self.resolver.is_holiday(date(2025, 10, 28)))
        self.assertFalse(self.resolver.is_inset_day(date(2025, 10, 28)))
        self.assertTrue(self.resolver.is_inset_day(date(2025, 10, 24)))
        self.assertTrue(self.resolver.is_blocked(date(2025, 10, 24)))
        self.assertFalse(self.resolver.is_blocked(date(2025, 10, 21)))

    def test_many_overlapping_holidays_still_holiday(self) -> None:
        for i in range(5):
            self.events.append(event(f"x{i}", "2026-02-16", "2026-02-20", "inset"))
            self.events.append(event(f"y{i}", "2026-02-16", "2026-02-20", "event"))
        self.events.append(event("h", "2026-02-18", "2026-02-18", "holiday"))
        self.assertEqual(self.resolver.classification_on(date(2026, 2, 18)), "holiday")
        self.assertEqual(self.resolver.classification_on(date(2026, 2, 17)), "inset")


class TestEventValidation(unittest.TestCase):
    def test_end_before_start_rejected(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            validate_event(event("bad", "2025-10-31", "2025-10-27", "holiday"))
        self.assertIn("End date must be after start date", str(ctx.exception))

    def test_single_day_event_is_valid(self) -> None:
        validate_event(event("ok", "2025-10-27", "2025-10-27", "inset"))

    def test_title_required(self) -> None:
        e = event("bad", "2025-10-27", "2025-10-27", "event")
        e.title = ""
        with self.assertRaises(ValidationError):
            validate_event(e)

    def test_unknown_type_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            validate_event(event("bad", "2025-10-27", "2025-10-27", "party"))

    def test_default_colour_by_type(self) -> None:
        e = event("ok", "2025-10-27", "2025-10-27", "holiday")
        validate_event(e)
        self.assertEqual(e.color, "#EF4444")


if __name__ == "__main__":
    unittest.main()
