"""Tests for service window resolution."""

import unittest
from datetime import datetime
import sys
from pathlib import Path

# Add src to path so we can import shuttletrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shuttletrack.models import DayClass, OperatingStatus, RouteDefinition, ServiceWindowRule
from shuttletrack.service_window import active_day_classes, active_route_ids, in_range, is_running

# 2025-03-03 is a Monday
MONDAY = datetime(2025, 3, 3)
FRIDAY = datetime(2025, 3, 7)
SATURDAY = datetime(2025, 3, 8)
SUNDAY = datetime(2025, 3, 9)


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def make_route(route_id: str, *windows) -> RouteDefinition:
    return RouteDefinition(
        route_id=route_id,
        name=f"Route {route_id}",
        color="#000000",
        windows=tuple(ServiceWindowRule(DayClass(d), s, e) for d, s, e in windows),
    )


class TestInRange(unittest.TestCase):
    """Test hour window evaluation."""

    def test_plain_window_is_half_open(self):
        self.assertTrue(in_range(5, 5, 8))
        self.assertTrue(in_range(7, 5, 8))
        self.assertFalse(in_range(8, 5, 8))
        self.assertFalse(in_range(4, 5, 8))

    def test_window_ending_at_midnight(self):
        self.assertTrue(in_range(23, 7, 24))
        self.assertFalse(in_range(0, 7, 24))

    def test_overnight_window(self):
        self.assertTrue(in_range(20, 20, 3))
        self.assertTrue(in_range(0, 20, 3))
        self.assertTrue(in_range(2, 20, 3))
        self.assertFalse(in_range(3, 20, 3))
        self.assertFalse(in_range(12, 20, 3))


class TestDayClasses(unittest.TestCase):
    """Test day class derivation."""

    def test_monday(self):
        self.assertEqual(active_day_classes(MONDAY), {DayClass.WEEKDAY, DayClass.DAILY})

    def test_friday_includes_fri_sat(self):
        self.assertEqual(
            active_day_classes(FRIDAY), {DayClass.WEEKDAY, DayClass.DAILY, DayClass.FRI_SAT}
        )

    def test_saturday_includes_fri_sat(self):
        self.assertEqual(
            active_day_classes(SATURDAY), {DayClass.WEEKEND, DayClass.DAILY, DayClass.FRI_SAT}
        )

    def test_sunday(self):
        self.assertEqual(active_day_classes(SUNDAY), {DayClass.WEEKEND, DayClass.DAILY})


class TestIsRunning(unittest.TestCase):
    """Test route status resolution."""

    def test_overnight_weekday_rule(self):
        route = make_route("ON", ("weekday", 20, 3))
        self.assertEqual(is_running(route, at(MONDAY, 23)), OperatingStatus.RUNNING)
        self.assertEqual(is_running(route, at(MONDAY, 1)), OperatingStatus.RUNNING)
        self.assertEqual(is_running(route, at(MONDAY, 10)), OperatingStatus.NOT_RUNNING)

    def test_no_weekend_rule_never_runs_on_weekend(self):
        route = make_route("ON", ("weekday", 20, 3))
        for day in (SATURDAY, SUNDAY):
            for hour in range(24):
                with self.subTest(day=day.strftime("%a"), hour=hour):
                    self.assertEqual(is_running(route, at(day, hour)), OperatingStatus.NOT_RUNNING)

    def test_separate_weekday_and_weekend_rules(self):
        """Rules only match their own day class, they are never merged."""
        route = make_route("AL", ("weekday", 7, 24), ("weekend", 17, 23))
        self.assertEqual(is_running(route, at(MONDAY, 10)), OperatingStatus.RUNNING)
        self.assertEqual(is_running(route, at(SATURDAY, 10)), OperatingStatus.NOT_RUNNING)
        self.assertEqual(is_running(route, at(SATURDAY, 18)), OperatingStatus.RUNNING)
        self.assertEqual(is_running(route, at(MONDAY, 23, 59)), OperatingStatus.RUNNING)
        self.assertEqual(is_running(route, at(SATURDAY, 23)), OperatingStatus.NOT_RUNNING)

    def test_daily_rule(self):
        route = make_route("CC", ("daily", 16, 21))
        for day in (MONDAY, SATURDAY, SUNDAY):
            with self.subTest(day=day.strftime("%a")):
                self.assertEqual(is_running(route, at(day, 17)), OperatingStatus.RUNNING)
                self.assertEqual(is_running(route, at(day, 21)), OperatingStatus.NOT_RUNNING)

    def test_fri_sat_rule(self):
        route = make_route("EO", ("fri-sat", 3, 6))
        self.assertEqual(is_running(route, at(FRIDAY, 4)), OperatingStatus.RUNNING)
        self.assertEqual(is_running(route, at(SATURDAY, 4)), OperatingStatus.RUNNING)
        self.assertEqual(is_running(route, at(SUNDAY, 4)), OperatingStatus.NOT_RUNNING)
        self.assertEqual(is_running(route, at(MONDAY, 4)), OperatingStatus.NOT_RUNNING)

    def test_route_without_rules_is_not_running(self):
        route = make_route("X")
        self.assertEqual(is_running(route, at(MONDAY, 12)), OperatingStatus.NOT_RUNNING)

    def test_is_idempotent(self):
        route = make_route("ON", ("weekday", 20, 3))
        now = at(MONDAY, 23)
        self.assertEqual(is_running(route, now), is_running(route, now))

    def test_active_route_ids(self):
        routes = [
            make_route("ME", ("weekday", 7, 15)),
            make_route("ON", ("weekday", 20, 3)),
            make_route("1636", ("weekend", 8, 23)),
        ]
        self.assertEqual(active_route_ids(routes, at(MONDAY, 9)), {"ME"})
        self.assertEqual(active_route_ids(routes, at(MONDAY, 21)), {"ON"})
        self.assertEqual(active_route_ids(routes, at(SUNDAY, 9)), {"1636"})


if __name__ == "__main__":
    unittest.main()
