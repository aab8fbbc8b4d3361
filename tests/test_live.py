"""Tests for status reconciliation and live vehicle matching."""

import unittest
from datetime import datetime
import sys
from pathlib import Path

# Add src to path so we can import shuttletrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shuttletrack.live import (
    is_observed,
    matches_route,
    nearest_stop,
    reconcile,
    route_status,
    vehicles_for_route,
    visible_vehicles,
)
from shuttletrack.models import (
    DayClass,
    LiveVehicle,
    OperatingStatus,
    RouteDefinition,
    ServiceWindowRule,
    Stop,
)

NAME_MAP = {"Overnight": "ON", "Mather Express": "ME"}

OVERNIGHT = RouteDefinition(
    route_id="ON",
    name="Overnight",
    color="#ff8707",
    windows=(ServiceWindowRule(DayClass.WEEKDAY, 20, 3),),
)
MATHER = RouteDefinition(
    route_id="ME",
    name="Mather Express",
    color="#0000FF",
    windows=(ServiceWindowRule(DayClass.WEEKDAY, 7, 15),),
)

# Monday 2025-03-03
MONDAY_NIGHT = datetime(2025, 3, 3, 22, 15)
MONDAY_NOON = datetime(2025, 3, 3, 12, 0)


class TestReconcile(unittest.TestCase):
    """Test that the schedule gate always wins."""

    def test_not_running_cannot_be_overridden(self):
        self.assertEqual(reconcile(OperatingStatus.NOT_RUNNING, True), OperatingStatus.NOT_RUNNING)

    def test_not_running_without_live(self):
        self.assertEqual(reconcile(OperatingStatus.NOT_RUNNING, False), OperatingStatus.NOT_RUNNING)

    def test_running_is_not_downgraded(self):
        self.assertEqual(reconcile(OperatingStatus.RUNNING, False), OperatingStatus.RUNNING)
        self.assertEqual(reconcile(OperatingStatus.RUNNING, True), OperatingStatus.RUNNING)

    def test_is_idempotent(self):
        self.assertEqual(
            reconcile(OperatingStatus.RUNNING, True),
            reconcile(OperatingStatus.RUNNING, True),
        )


class TestVehicleMatching(unittest.TestCase):
    """Test route matching against the live snapshot."""

    def setUp(self):
        self.snapshot = (
            LiveVehicle("Overnight", 42.3728, -71.1169, vehicle_id="101"),
            LiveVehicle("Overnight", 42.3819, -71.1253, vehicle_id="102"),
            LiveVehicle("Mather Express", 42.3688, -71.1153, vehicle_id="201"),
            LiveVehicle("Charter", 42.3700, -71.1200, vehicle_id="301"),
        )

    def test_vehicles_for_route_by_label(self):
        vehicles = vehicles_for_route(OVERNIGHT, self.snapshot, NAME_MAP)
        self.assertEqual([v.vehicle_id for v in vehicles], ["101", "102"])

    def test_match_by_bound_feed_id(self):
        bound = OVERNIGHT.bind_feed_id("785")
        vehicle = LiveVehicle(None, 42.37, -71.11, feed_route_id="785")

        self.assertTrue(matches_route(vehicle, bound, NAME_MAP))
        self.assertFalse(matches_route(vehicle, OVERNIGHT, NAME_MAP))

    def test_missing_snapshot_means_no_corroboration(self):
        self.assertEqual(vehicles_for_route(OVERNIGHT, None, NAME_MAP), [])
        self.assertFalse(is_observed(OVERNIGHT, None, NAME_MAP))
        self.assertFalse(is_observed(OVERNIGHT, (), NAME_MAP))

    def test_route_status_ignores_vehicle_outside_window(self):
        """A mis-tagged vehicle reporting outside the window does not surface the route."""
        self.assertTrue(is_observed(OVERNIGHT, self.snapshot, NAME_MAP))
        self.assertEqual(
            route_status(OVERNIGHT, MONDAY_NOON, self.snapshot, NAME_MAP),
            OperatingStatus.NOT_RUNNING,
        )

    def test_route_status_in_window(self):
        self.assertEqual(
            route_status(OVERNIGHT, MONDAY_NIGHT, self.snapshot, NAME_MAP),
            OperatingStatus.RUNNING,
        )
        self.assertEqual(
            route_status(OVERNIGHT, MONDAY_NIGHT, None, NAME_MAP),
            OperatingStatus.RUNNING,
        )

    def test_visible_vehicles_hides_out_of_window_routes(self):
        visible = visible_vehicles(self.snapshot, [OVERNIGHT, MATHER], MONDAY_NIGHT, NAME_MAP)
        self.assertEqual([v.vehicle_id for v in visible], ["101", "102", "301"])

        visible = visible_vehicles(self.snapshot, [OVERNIGHT, MATHER], MONDAY_NOON, NAME_MAP)
        self.assertEqual([v.vehicle_id for v in visible], ["201", "301"])

    def test_visible_vehicles_empty_snapshot(self):
        self.assertEqual(visible_vehicles(None, [OVERNIGHT], MONDAY_NIGHT, NAME_MAP), [])


class TestNearestStop(unittest.TestCase):
    """Test nearest stop lookup."""

    def test_nearest_stop(self):
        stops = [
            Stop("Mather House", 42.368759, -71.115333),
            Stop("Widener Gate", 42.372844, -71.116972),
            Stop("Quad", 42.381867, -71.125325),
        ]
        self.assertEqual(nearest_stop(42.3727, -71.1170, stops).name, "Widener Gate")
        self.assertEqual(nearest_stop(42.3810, -71.1250, stops).name, "Quad")

    def test_no_stops(self):
        self.assertIsNone(nearest_stop(42.37, -71.11, []))


class TestBindFeedId(unittest.TestCase):
    """Test feed identifier binding on RouteDefinition."""

    def test_bind_returns_new_value(self):
        bound = OVERNIGHT.bind_feed_id("785")
        self.assertEqual(bound.feed_route_id, "785")
        self.assertIsNone(OVERNIGHT.feed_route_id)

    def test_bind_is_idempotent(self):
        bound = OVERNIGHT.bind_feed_id("785")
        self.assertEqual(bound.bind_feed_id("785"), bound)

    def test_rebinding_to_other_id_fails(self):
        bound = OVERNIGHT.bind_feed_id("785")
        with self.assertRaises(ValueError):
            bound.bind_feed_id("999")


if __name__ == "__main__":
    unittest.main()
