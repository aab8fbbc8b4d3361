"""Reconciliation of scheduled status with live vehicle observations."""

import logging
import math
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Sequence

from .models import LiveVehicle, OperatingStatus, RouteDefinition, Stop
from .service_window import is_running

logger = logging.getLogger(__name__)


def reconcile(static_status: OperatingStatus, live_observed: bool) -> OperatingStatus:
    """
    Fold a live observation into the scheduled status.

    The schedule is the gate: a route outside its window stays NOT_RUNNING
    even if a vehicle reports on it, and live data never changes a
    scheduled RUNNING either.
    """
    if static_status is OperatingStatus.NOT_RUNNING:
        if live_observed:
            logger.debug("Ignoring live vehicle observed outside scheduled window")
        return OperatingStatus.NOT_RUNNING
    return static_status


def matches_route(
    vehicle: LiveVehicle, route: RouteDefinition, name_map: Mapping[str, str]
) -> bool:
    """Whether a vehicle belongs to a route, by feed label or bound feed id."""
    if vehicle.route_label is not None and name_map.get(vehicle.route_label) == route.route_id:
        return True
    return (
        route.feed_route_id is not None
        and vehicle.feed_route_id is not None
        and vehicle.feed_route_id == route.feed_route_id
    )


def vehicles_for_route(
    route: RouteDefinition,
    snapshot: Optional[Sequence[LiveVehicle]],
    name_map: Mapping[str, str],
) -> List[LiveVehicle]:
    """Vehicles in the snapshot that belong to a route. A missing snapshot yields none."""
    if not snapshot:
        return []
    return [v for v in snapshot if matches_route(v, route, name_map)]


def is_observed(
    route: RouteDefinition,
    snapshot: Optional[Sequence[LiveVehicle]],
    name_map: Mapping[str, str],
) -> bool:
    return bool(vehicles_for_route(route, snapshot, name_map))


def route_status(
    route: RouteDefinition,
    now: datetime,
    snapshot: Optional[Sequence[LiveVehicle]],
    name_map: Mapping[str, str],
) -> OperatingStatus:
    """Scheduled status of a route reconciled with the live snapshot."""
    return reconcile(is_running(route, now), is_observed(route, snapshot, name_map))


def visible_vehicles(
    snapshot: Optional[Sequence[LiveVehicle]],
    routes: Iterable[RouteDefinition],
    now: datetime,
    name_map: Mapping[str, str],
) -> List[LiveVehicle]:
    """
    Vehicles worth surfacing at a moment.

    Vehicles of a known route outside its scheduled hours are dropped;
    vehicles whose route cannot be identified are kept.
    """
    if not snapshot:
        return []

    routes = list(routes)
    visible: List[LiveVehicle] = []
    for vehicle in snapshot:
        route = next((r for r in routes if matches_route(vehicle, r, name_map)), None)
        if route is not None and is_running(route, now) is OperatingStatus.NOT_RUNNING:
            logger.debug(f"Hiding vehicle {vehicle.vehicle_id} on {route.route_id}: outside service window")
            continue
        visible.append(vehicle)
    return visible


def nearest_stop(latitude: float, longitude: float, stops: Iterable[Stop]) -> Optional[Stop]:
    """Closest stop to a position by planar distance in degrees; None if there are no stops."""
    nearest = None
    min_dist = math.inf
    for stop in stops:
        dist = math.hypot(latitude - stop.latitude, longitude - stop.longitude)
        if dist < min_dist:
            min_dist = dist
            nearest = stop
    return nearest
