"""Main shuttle schedule engine class."""

import logging
from datetime import datetime
from typing import AbstractSet, Any, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .arrivals import ArrivalAggregator
from .live import nearest_stop, reconcile, route_status, vehicles_for_route, visible_vehicles
from .models import (
    ArrivalEntry,
    DayClass,
    LiveVehicle,
    OperatingStatus,
    RouteDefinition,
    Stop,
    StopArrivals,
)
from .service_window import active_day_classes, active_route_ids, is_running
from .timetable_loader import TimetableLoader

logger = logging.getLogger(__name__)

RouteRef = Union[RouteDefinition, str]


def minute_of_day(now: datetime) -> int:
    return now.hour * 60 + now.minute


class ShuttleScheduleEngine:
    """
    Resolves route status and upcoming arrivals for a shuttle network.

    This class provides methods to:
    - Check whether a route is scheduled to run at a moment
    - Get upcoming arrivals per route at a stop
    - Reconcile scheduled status with a live vehicle snapshot

    Every query takes the wall-clock moment as an argument; the engine never
    reads the system clock and keeps no state between calls.
    """

    def __init__(self, load_default: bool = True):
        """
        Initialize the engine.

        Args:
            load_default: If True, load the bundled schedule data on init. If False,
                          must call load_from_file() or load_from_dict() manually.
        """
        self.loader = TimetableLoader()
        self.aggregator = ArrivalAggregator([])

        if load_default:
            try:
                self.loader.load_default()
            except Exception as e:
                logger.error(f"Failed to load bundled schedule data: {e}")
                raise
            self._index()

    def load_from_file(self, path: str) -> None:
        """Load schedule data from a local JSON file."""
        self.loader.load_from_file(path)
        self._index()

    def load_from_dict(self, data: Mapping[str, Any]) -> None:
        """Load schedule data from an already-decoded mapping."""
        self.loader.load_from_dict(data)
        self._index()

    def _index(self) -> None:
        self.aggregator = ArrivalAggregator(self.loader.timetables)

    @property
    def routes(self) -> List[RouteDefinition]:
        return list(self.loader.routes.values())

    @property
    def name_map(self) -> Mapping[str, str]:
        return self.loader.api_name_map

    def get_route(self, route: RouteRef) -> RouteDefinition:
        """
        Get a route by id or name.

        Args:
            route: A RouteDefinition (returned as is), a route id (e.g. "AL"),
                   a display name or a feed route name.

        Raises:
            ValueError: If route not found.
        """
        if isinstance(route, RouteDefinition):
            return route
        return self.loader.get_route(route)

    def get_stop(self, stop_input: str) -> Stop:
        """
        Get a stop by exact or partial name.

        Raises:
            ValueError: If stop not found.
        """
        try:
            return self.loader.get_stop(stop_input)
        except ValueError:
            pass

        stops = self.loader.find_stops_by_name(stop_input)
        if not stops:
            raise ValueError(f"No stop found matching '{stop_input}'")

        return stops[0]

    def find_stops_by_name(self, name: str) -> List[Stop]:
        return self.loader.find_stops_by_name(name)

    def stops_for_route(self, route: RouteRef) -> List[str]:
        """Names of every stop any timetable of the route serves, sorted."""
        return self.loader.get_stops_for_route(self.get_route(route).route_id)

    def is_running(self, route: RouteRef, now: datetime) -> OperatingStatus:
        """Scheduled status of a route at a moment."""
        return is_running(self.get_route(route), now)

    def active_routes(self, now: datetime) -> List[RouteDefinition]:
        """Routes scheduled to run at a moment, sorted by name."""
        running = active_route_ids(self.routes, now)
        return sorted((r for r in self.routes if r.route_id in running), key=lambda r: r.name)

    def next_arrivals(
        self,
        stop: str,
        now: datetime,
        active_routes: Optional[AbstractSet[str]] = None,
    ) -> List[ArrivalEntry]:
        """
        Get upcoming arrivals at a stop.

        Args:
            stop: Stop name.
            now: Current moment; minute of day and day classes are derived from it.
            active_routes: Ids of the routes to consider. Defaults to the routes
                           scheduled to run at `now`.

        Returns:
            List of ArrivalEntry ranked by soonest time.
        """
        if active_routes is None:
            active_routes = active_route_ids(self.routes, now)
        return self.aggregator.next_arrivals(
            stop, minute_of_day(now), active_routes, active_day_classes(now)
        )

    def has_upcoming(
        self,
        stop: str,
        now: datetime,
        active_routes: Optional[AbstractSet[str]] = None,
    ) -> bool:
        return bool(self.next_arrivals(stop, now, active_routes))

    def is_served_today(self, stop: str, now: datetime) -> bool:
        """Whether any timetable applying today serves the stop, regardless of hour."""
        return self.aggregator.is_served_today(stop, active_day_classes(now))

    @staticmethod
    def reconcile(static_status: OperatingStatus, live_observed: bool) -> OperatingStatus:
        return reconcile(static_status, live_observed)

    def route_status(
        self,
        route: RouteRef,
        now: datetime,
        snapshot: Optional[Sequence[LiveVehicle]] = None,
    ) -> OperatingStatus:
        """Scheduled status of a route corroborated by the live snapshot, if any."""
        return route_status(self.get_route(route), now, snapshot, self.name_map)

    def vehicles_for_route(
        self, route: RouteRef, snapshot: Optional[Sequence[LiveVehicle]]
    ) -> List[LiveVehicle]:
        return vehicles_for_route(self.get_route(route), snapshot, self.name_map)

    def visible_vehicles(
        self, snapshot: Optional[Sequence[LiveVehicle]], now: datetime
    ) -> List[LiveVehicle]:
        """Vehicles in the snapshot, minus those of routes outside their scheduled hours."""
        return visible_vehicles(snapshot, self.routes, now, self.name_map)

    def nearest_stop(self, latitude: float, longitude: float) -> Optional[Stop]:
        return nearest_stop(latitude, longitude, self.loader.stops.values())

    def get_stop_data(self, stop_input: str, now: datetime) -> StopArrivals:
        """
        Get complete data for a stop.

        Args:
            stop_input: Stop name or partial name.
            now: Current moment.

        Returns:
            StopArrivals with service-today flag and ranked upcoming arrivals.
        """
        stop = self.get_stop(stop_input)
        return StopArrivals(
            stop=stop,
            served_today=self.is_served_today(stop.name, now),
            arrivals=self.next_arrivals(stop.name, now),
            last_updated=now,
        )

    def schedule_overview(self, now: datetime) -> List[Tuple[RouteDefinition, OperatingStatus]]:
        """All routes with their scheduled status: running routes first, each group by name."""
        statuses = [(route, is_running(route, now)) for route in self.routes]
        return sorted(
            statuses,
            key=lambda item: (item[1] is not OperatingStatus.RUNNING, item[0].name),
        )

    def timetable_frame(self, route: RouteRef, day_class: Optional[DayClass] = None) -> pd.DataFrame:
        """
        Full timetable of a route as a table of stops by runs.

        Timetables of the route (optionally only those for one day class) are
        placed side by side in load order; stops a timetable does not serve
        are filled with placeholders.

        Raises:
            ValueError: If the route has no matching timetable.
        """
        route = self.get_route(route)
        timetables = [
            t for t in self.loader.timetables_for_route(route.route_id)
            if day_class is None or t.day_class is DayClass(day_class)
        ]
        if not timetables:
            raise ValueError(f"No timetable for route {route.route_id}")

        frames = [
            pd.DataFrame.from_dict({k: list(v) for k, v in t.stops.items()}, orient="index")
            for t in timetables
        ]
        frame = pd.concat(frames, axis=1, sort=False).fillna("-")
        frame.columns = pd.RangeIndex(1, frame.shape[1] + 1, name="run")
        frame.index.name = "stop"
        return frame

    def bind_feed_id(self, route: RouteRef, feed_route_id: str) -> RouteDefinition:
        """Record the live feed's identifier for a route; returns the bound route."""
        return self.loader.bind_feed_id(self.get_route(route).route_id, feed_route_id)
