"""Static schedule configuration loader for the shuttle network."""

import json
import logging
from importlib import resources
from typing import Any, Dict, List, Mapping, Set, Tuple

from .models import DayClass, RouteDefinition, ServiceWindowRule, Stop, StopTimetable
from .time_normalizer import is_placeholder, minutes_to_token, normalize

logger = logging.getLogger(__name__)

# Bundled schedule data
DEFAULT_DATA_PACKAGE = "shuttletrack"
DEFAULT_DATA_FILE = "data/harvard_shuttles.json"
SUPPORTED_FORMAT_VERSIONS = {1}


class ScheduleConfigError(ValueError):
    """Raised when static schedule configuration is malformed."""


class TimetableLoader:
    """Loads, validates and indexes static route and timetable configuration."""

    def __init__(self):
        """Initialize the timetable loader."""
        self.network: str = ""
        self.routes: Dict[str, RouteDefinition] = {}  # route_id -> route
        self.stops: Dict[str, Stop] = {}  # name -> stop
        self.timetables: List[StopTimetable] = []
        self.api_name_map: Dict[str, str] = {}  # feed route name -> route_id
        self.stops_by_route: Dict[str, Set[str]] = {}  # route_id -> {stop names}

    def load_default(self) -> None:
        """Load the schedule data bundled with the package."""
        logger.info(f"Loading bundled schedule data {DEFAULT_DATA_FILE}")
        text = resources.files(DEFAULT_DATA_PACKAGE).joinpath(DEFAULT_DATA_FILE).read_text(encoding="utf-8")
        self._load_text(text, DEFAULT_DATA_FILE)

    def load_from_file(self, path: str) -> None:
        """Load schedule data from a local JSON file."""
        logger.info(f"Loading schedule data from {path}")
        with open(path, "r", encoding="utf-8") as f:
            self._load_text(f.read(), path)

    def _load_text(self, text: str, source: str) -> None:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse schedule data {source}: {e}")
            raise ScheduleConfigError(f"{source} is not valid JSON: {e}") from e
        self.load_from_dict(data)

    def load_from_dict(self, data: Mapping[str, Any]) -> None:
        """
        Load schedule data from an already-decoded mapping.

        Raises:
            ScheduleConfigError: If the configuration is malformed.
        """
        try:
            version = data.get("format_version")
            if version not in SUPPORTED_FORMAT_VERSIONS:
                raise ScheduleConfigError(f"Unsupported schedule format_version {version!r}")

            self.clear()
            self.network = data.get("network", "")
            self.api_name_map = dict(data.get("api_name_map", {}))
            self._load_stops(data.get("stops", {}))
            self._load_routes(data.get("routes", []))
            self._load_timetables(data.get("timetables", []))
        except ScheduleConfigError as e:
            logger.error(f"Invalid schedule configuration: {e}")
            self.clear()
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid schedule configuration: {e}")
            self.clear()
            raise ScheduleConfigError(f"Malformed schedule configuration: {e}") from e

        logger.info(
            f"Loaded {len(self.routes)} routes, {len(self.timetables)} timetables "
            f"and {len(self.stops)} stops"
        )

    def _load_stops(self, stops_data: Mapping[str, Any]) -> None:
        """Parse stop coordinates."""
        for name, coords in stops_data.items():
            self.stops[name] = Stop(
                name=name,
                latitude=float(coords["latitude"]),
                longitude=float(coords["longitude"]),
            )

    def _load_routes(self, routes_data: List[Mapping[str, Any]]) -> None:
        """Parse route definitions and their service windows."""
        for row in routes_data:
            route_id = row["route_id"]
            if route_id in self.routes:
                raise ScheduleConfigError(f"Duplicate route id {route_id!r}")

            windows = tuple(
                ServiceWindowRule(
                    day_class=_day_class(w["day_class"]),
                    start_hour=_hour(w["start_hour"], route_id),
                    end_hour=_hour(w["end_hour"], route_id),
                )
                for w in row.get("windows", [])
            )
            self.routes[route_id] = RouteDefinition(
                route_id=route_id,
                name=row["name"],
                color=row.get("color", ""),
                windows=windows,
                schedule_label=row.get("schedule_label", ""),
                feed_route_id=row.get("feed_route_id"),
            )
            self.stops_by_route[route_id] = set()

        for feed_name, route_id in self.api_name_map.items():
            if route_id not in self.routes:
                logger.warning(f"Feed route name {feed_name!r} maps to unknown route {route_id!r}")

    def _load_timetables(self, timetables_data: List[Mapping[str, Any]]) -> None:
        """Parse timetables, expand offset columns and check run alignment."""
        for row in timetables_data:
            timetable_id = row.get("timetable_id") or row["route_id"]
            route_id = row["route_id"]
            route = self.routes.get(route_id)
            if route is None:
                # Timetable-only services (no status rules) still count for stop coverage
                logger.debug(f"Timetable {timetable_id} has no route definition for {route_id!r}")

            stops = _expand_stops(timetable_id, row["stops"])
            lengths = {len(tokens) for tokens in stops.values()}
            if len(lengths) > 1:
                detail = ", ".join(f"{name}={len(tokens)}" for name, tokens in stops.items())
                raise ScheduleConfigError(
                    f"Timetable {timetable_id} has misaligned runs across stops: {detail}"
                )

            timetable = StopTimetable(
                timetable_id=timetable_id,
                route_id=route_id,
                route_name=row.get("route_name") or (route.name if route else route_id),
                color=row.get("color") or (route.color if route else ""),
                day_class=_day_class(row["day_class"]),
                stops=stops,
            )
            self.timetables.append(timetable)

            for stop_name in stops:
                if stop_name not in self.stops:
                    logger.warning(f"Timetable {timetable_id} serves stop {stop_name!r} with no coordinates")
                self.stops_by_route.setdefault(route_id, set()).add(stop_name)

    def get_route(self, route_input: str) -> RouteDefinition:
        """Get a route by id, falling back to an exact name or feed route name."""
        if route_input in self.routes:
            return self.routes[route_input]
        for route in self.routes.values():
            if route.name == route_input:
                return route
        mapped = self.api_name_map.get(route_input)
        if mapped in self.routes:
            return self.routes[mapped]
        raise ValueError(f"Route {route_input} not found")

    def get_stop(self, name: str) -> Stop:
        """Get stop by exact name."""
        if name not in self.stops:
            raise ValueError(f"Stop {name} not found")
        return self.stops[name]

    def find_stops_by_name(self, name: str) -> List[Stop]:
        """Find stops by name (partial, case-insensitive match)."""
        name_lower = name.lower()
        return [stop for stop_name, stop in self.stops.items() if name_lower in stop_name.lower()]

    def get_stops_for_route(self, route_id: str) -> List[str]:
        """Get all stop names served by a route."""
        return sorted(self.stops_by_route.get(route_id, set()))

    def timetables_for_route(self, route_id: str) -> List[StopTimetable]:
        return [t for t in self.timetables if t.route_id == route_id]

    def bind_feed_id(self, route_id: str, feed_route_id: str) -> RouteDefinition:
        """
        Record the feed-assigned identifier of a route.

        The stored RouteDefinition is replaced by a bound copy, never
        mutated; repeating the call with the same identifier is a no-op.
        """
        route = self.get_route(route_id)
        bound = route.bind_feed_id(feed_route_id)
        if bound is not route:
            routes = dict(self.routes)
            routes[bound.route_id] = bound
            self.routes = routes
            logger.info(f"Bound route {bound.route_id} to feed id {feed_route_id}")
        return bound

    def clear(self) -> None:
        """Clear all loaded data."""
        self.network = ""
        self.routes = {}
        self.stops = {}
        self.timetables = []
        self.api_name_map = {}
        self.stops_by_route = {}


def _day_class(value: str) -> DayClass:
    try:
        return DayClass(value)
    except ValueError:
        raise ScheduleConfigError(f"Unknown day class {value!r}") from None


def _hour(value: Any, owner: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 24:
        raise ScheduleConfigError(f"{owner}: hour must be an integer in 0-24, got {value!r}")
    return value


def _expand_stops(timetable_id: str, stops_data: Mapping[str, Any]) -> Dict[str, Tuple[str, ...]]:
    """
    Materialize stop columns.

    A column is either a token list or an offset of another column:
    {"offset_from": "Quad", "offset_minutes": 3, "skip": ["9:10AM"]}.
    Skipped or placeholder source runs become placeholders.
    """
    stops: Dict[str, Tuple[str, ...]] = {}
    for name, column in stops_data.items():
        if isinstance(column, list):
            stops[name] = tuple(str(token) for token in column)

    for name, column in stops_data.items():
        if isinstance(column, list):
            continue
        if not isinstance(column, Mapping):
            raise ScheduleConfigError(f"Timetable {timetable_id}: stop {name!r} has invalid column")

        source_name = column["offset_from"]
        source = stops.get(source_name)
        if source is None:
            raise ScheduleConfigError(
                f"Timetable {timetable_id}: stop {name!r} offsets unknown stop {source_name!r}"
            )
        offset = int(column["offset_minutes"])
        skip = {token.strip() for token in column.get("skip", [])}

        derived = []
        for token, minutes in zip(source, normalize(source)):
            if minutes is None or is_placeholder(token) or token.strip() in skip:
                derived.append("-")
            else:
                derived.append(minutes_to_token(minutes + offset))
        stops[name] = tuple(derived)

    # Keep the declared stop order
    return {name: stops[name] for name in stops_data}
