"""Data models for the shuttle schedule engine."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class OperatingStatus(str, Enum):
    """Operating status of a route."""
    RUNNING = "running"
    NOT_RUNNING = "not-running"
    LATE = "late"  # Reserved for the presentation layer; never produced here


class DayClass(str, Enum):
    """Calendar grouping a service window or timetable applies to."""
    WEEKDAY = "weekday"
    WEEKEND = "weekend"
    DAILY = "daily"
    FRI_SAT = "fri-sat"


@dataclass(frozen=True)
class ServiceWindowRule:
    """An hour-of-day window for one day class. end < start wraps past midnight."""
    day_class: DayClass
    start_hour: int
    end_hour: int


@dataclass(frozen=True)
class RouteDefinition:
    """Represents a shuttle route loaded from static configuration."""
    route_id: str  # Short code, e.g. "AL"
    name: str
    color: str
    windows: Tuple[ServiceWindowRule, ...] = ()
    schedule_label: str = ""  # Human summary, e.g. "7:00am – 12:08am, Daily"
    feed_route_id: Optional[str] = None  # Assigned by the live feed once discovered

    def bind_feed_id(self, feed_route_id: str) -> "RouteDefinition":
        """
        Return a copy of this route bound to a feed-assigned identifier.

        Binding the same identifier twice returns an equal value.

        Raises:
            ValueError: If the route is already bound to a different identifier.
        """
        if self.feed_route_id == feed_route_id:
            return self
        if self.feed_route_id is not None:
            raise ValueError(
                f"Route {self.route_id} already bound to feed id {self.feed_route_id}, "
                f"refusing to rebind to {feed_route_id}"
            )
        return replace(self, feed_route_id=feed_route_id)


@dataclass(frozen=True)
class StopTimetable:
    """
    Timetable of one route for one day class.

    Every stop maps to the same number of TimeTokens; the Nth token at each
    stop belongs to the same vehicle run.
    """
    timetable_id: str
    route_id: str
    route_name: str
    color: str
    day_class: DayClass
    stops: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def run_count(self) -> int:
        for tokens in self.stops.values():
            return len(tokens)
        return 0


@dataclass(frozen=True)
class Stop:
    """Represents a named shuttle stop."""
    name: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ArrivalEntry:
    """Upcoming arrivals of one route at a stop."""
    route_name: str
    color: str
    times: Tuple[int, ...]  # Sorted minute-of-day values, at most three

    @property
    def soonest(self) -> int:
        return self.times[0]


@dataclass(frozen=True)
class LiveVehicle:
    """A single vehicle position from the live feed snapshot."""
    route_label: Optional[str]  # Feed's textual route name
    latitude: float
    longitude: float
    feed_route_id: Optional[str] = None
    vehicle_id: Optional[str] = None


@dataclass
class StopArrivals:
    """Complete data for a stop with upcoming arrivals."""
    stop: Stop
    served_today: bool
    arrivals: List[ArrivalEntry]
    last_updated: datetime
