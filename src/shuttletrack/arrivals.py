"""Aggregation of upcoming arrivals at a stop across every route serving it."""

import logging
from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Optional, Tuple

from .models import ArrivalEntry, DayClass, StopTimetable
from .time_normalizer import normalize_report

logger = logging.getLogger(__name__)

# Upcoming times listed per route at a stop
MAX_TIMES_PER_ROUTE = 3


@dataclass(frozen=True)
class Contribution:
    """Scheduled minutes one timetable contributes to a stop."""
    route_id: str
    route_name: str
    color: str
    minutes: Tuple[int, ...]


class ArrivalAggregator:
    """
    Answers per-stop questions over a fixed set of timetables.

    Stop columns are normalized once here; every query afterwards is a pure
    function of its arguments.
    """

    def __init__(self, timetables: Iterable[StopTimetable]):
        self._by_stop: Dict[str, List[Tuple[DayClass, Contribution]]] = {}

        for timetable in timetables:
            for stop_name, tokens in timetable.stops.items():
                report = normalize_report(tokens)
                if report.malformed:
                    logger.warning(
                        f"{timetable.timetable_id} / {stop_name}: "
                        f"{len(report.malformed)} malformed time token(s)"
                    )
                contribution = Contribution(
                    route_id=timetable.route_id,
                    route_name=timetable.route_name,
                    color=timetable.color,
                    minutes=tuple(m for m in report.minutes if m is not None),
                )
                self._by_stop.setdefault(stop_name, []).append((timetable.day_class, contribution))

        logger.debug(f"Indexed timetables for {len(self._by_stop)} stops")

    @property
    def stop_names(self) -> List[str]:
        return list(self._by_stop)

    def contributions(
        self, stop: str, day_classes: Optional[AbstractSet[DayClass]] = None
    ) -> List[Contribution]:
        """
        Contributions to a stop from timetables whose day class applies.

        Args:
            stop: Stop name.
            day_classes: Active day classes; None means every timetable contributes.
        """
        return [
            contribution
            for day_class, contribution in self._by_stop.get(stop, [])
            if day_classes is None or day_class in day_classes
        ]

    def is_served_today(
        self, stop: str, day_classes: Optional[AbstractSet[DayClass]] = None
    ) -> bool:
        """Whether any applicable timetable schedules at least one run at the stop, at any hour."""
        return any(c.minutes for c in self.contributions(stop, day_classes))

    def next_arrivals(
        self,
        stop: str,
        now_minute: int,
        active_routes: AbstractSet[str],
        day_classes: Optional[AbstractSet[DayClass]] = None,
    ) -> List[ArrivalEntry]:
        """
        Upcoming arrivals at a stop, one entry per route.

        Args:
            stop: Stop name.
            now_minute: Current minute of day; earlier times are dropped.
            active_routes: Ids of routes currently running.
            day_classes: Active day classes; None means every timetable contributes.

        Returns:
            Entries ranked by their soonest time, each holding at most
            MAX_TIMES_PER_ROUTE sorted, distinct minute values.
        """
        # Contributions for the same route under different timetables are merged
        by_route: Dict[str, Tuple[str, set]] = {}
        for contribution in self.contributions(stop, day_classes):
            if contribution.route_id not in active_routes:
                continue
            upcoming = [m for m in contribution.minutes if m >= now_minute]
            if not upcoming:
                continue
            if contribution.route_name not in by_route:
                by_route[contribution.route_name] = (contribution.color, set())
            by_route[contribution.route_name][1].update(upcoming)

        results = [
            ArrivalEntry(
                route_name=route_name,
                color=color,
                times=tuple(sorted(minutes)[:MAX_TIMES_PER_ROUTE]),
            )
            for route_name, (color, minutes) in by_route.items()
        ]
        results.sort(key=lambda entry: (entry.soonest, entry.route_name))
        return results

    def has_upcoming(
        self,
        stop: str,
        now_minute: int,
        active_routes: AbstractSet[str],
        day_classes: Optional[AbstractSet[DayClass]] = None,
    ) -> bool:
        return bool(self.next_arrivals(stop, now_minute, active_routes, day_classes))
