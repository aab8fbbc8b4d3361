"""Service window resolution: is a route scheduled to operate at a given moment."""

import logging
from datetime import datetime
from typing import FrozenSet, Iterable

from .models import DayClass, OperatingStatus, RouteDefinition

logger = logging.getLogger(__name__)


def active_day_classes(now: datetime) -> FrozenSet[DayClass]:
    """
    Day classes that apply to a moment.

    Mon-Fri is weekday, Sat-Sun weekend; daily always applies and fri-sat
    applies on Friday and Saturday.
    """
    weekday = now.weekday()  # 0=Mon .. 6=Sun
    classes = {DayClass.DAILY}
    classes.add(DayClass.WEEKDAY if weekday <= 4 else DayClass.WEEKEND)
    if weekday in (4, 5):
        classes.add(DayClass.FRI_SAT)
    return frozenset(classes)


def in_range(hour: int, start: int, end: int) -> bool:
    """Whether hour falls in [start, end), wrapping past midnight when end < start."""
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def is_running(route: RouteDefinition, now: datetime) -> OperatingStatus:
    """
    Resolve a route's scheduled status at a moment.

    Args:
        route: Route with its service window rules.
        now: Wall-clock moment supplied by the caller.

    Returns:
        RUNNING if any rule for an active day class covers the hour,
        otherwise NOT_RUNNING (including routes with no matching rule).
    """
    classes = active_day_classes(now)
    for rule in route.windows:
        if rule.day_class in classes and in_range(now.hour, rule.start_hour, rule.end_hour):
            return OperatingStatus.RUNNING
    return OperatingStatus.NOT_RUNNING


def active_route_ids(routes: Iterable[RouteDefinition], now: datetime) -> FrozenSet[str]:
    """Ids of the routes scheduled to run at a moment."""
    running = frozenset(
        route.route_id for route in routes
        if is_running(route, now) is OperatingStatus.RUNNING
    )
    logger.debug(f"Routes running at {now:%a %H:%M}: {sorted(running)}")
    return running
