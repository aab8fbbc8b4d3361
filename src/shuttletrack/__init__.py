"""shuttletrack - Schedule resolution for recurring campus shuttle routes."""

__version__ = "0.1.0"

from .models import (
    ArrivalEntry,
    DayClass,
    LiveVehicle,
    OperatingStatus,
    RouteDefinition,
    ServiceWindowRule,
    Stop,
    StopArrivals,
    StopTimetable,
)
from .engine import ShuttleScheduleEngine
from .timetable_loader import ScheduleConfigError, TimetableLoader
from .time_normalizer import normalize
from .live import reconcile

__all__ = [
    "ShuttleScheduleEngine",
    "TimetableLoader",
    "ScheduleConfigError",
    "normalize",
    "reconcile",
    "ArrivalEntry",
    "DayClass",
    "LiveVehicle",
    "OperatingStatus",
    "RouteDefinition",
    "ServiceWindowRule",
    "Stop",
    "StopArrivals",
    "StopTimetable",
]
