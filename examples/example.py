"""Example usage of ShuttleScheduleEngine."""

import logging
import sys
from datetime import datetime
from pathlib import Path

# Add src to path so we can import shuttletrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shuttletrack.engine import ShuttleScheduleEngine
from shuttletrack.time_normalizer import format_minutes

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_stop_data(engine: ShuttleScheduleEngine, stop_input: str, now: datetime):
    """
    Display upcoming shuttles for a stop.

    Args:
        engine: Loaded schedule engine.
        stop_input: Stop name or partial name (e.g., "Widener")
        now: Moment to evaluate the schedule at.
    """
    print(f"\n{'='*70}")
    print(f"Schedule for: {stop_input} at {now:%A %H:%M}")
    print(f"{'='*70}\n")

    try:
        stop_data = engine.get_stop_data(stop_input, now)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Stop: {stop_data.stop.name}")
    if not stop_data.served_today:
        print("  No service at this stop today")
    elif not stop_data.arrivals:
        print("  No more shuttles today")
    else:
        for entry in stop_data.arrivals:
            times = ", ".join(format_minutes(m) for m in entry.times)
            print(f"  {entry.route_name}: {times}")

    print("\n" + "=" * 70)
    print("ROUTES:")
    print("-" * 70)
    for route, status in engine.schedule_overview(now):
        print(f"  [{status.value:>11}] {route.name} ({route.schedule_label})")
    print("=" * 70 + "\n")


def main():
    engine = ShuttleScheduleEngine()
    stop_input = sys.argv[1] if len(sys.argv) > 1 else "Widener Gate"
    now = datetime.fromisoformat(sys.argv[2]) if len(sys.argv) > 2 else datetime.now()
    print_stop_data(engine, stop_input, now)


if __name__ == "__main__":
    main()
