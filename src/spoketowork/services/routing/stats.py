"""Distance and time statistics for a given visiting order."""

from __future__ import annotations

from typing import Mapping, Sequence

from ...config import settings
from ..geospatial import haversine_miles, miles_to_minutes
from .models import OptimizationWaypoint, RouteEndpoint, RouteStats


def calculate_route_stats(
    order: Sequence[str],
    waypoints_by_id: Mapping[str, OptimizationWaypoint],
    start: RouteEndpoint,
    end: RouteEndpoint,
    is_round_trip: bool,
    speed_mph: float | None = None,
) -> RouteStats:
    """Total miles and minutes for start -> waypoints in ``order`` -> end.

    The end leg goes back to ``start`` for round trips. Ids missing from
    ``waypoints_by_id`` are skipped, so stale references from the data store
    never raise.
    """
    if not order:
        return RouteStats(distance_miles=0.0, time_minutes=0.0)

    speed_mph = settings.avg_cycling_speed_mph if speed_mph is None else speed_mph

    total = 0.0
    prev_lat, prev_lon = start.latitude, start.longitude
    for waypoint_id in order:
        waypoint = waypoints_by_id.get(waypoint_id)
        if waypoint is None:
            continue
        total += haversine_miles(prev_lat, prev_lon, waypoint.latitude, waypoint.longitude)
        prev_lat, prev_lon = waypoint.latitude, waypoint.longitude

    final = start if is_round_trip else end
    total += haversine_miles(prev_lat, prev_lon, final.latitude, final.longitude)

    return RouteStats(distance_miles=total, time_minutes=miles_to_minutes(total, speed_mph))
