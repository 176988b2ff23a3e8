"""Route optimization entry point: nearest neighbor + 2-opt over an open path."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ...config import settings
from ..geospatial import haversine_miles
from .models import OptimizationRequest, OptimizationResult
from .solver import solve_open_path, two_opt_improve
from .stats import calculate_route_stats

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OptimizerOptions:
    avg_speed_mph: float = field(default_factory=lambda: settings.avg_cycling_speed_mph)
    max_passes: int = field(default_factory=lambda: settings.two_opt_max_passes)


def _empty_result(route_id: str) -> OptimizationResult:
    return OptimizationResult(
        route_id=route_id,
        optimized_order=(),
        total_distance_miles=0.0,
        estimated_time_minutes=0.0,
        distance_savings_miles=0.0,
        distance_savings_percent=0.0,
        original_distance_miles=0.0,
        distances_from_start={},
    )


def optimize_route(request: OptimizationRequest, options: OptimizerOptions | None = None) -> OptimizationResult:
    """Compute a short visiting order for the request's waypoints.

    The returned path is never longer than the waypoints in their input
    order. Holds no state between calls.
    """
    options = options or OptimizerOptions()
    if not request.waypoints:
        return _empty_result(request.route_id)

    start = request.start_point
    end = request.effective_end
    if request.is_round_trip and (
        request.end_point.latitude != start.latitude or request.end_point.longitude != start.longitude
    ):
        logger.debug("Round trip for route %s: ignoring supplied end point", request.route_id)

    waypoints_by_id = {wp.id: wp for wp in request.waypoints}
    input_order = [wp.id for wp in request.waypoints]

    def stats_for(order):
        return calculate_route_stats(
            order, waypoints_by_id, start, end, request.is_round_trip, speed_mph=options.avg_speed_mph
        )

    original = stats_for(input_order)

    order, matrix = solve_open_path(start, request.waypoints, end, options.max_passes)
    optimized = stats_for(order)

    if optimized.distance_miles > original.distance_miles:
        # Nearest neighbor can land behind a good input order; polish the input instead.
        order = two_opt_improve(
            input_order,
            matrix,
            matrix.index_of_role("start"),
            matrix.index_of_role("end"),
            options.max_passes,
        )
        optimized = stats_for(order)

    savings = original.distance_miles - optimized.distance_miles
    savings_percent = (savings / original.distance_miles) * 100 if original.distance_miles > 0 else 0.0

    distances_from_start = {
        wp.id: haversine_miles(start.latitude, start.longitude, wp.latitude, wp.longitude)
        for wp in request.waypoints
    }

    logger.info(
        "Optimized route %s: %d stops, %.2f -> %.2f miles (saved %.2f)",
        request.route_id,
        len(order),
        original.distance_miles,
        optimized.distance_miles,
        savings,
    )

    return OptimizationResult(
        route_id=request.route_id,
        optimized_order=tuple(order),
        total_distance_miles=optimized.distance_miles,
        estimated_time_minutes=optimized.time_minutes,
        distance_savings_miles=savings,
        distance_savings_percent=savings_percent,
        original_distance_miles=original.distance_miles,
        distances_from_start=distances_from_start,
    )
