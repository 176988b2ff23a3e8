"""Routing orchestration service for stored and ad-hoc routes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence

from ...config import settings
from ...models.domain import BicycleRoute, RouteCompany
from ...persistence.cache import RouteCache
from ...persistence.database import get_route, get_route_companies, update_route_order
from ...persistence.filesystem import FileStorage
from ..export import ExportResult, export_route
from ..export.geojson import route_path_coordinates
from ..geospatial import haversine_miles, is_valid_coordinate, miles_to_minutes
from ..outputs.routing_formatter import optimization_result_to_csv, optimization_result_to_json
from .models import (
    ExcludedStop,
    OptimizationComparison,
    OptimizationRequest,
    OptimizationResult,
    OptimizationWaypoint,
    RouteEndpoint,
    RouteGeometry,
    RouteState,
)
from .optimizer import optimize_route
from .osrm_client import OSRMClient, fetch_bicycle_route
from .stats import calculate_route_stats

logger = logging.getLogger(__name__)

route_cache: RouteCache[tuple[BicycleRoute, list[RouteCompany]]] = RouteCache(settings.route_cache_ttl_seconds)


class RouteNotFoundError(LookupError):
    def __init__(self, route_id: str) -> None:
        super().__init__(f"Route '{route_id}' not found.")
        self.route_id = route_id


def _load_route(route_id: str) -> tuple[BicycleRoute, list[RouteCompany]]:
    cached = route_cache.get(route_id)
    if cached is not None:
        return cached

    route = get_route(route_id)
    if route is None:
        raise RouteNotFoundError(route_id)
    stops = get_route_companies(route_id)
    route_cache.set(route_id, (route, stops))
    return route, stops


def _ensure_waypoint_limit(count: int, route_id: str) -> None:
    if count > settings.max_waypoints:
        raise ValueError(
            f"Route '{route_id}' has {count} stops; optimization supports at most {settings.max_waypoints}."
        )
    if count >= settings.slow_warning_threshold:
        logger.warning(f"Optimizing {count} stops for route {route_id}; this may be slow.")


def build_optimization_request(route: BicycleRoute, stops: Sequence[RouteCompany]) -> OptimizationRequest:
    """Build an engine request from a stored route and its located stops."""
    if route.start_latitude is None or route.start_longitude is None:
        raise ValueError(f"Route '{route.id}' has no start location.")
    if not is_valid_coordinate(route.start_latitude, route.start_longitude):
        raise ValueError(
            f"Route '{route.id}' has an invalid start location: ({route.start_latitude}, {route.start_longitude})"
        )

    start = RouteEndpoint(
        latitude=route.start_latitude,
        longitude=route.start_longitude,
        type=route.start_type,
        address=route.start_address,
    )
    if is_valid_coordinate(route.end_latitude, route.end_longitude):
        end = RouteEndpoint(
            latitude=route.end_latitude,
            longitude=route.end_longitude,
            type=route.end_type,
            address=route.end_address,
        )
    else:
        end = start

    return OptimizationRequest(
        route_id=route.id,
        start_point=start,
        end_point=end,
        waypoints=tuple(
            OptimizationWaypoint(id=stop.id, name=stop.name, latitude=stop.latitude, longitude=stop.longitude)
            for stop in stops
        ),
        is_round_trip=route.is_round_trip,
    )


def optimize_stored_route(route_id: str) -> OptimizationComparison:
    """Optimize a stored route and compare with its current order. Persists nothing."""
    route, stops = _load_route(route_id)

    located = [stop for stop in stops if stop.has_coordinates]
    excluded = tuple(
        ExcludedStop(
            id=stop.id,
            name=stop.name,
            reason="Missing coordinates" if stop.missing_coordinates else "Invalid coordinates",
        )
        for stop in stops
        if not stop.has_coordinates
    )
    if excluded:
        logger.warning(f"Excluding {len(excluded)} stop(s) without coordinates from route {route_id}")

    _ensure_waypoint_limit(len(located), route_id)

    request = build_optimization_request(route, located)
    result = optimize_route(request)

    current_order = tuple(stop.id for stop in located)
    before = calculate_route_stats(
        current_order,
        {wp.id: wp for wp in request.waypoints},
        request.start_point,
        request.end_point,
        request.is_round_trip,
    )

    return OptimizationComparison(
        route_id=route_id,
        before=RouteState(order=current_order, distance_miles=before.distance_miles, time_minutes=before.time_minutes),
        after=RouteState(
            order=result.optimized_order,
            distance_miles=result.total_distance_miles,
            time_minutes=result.estimated_time_minutes,
            distances_from_start=dict(result.distances_from_start),
        ),
        savings_miles=result.distance_savings_miles,
        savings_percent=result.distance_savings_percent,
        excluded=excluded,
    )


def apply_route_optimization(
    route_id: str,
    optimized_order: Sequence[str],
    distances_from_start: Mapping[str, float] | None = None,
) -> int:
    """Write an optimized stop order back to the route."""
    route_cache.invalidate(route_id)
    _, stops = _load_route(route_id)

    known = {stop.id for stop in stops}
    unknown = [stop_id for stop_id in optimized_order if stop_id not in known]
    if unknown:
        raise ValueError(f"Stops not on route '{route_id}': {', '.join(unknown)}")
    if len(set(optimized_order)) != len(optimized_order):
        raise ValueError("Optimized order contains duplicate stops.")
    missing = [stop.id for stop in stops if stop.has_coordinates and stop.id not in optimized_order]
    if missing:
        raise ValueError(f"Optimized order is missing stops on route '{route_id}': {', '.join(missing)}")

    try:
        return update_route_order(route_id, optimized_order, distances_from_start or {})
    finally:
        route_cache.invalidate(route_id)


def optimize_request(
    request: OptimizationRequest,
    *,
    persist: bool = False,
    run_label: str | None = None,
) -> tuple[OptimizationResult, Path | None]:
    """Optimize an ad-hoc request, optionally writing run artifacts to disk."""
    _ensure_waypoint_limit(len(request.waypoints), request.route_id)
    result = optimize_route(request)

    run_dir: Path | None = None
    if persist:
        storage = FileStorage()
        run_dir = storage.make_run_directory(prefix="optimization")
        summary = optimization_result_to_json(result)
        summary["is_round_trip"] = request.is_round_trip
        if run_label:
            summary["run_label"] = run_label
        storage.write_json(run_dir / "summary.json", summary)
        storage.write_text(run_dir / "order.csv", optimization_result_to_csv(request, result))
        logger.info(f"Saved optimization outputs for route {request.route_id} to {run_dir}")

    return result, run_dir


def _straight_line_geometry(coordinates: Sequence[tuple[float, float]]) -> RouteGeometry:
    distance = sum(
        haversine_miles(a[0], a[1], b[0], b[1]) for a, b in zip(coordinates, coordinates[1:])
    )
    return RouteGeometry(
        coordinates=list(coordinates),
        distance_miles=distance,
        duration_minutes=miles_to_minutes(distance, settings.avg_cycling_speed_mph),
        source="straight_line",
    )


def build_route_geometry(route_id: str) -> RouteGeometry:
    """Road-following geometry for the stored order, straight lines when OSRM is unavailable."""
    route, stops = _load_route(route_id)
    coordinates = route_path_coordinates(route, stops)
    if len(coordinates) < 2:
        raise ValueError(f"Route '{route_id}' needs a start location to build geometry.")

    try:
        return fetch_bicycle_route(coordinates, OSRMClient())
    except (ConnectionError, ValueError) as e:
        logger.warning(f"OSRM geometry unavailable for route {route_id}: {e}. Using straight-line fallback.")
    except Exception as e:
        logger.error(f"Unexpected OSRM error for route {route_id}: {e}. Using straight-line fallback.")
    return _straight_line_geometry(coordinates)


def export_stored_route(route_id: str, fmt: str) -> ExportResult:
    route, stops = _load_route(route_id)
    return export_route(route, stops, fmt)
