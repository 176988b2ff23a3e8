"""GeoJSON export utilities for bicycle routes."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from shapely.geometry import LineString, Point, mapping

from ...models.domain import BicycleRoute, RouteCompany


def route_path_coordinates(route: BicycleRoute, stops: Sequence[RouteCompany]) -> List[tuple[float, float]]:
    """Return (lat, lon) pairs for start -> located stops -> effective end."""
    path: List[tuple[float, float]] = []
    if route.start_latitude is not None and route.start_longitude is not None:
        path.append((route.start_latitude, route.start_longitude))
    path.extend((stop.latitude, stop.longitude) for stop in stops if stop.has_coordinates)

    if route.is_round_trip or route.end_latitude is None or route.end_longitude is None:
        if route.start_latitude is not None and route.start_longitude is not None:
            path.append((route.start_latitude, route.start_longitude))
    else:
        path.append((route.end_latitude, route.end_longitude))
    return path


def route_to_feature_collection(
    route: BicycleRoute,
    stops: Sequence[RouteCompany],
    geometry: Sequence[tuple[float, float]] | None = None,
) -> Dict[str, Any]:
    """Build a FeatureCollection with the route line and one point per stop.

    ``geometry`` overrides the straight-line path when road geometry is known.
    """
    features: List[Dict[str, Any]] = []

    line_coords = list(geometry) if geometry else route_path_coordinates(route, stops)
    if len(line_coords) >= 2:
        features.append(
            {
                "type": "Feature",
                "geometry": mapping(LineString([(lon, lat) for lat, lon in line_coords])),
                "properties": {
                    "route_id": route.id,
                    "name": route.name,
                    "color": route.color,
                    "distance_miles": route.distance_miles,
                    "estimated_time_minutes": route.estimated_time_minutes,
                    "is_round_trip": route.is_round_trip,
                },
            }
        )

    located = [stop for stop in stops if stop.has_coordinates]
    for sequence, stop in enumerate(located, start=1):
        features.append(
            {
                "type": "Feature",
                "geometry": mapping(Point(stop.longitude, stop.latitude)),
                "properties": {
                    "stop_id": stop.id,
                    "name": stop.name,
                    "address": stop.address,
                    "sequence": sequence,
                    "next_ride": stop.visit_on_next_ride,
                },
            }
        )

    return {"type": "FeatureCollection", "features": features}
