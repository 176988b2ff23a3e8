"""Serializers for optimization outputs."""

from __future__ import annotations

import csv
import io

from ..routing.models import OptimizationRequest, OptimizationResult


def optimization_result_to_json(result: OptimizationResult) -> dict:
    return {
        "route_id": result.route_id,
        "optimized_order": list(result.optimized_order),
        "total_distance_miles": result.total_distance_miles,
        "estimated_time_minutes": result.estimated_time_minutes,
        "original_distance_miles": result.original_distance_miles,
        "distance_savings_miles": result.distance_savings_miles,
        "distance_savings_percent": result.distance_savings_percent,
        "distances_from_start": dict(result.distances_from_start),
    }


def optimization_result_to_csv(request: OptimizationRequest, result: OptimizationResult) -> str:
    names = {wp.id: wp.name for wp in request.waypoints}
    original_positions = {wp.id: index for index, wp in enumerate(request.waypoints, start=1)}

    buffer = io.StringIO()
    fieldnames = [
        "route_id",
        "sequence",
        "waypoint_id",
        "name",
        "original_sequence",
        "distance_from_start_miles",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    for sequence, waypoint_id in enumerate(result.optimized_order, start=1):
        writer.writerow(
            {
                "route_id": result.route_id,
                "sequence": sequence,
                "waypoint_id": waypoint_id,
                "name": names.get(waypoint_id, ""),
                "original_sequence": original_positions.get(waypoint_id, ""),
                "distance_from_start_miles": result.distances_from_start.get(waypoint_id),
            }
        )
    return buffer.getvalue()
