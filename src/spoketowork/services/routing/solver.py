"""Open-path TSP heuristics: nearest-neighbor construction and 2-opt improvement.

The start and end of the path are pinned; only the waypoints in between are
ordered. Round trips are handled as an open path whose end point is a copy
of the start coordinate.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from .matrix import build_distance_matrix
from .models import DistanceMatrix, OptimizationWaypoint, Point, RouteEndpoint

logger = logging.getLogger(__name__)

# Minimum gain (miles) for a 2-opt move to count as an improvement.
IMPROVEMENT_EPSILON = 1e-9

START_ID = "__start__"
END_ID = "__end__"


def build_path_points(
    start: RouteEndpoint,
    waypoints: Sequence[OptimizationWaypoint],
    end: RouteEndpoint,
) -> list[Point]:
    """Return ``[start, *waypoints, end]`` as matrix points."""
    return [
        Point(id=START_ID, latitude=start.latitude, longitude=start.longitude, role="start"),
        *(
            Point(id=wp.id, latitude=wp.latitude, longitude=wp.longitude, role="waypoint")
            for wp in waypoints
        ),
        Point(id=END_ID, latitude=end.latitude, longitude=end.longitude, role="end"),
    ]


def _waypoint_indices(matrix: DistanceMatrix) -> dict[str, int]:
    return {point.id: index for index, point in enumerate(matrix.points) if point.role == "waypoint"}


def path_length(path: Sequence[int], matrix: DistanceMatrix) -> float:
    """Sum of consecutive leg distances along a path of matrix indices."""
    return sum(matrix.distances[a][b] for a, b in zip(path, path[1:]))


def nearest_neighbor_order(matrix: DistanceMatrix, start_index: int | None = None) -> list[str]:
    """Greedy construction from the start point.

    At each step the closest unvisited waypoint is chosen; ties go to the
    waypoint that appears first in the input. The end point is ignored while
    choosing hops.
    """
    current = matrix.index_of_role("start") if start_index is None else start_index
    remaining = [index for index, point in enumerate(matrix.points) if point.role == "waypoint"]
    order: list[str] = []

    while remaining:
        row = matrix.distances[current]
        nearest = remaining[0]
        nearest_dist = row[nearest]
        for candidate in remaining[1:]:
            if row[candidate] < nearest_dist:
                nearest = candidate
                nearest_dist = row[candidate]
        order.append(matrix.points[nearest].id)
        remaining.remove(nearest)
        current = nearest

    return order


def two_opt_improve(
    order: Sequence[str],
    matrix: DistanceMatrix,
    start_index: int,
    end_index: int,
    max_passes: int | None = None,
) -> list[str]:
    """Refine a waypoint order with 2-opt edge swaps.

    The path is ``start, *order, end``. Reversing ``path[i+1..j]`` swaps
    edges (i, i+1) and (j, j+1) for (i, j) and (i+1, j+1); a reversal is kept
    only when it strictly shortens the path. Passes repeat until one makes no
    change or ``max_passes`` is reached, so the result is never longer than
    the input.
    """
    max_passes = settings.two_opt_max_passes if max_passes is None else max_passes
    lookup = _waypoint_indices(matrix)
    path = [start_index, *(lookup[wp_id] for wp_id in order), end_index]
    dist = matrix.distances
    last = len(path) - 1

    passes = 0
    improved = True
    while improved and passes < max_passes:
        improved = False
        passes += 1
        for i in range(0, last - 2):
            for j in range(i + 2, last):
                a, b = path[i], path[i + 1]
                c, d = path[j], path[j + 1]
                delta = dist[a][c] + dist[b][d] - dist[a][b] - dist[c][d]
                if delta < -IMPROVEMENT_EPSILON:
                    path[i + 1 : j + 1] = reversed(path[i + 1 : j + 1])
                    improved = True

    if improved:
        logger.debug("2-opt stopped at pass cap (%d) before converging", max_passes)

    return [matrix.points[index].id for index in path[1:-1]]


def solve_open_path(
    start: RouteEndpoint,
    waypoints: Sequence[OptimizationWaypoint],
    end: RouteEndpoint,
    max_passes: int | None = None,
) -> tuple[list[str], DistanceMatrix]:
    """Nearest neighbor followed by 2-opt; returns the order and the matrix used."""
    matrix = build_distance_matrix(build_path_points(start, waypoints, end))
    start_index = matrix.index_of_role("start")
    end_index = matrix.index_of_role("end")
    initial = nearest_neighbor_order(matrix, start_index)
    improved = two_opt_improve(initial, matrix, start_index, end_index, max_passes)
    return improved, matrix
