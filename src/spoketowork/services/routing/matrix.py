"""Pairwise haversine distance tables."""

from __future__ import annotations

from typing import Sequence

from ..geospatial import haversine_miles
from .models import DistanceMatrix, Point


def build_distance_matrix(points: Sequence[Point]) -> DistanceMatrix:
    """Build a symmetric NxN table where ``distances[i][j]`` is miles from point i to j.

    Index ``k`` always refers to ``points[k]``; the input is not modified.
    """
    ordered = tuple(points)
    n = len(ordered)
    rows = [[0.0] * n for _ in range(n)]

    for i in range(n):
        for j in range(i + 1, n):
            dist = haversine_miles(
                ordered[i].latitude,
                ordered[i].longitude,
                ordered[j].latitude,
                ordered[j].longitude,
            )
            rows[i][j] = dist
            rows[j][i] = dist

    return DistanceMatrix(points=ordered, distances=tuple(tuple(row) for row in rows))
