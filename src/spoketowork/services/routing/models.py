"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

PointRole = Literal["start", "end", "waypoint"]
LocationType = Literal["home", "custom"]


@dataclass(slots=True, frozen=True)
class Point:
    """A location taking part in one optimization run."""

    id: str
    latitude: float
    longitude: float
    role: PointRole = "waypoint"


@dataclass(slots=True, frozen=True)
class DistanceMatrix:
    points: tuple[Point, ...]
    distances: tuple[tuple[float, ...], ...]

    def __len__(self) -> int:
        return len(self.points)

    def index_of_role(self, role: PointRole) -> int:
        for index, point in enumerate(self.points):
            if point.role == role:
                return index
        raise ValueError(f"No point with role '{role}' in matrix.")


@dataclass(slots=True, frozen=True)
class RouteEndpoint:
    latitude: float
    longitude: float
    type: LocationType = "home"
    address: Optional[str] = None


@dataclass(slots=True, frozen=True)
class OptimizationWaypoint:
    id: str
    name: str
    latitude: float
    longitude: float


@dataclass(slots=True, frozen=True)
class OptimizationRequest:
    route_id: str
    start_point: RouteEndpoint
    end_point: RouteEndpoint
    waypoints: tuple[OptimizationWaypoint, ...] = ()
    is_round_trip: bool = True

    @property
    def effective_end(self) -> RouteEndpoint:
        return self.start_point if self.is_round_trip else self.end_point


@dataclass(slots=True, frozen=True)
class RouteStats:
    distance_miles: float
    time_minutes: float


@dataclass(slots=True, frozen=True)
class OptimizationResult:
    route_id: str
    optimized_order: tuple[str, ...]
    total_distance_miles: float
    estimated_time_minutes: float
    distance_savings_miles: float
    distance_savings_percent: float
    original_distance_miles: float
    distances_from_start: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ExcludedStop:
    id: str
    name: str
    reason: str


@dataclass(slots=True, frozen=True)
class RouteState:
    order: tuple[str, ...]
    distance_miles: float
    time_minutes: float
    distances_from_start: Optional[dict[str, float]] = None


@dataclass(slots=True, frozen=True)
class OptimizationComparison:
    route_id: str
    before: RouteState
    after: RouteState
    savings_miles: float
    savings_percent: float
    excluded: tuple[ExcludedStop, ...] = ()


@dataclass(slots=True)
class RouteGeometry:
    """Road-following (or straight-line) geometry for an ordered route."""

    coordinates: list[tuple[float, float]]
    distance_miles: float
    duration_minutes: float
    source: Literal["osrm", "straight_line"]
