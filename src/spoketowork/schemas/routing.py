"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..services.routing.models import (
    OptimizationComparison,
    OptimizationRequest,
    OptimizationResult,
    OptimizationWaypoint,
    RouteEndpoint,
    RouteGeometry,
    RouteState,
)


class RouteEndpointModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    type: Literal["home", "custom"] = "home"
    address: Optional[str] = None

    def to_domain(self) -> RouteEndpoint:
        return RouteEndpoint(
            latitude=self.latitude,
            longitude=self.longitude,
            type=self.type,
            address=self.address,
        )


class WaypointModel(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class OptimizeRouteRequest(BaseModel):
    route_id: str
    start_point: RouteEndpointModel
    end_point: Optional[RouteEndpointModel] = Field(
        default=None,
        description="Fixed destination. Ignored for round trips; defaults to the start point.",
    )
    waypoints: List[WaypointModel] = Field(default_factory=list)
    is_round_trip: bool = True
    persist: bool = False
    run_label: Optional[str] = Field(default=None, description="Friendly name for persisted outputs.")

    @field_validator("waypoints")
    @classmethod
    def _unique_ids(cls, value: List[WaypointModel]) -> List[WaypointModel]:
        seen: set[str] = set()
        for waypoint in value:
            if waypoint.id in seen:
                raise ValueError(f"Duplicate waypoint id '{waypoint.id}'")
            seen.add(waypoint.id)
        return value

    def to_domain(self) -> OptimizationRequest:
        start = self.start_point.to_domain()
        return OptimizationRequest(
            route_id=self.route_id,
            start_point=start,
            end_point=self.end_point.to_domain() if self.end_point else start,
            waypoints=tuple(
                OptimizationWaypoint(id=wp.id, name=wp.name, latitude=wp.latitude, longitude=wp.longitude)
                for wp in self.waypoints
            ),
            is_round_trip=self.is_round_trip,
        )


class OptimizationResponse(BaseModel):
    route_id: str
    optimized_order: List[str]
    total_distance_miles: float
    estimated_time_minutes: float
    distance_savings_miles: float
    distance_savings_percent: float
    original_distance_miles: float
    distances_from_start: Dict[str, float]
    output_dir: Optional[str] = None

    @classmethod
    def from_result(cls, result: OptimizationResult, output_dir: Optional[str] = None) -> "OptimizationResponse":
        return cls(
            route_id=result.route_id,
            optimized_order=list(result.optimized_order),
            total_distance_miles=result.total_distance_miles,
            estimated_time_minutes=result.estimated_time_minutes,
            distance_savings_miles=result.distance_savings_miles,
            distance_savings_percent=result.distance_savings_percent,
            original_distance_miles=result.original_distance_miles,
            distances_from_start=dict(result.distances_from_start),
            output_dir=output_dir,
        )


class RouteStateModel(BaseModel):
    order: List[str]
    distance_miles: float
    time_minutes: float
    distances_from_start: Optional[Dict[str, float]] = None

    @classmethod
    def from_state(cls, state: RouteState) -> "RouteStateModel":
        return cls(
            order=list(state.order),
            distance_miles=state.distance_miles,
            time_minutes=state.time_minutes,
            distances_from_start=state.distances_from_start,
        )


class SavingsModel(BaseModel):
    distance_miles: float
    percent: float


class ExcludedCompanyModel(BaseModel):
    id: str
    name: str
    reason: str


class OptimizationComparisonResponse(BaseModel):
    route_id: str
    before: RouteStateModel
    after: RouteStateModel
    savings: SavingsModel
    excluded_companies: List[ExcludedCompanyModel]

    @classmethod
    def from_comparison(cls, comparison: OptimizationComparison) -> "OptimizationComparisonResponse":
        return cls(
            route_id=comparison.route_id,
            before=RouteStateModel.from_state(comparison.before),
            after=RouteStateModel.from_state(comparison.after),
            savings=SavingsModel(distance_miles=comparison.savings_miles, percent=comparison.savings_percent),
            excluded_companies=[
                ExcludedCompanyModel(id=item.id, name=item.name, reason=item.reason)
                for item in comparison.excluded
            ],
        )


class ApplyOptimizationRequest(BaseModel):
    optimized_order: List[str] = Field(..., min_length=1)
    distances_from_start: Dict[str, float] = Field(default_factory=dict)


class RouteGeometryResponse(BaseModel):
    route_id: str
    source: Literal["osrm", "straight_line"]
    distance_miles: float
    duration_minutes: float
    geometry: dict

    @classmethod
    def from_geometry(cls, route_id: str, geometry: RouteGeometry) -> "RouteGeometryResponse":
        return cls(
            route_id=route_id,
            source=geometry.source,
            distance_miles=geometry.distance_miles,
            duration_minutes=geometry.duration_minutes,
            geometry={
                "type": "LineString",
                "coordinates": [[lon, lat] for lat, lon in geometry.coordinates],
            },
        )
