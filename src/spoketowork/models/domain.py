"""Domain models for stored routes and their company stops."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from ..services.geospatial import is_valid_coordinate


@dataclass(slots=True)
class BicycleRoute:
    """A saved bicycle route with its start/end configuration."""

    id: str
    name: str
    start_latitude: Optional[float]
    start_longitude: Optional[float]
    end_latitude: Optional[float] = None
    end_longitude: Optional[float] = None
    start_address: Optional[str] = None
    end_address: Optional[str] = None
    start_type: Literal["home", "custom"] = "home"
    end_type: Literal["home", "custom"] = "home"
    is_round_trip: bool = True
    description: Optional[str] = None
    color: str = "#3B82F6"
    route_geometry: Optional[dict] = None
    distance_miles: Optional[float] = None
    estimated_time_minutes: Optional[int] = None
    last_optimized_at: Optional[datetime] = None


@dataclass(slots=True)
class RouteCompany:
    """A company stop on a route, joined with the company's location."""

    id: str
    route_id: str
    sequence_order: int
    company_id: str
    name: str
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str] = None
    source: Literal["shared", "private"] = "private"
    visit_on_next_ride: bool = False
    distance_from_start_miles: Optional[float] = None
    raw: dict = field(default_factory=dict)

    @property
    def has_coordinates(self) -> bool:
        """True when the stop has a finite, in-range latitude and longitude."""
        return is_valid_coordinate(self.latitude, self.longitude)

    @property
    def missing_coordinates(self) -> bool:
        return self.latitude is None or self.longitude is None
