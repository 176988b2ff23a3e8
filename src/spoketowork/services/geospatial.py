"""Geospatial helper functions."""

from __future__ import annotations

import math

EARTH_RADIUS_MILES = 3959.0
METERS_PER_MILE = 1609.344


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in miles using the Haversine formula.

    Inputs are not validated: NaN or out-of-range coordinates yield NaN.
    """

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def is_valid_coordinate(lat: float | None, lon: float | None) -> bool:
    """Return True when both values are finite and inside WGS84 bounds."""

    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def miles_to_minutes(distance_miles: float, speed_mph: float) -> float:
    return distance_miles / speed_mph * 60.0
