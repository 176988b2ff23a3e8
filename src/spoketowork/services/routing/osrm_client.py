"""HTTP client for the OSRM bicycle routing service."""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx

from ...config import settings
from ..geospatial import METERS_PER_MILE, is_valid_coordinate
from .models import RouteGeometry

logger = logging.getLogger(__name__)


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers={"Accept": "application/json"},
            transport=self._transport,
        )

    def route(self, coordinates: Sequence[tuple[float, float]]) -> dict:
        """Get a road-following route through ``coordinates`` in visit order.

        Args:
            coordinates: Sequence of (lat, lon) tuples

        Returns:
            The OSRM response with GeoJSON geometry on each route.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")
        for lat, lon in coordinates:
            if not is_valid_coordinate(lat, lon):
                raise ValueError(f"Invalid coordinate for OSRM route: ({lat}, {lon})")

        # OSRM expects "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    if data.get("code") != "Ok" or not data.get("routes"):
                        error_msg = data.get("message") or data.get("code") or "no routes returned"
                        raise ValueError(f"OSRM route request failed: {error_msg}")
                    return data
                except httpx.HTTPStatusError:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM route request timed out after {self.max_retries} retries: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM route timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to OSRM service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()


def fetch_bicycle_route(
    coordinates: Sequence[tuple[float, float]],
    client: OSRMClient | None = None,
) -> RouteGeometry:
    """Fetch bicycle geometry and convert the first route to miles/minutes."""
    client = client or OSRMClient()
    data = client.route(coordinates)
    route = data["routes"][0]
    # GeoJSON is [lon, lat]
    path = [(lat, lon) for lon, lat in route["geometry"]["coordinates"]]
    return RouteGeometry(
        coordinates=path,
        distance_miles=float(route["distance"]) / METERS_PER_MILE,
        duration_minutes=float(route["duration"]) / 60.0,
        source="osrm",
    )


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM availability with a minimal two-point route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "-84.8667,35.1667;-84.8600,35.1700"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except httpx.HTTPError:
        return False
    except ValueError:
        return False
