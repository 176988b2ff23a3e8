"""Route export in GPX, CSV, JSON and GeoJSON formats."""

from __future__ import annotations

import csv
import io
import json
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Sequence

import gpxpy.gpx

from ...models.domain import BicycleRoute, RouteCompany
from .geojson import route_to_feature_collection

ExportFormat = Literal["gpx", "csv", "json", "geojson"]

MEDIA_TYPES: dict[str, str] = {
    "gpx": "application/gpx+xml",
    "csv": "text/csv",
    "json": "application/json",
    "geojson": "application/geo+json",
}


@dataclass(slots=True)
class ExportResult:
    format: ExportFormat
    filename: str
    content: str
    media_type: str


def generate_filename(route_name: str, fmt: ExportFormat, now: datetime | None = None) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", route_name.lower()).strip("-") or "route"
    day = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return f"{slug}-{day}.{fmt}"


def _extension(tag: str, text: str) -> ET.Element:
    element = ET.Element(tag)
    element.text = text
    return element


def export_to_gpx(route: BicycleRoute, stops: Sequence[RouteCompany], now: datetime | None = None) -> ExportResult:
    """GPX 1.1 with one waypoint per stop and a track from the stored geometry.

    Stops without usable coordinates are written at (0, 0) so sequence
    numbers still line up with the stored order.
    """
    now = now or datetime.now(timezone.utc)

    gpx = gpxpy.gpx.GPX()
    gpx.creator = "SpokeToWork"
    gpx.name = route.name
    gpx.description = route.description or ""
    gpx.author_name = "SpokeToWork"
    gpx.time = now

    for sequence, stop in enumerate(stops, start=1):
        located = stop.has_coordinates
        waypoint = gpxpy.gpx.GPXWaypoint(
            latitude=stop.latitude if located else 0.0,
            longitude=stop.longitude if located else 0.0,
            name=stop.name,
            description=stop.address or "",
            symbol="Flag" if stop.visit_on_next_ride else "Waypoint",
        )
        waypoint.extensions.append(_extension("sequence", str(sequence)))
        waypoint.extensions.append(_extension("nextRide", str(stop.visit_on_next_ride).lower()))
        gpx.waypoints.append(waypoint)

    track_coords = (route.route_geometry or {}).get("coordinates") or []
    if track_coords:
        track = gpxpy.gpx.GPXTrack(name=route.name)
        segment = gpxpy.gpx.GPXTrackSegment()
        # GeoJSON order is [lon, lat]
        for lon, lat in track_coords:
            segment.points.append(gpxpy.gpx.GPXTrackPoint(latitude=lat, longitude=lon))
        track.segments.append(segment)
        gpx.tracks.append(track)

    return ExportResult(
        format="gpx",
        filename=generate_filename(route.name, "gpx", now),
        content=gpx.to_xml(version="1.1"),
        media_type=MEDIA_TYPES["gpx"],
    )


def export_to_csv(route: BicycleRoute, stops: Sequence[RouteCompany], now: datetime | None = None) -> ExportResult:
    buffer = io.StringIO()
    fieldnames = [
        "route_name",
        "company_name",
        "address",
        "latitude",
        "longitude",
        "sequence",
        "next_ride",
        "source",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    for sequence, stop in enumerate(stops, start=1):
        writer.writerow(
            {
                "route_name": route.name,
                "company_name": stop.name,
                "address": stop.address or "",
                "latitude": "" if stop.latitude is None else stop.latitude,
                "longitude": "" if stop.longitude is None else stop.longitude,
                "sequence": sequence,
                "next_ride": "yes" if stop.visit_on_next_ride else "no",
                "source": stop.source,
            }
        )
    return ExportResult(
        format="csv",
        filename=generate_filename(route.name, "csv", now),
        content=buffer.getvalue(),
        media_type=MEDIA_TYPES["csv"],
    )


def export_to_json(route: BicycleRoute, stops: Sequence[RouteCompany], now: datetime | None = None) -> ExportResult:
    now = now or datetime.now(timezone.utc)
    payload = {
        "exported_at": now.isoformat(),
        "route": {
            "id": route.id,
            "name": route.name,
            "description": route.description,
            "color": route.color,
            "start": {
                "address": route.start_address,
                "latitude": route.start_latitude,
                "longitude": route.start_longitude,
            },
            "end": {
                "address": route.end_address,
                "latitude": route.end_latitude,
                "longitude": route.end_longitude,
            },
            "is_round_trip": route.is_round_trip,
            "geometry": route.route_geometry,
            "distance_miles": route.distance_miles,
            "estimated_time_minutes": route.estimated_time_minutes,
        },
        "companies": [
            {
                "sequence": sequence,
                "name": stop.name,
                "address": stop.address,
                "latitude": stop.latitude,
                "longitude": stop.longitude,
                "source": stop.source,
                "next_ride": stop.visit_on_next_ride,
            }
            for sequence, stop in enumerate(stops, start=1)
        ],
        "summary": {
            "total_companies": len(stops),
            "next_ride_count": sum(1 for stop in stops if stop.visit_on_next_ride),
        },
    }
    return ExportResult(
        format="json",
        filename=generate_filename(route.name, "json", now),
        content=json.dumps(payload, ensure_ascii=False, indent=2),
        media_type=MEDIA_TYPES["json"],
    )


def export_to_geojson(route: BicycleRoute, stops: Sequence[RouteCompany], now: datetime | None = None) -> ExportResult:
    geometry = None
    stored = (route.route_geometry or {}).get("coordinates")
    if stored:
        geometry = [(lat, lon) for lon, lat in stored]
    collection = route_to_feature_collection(route, stops, geometry)
    return ExportResult(
        format="geojson",
        filename=generate_filename(route.name, "geojson", now),
        content=json.dumps(collection, ensure_ascii=False, indent=2),
        media_type=MEDIA_TYPES["geojson"],
    )


EXPORTERS = {
    "gpx": export_to_gpx,
    "csv": export_to_csv,
    "json": export_to_json,
    "geojson": export_to_geojson,
}


def export_route(
    route: BicycleRoute,
    stops: Sequence[RouteCompany],
    fmt: ExportFormat,
    now: datetime | None = None,
) -> ExportResult:
    exporter = EXPORTERS.get(fmt)
    if exporter is None:
        raise ValueError(f"Unsupported export format '{fmt}'.")
    return exporter(route, stops, now)
