import csv
import io
import json
from datetime import datetime, timezone

import gpxpy
import pytest

from src.spoketowork.models.domain import BicycleRoute, RouteCompany
from src.spoketowork.services.export import export_route, route_to_feature_collection
from src.spoketowork.services.export.formats import generate_filename

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def route() -> BicycleRoute:
    return BicycleRoute(
        id="route-1",
        name="Downtown Loop & Back",
        start_latitude=35.1667,
        start_longitude=-84.8667,
        is_round_trip=True,
    )


@pytest.fixture
def stops() -> list[RouteCompany]:
    return [
        RouteCompany(
            id="rc-1",
            route_id="route-1",
            sequence_order=0,
            company_id="co-1",
            name="Acme <Cycles>",
            latitude=35.17,
            longitude=-84.87,
            address="1 Main St",
            visit_on_next_ride=True,
        ),
        RouteCompany(
            id="rc-2",
            route_id="route-1",
            sequence_order=1,
            company_id="co-2",
            name="No Location Co",
            latitude=None,
            longitude=None,
        ),
        RouteCompany(
            id="rc-3",
            route_id="route-1",
            sequence_order=2,
            company_id="co-3",
            name="Spoke Supply",
            latitude=35.2,
            longitude=-84.9,
            source="shared",
        ),
    ]


def test_generate_filename_slugifies_route_name():
    assert generate_filename("Downtown Loop & Back", "gpx", NOW) == "downtown-loop-back-2024-05-01.gpx"
    assert generate_filename("!!!", "csv", NOW) == "route-2024-05-01.csv"


def _extensions(waypoint) -> dict[str, str]:
    return {element.tag.split("}")[-1]: element.text for element in waypoint.extensions}


def test_gpx_export_waypoints_keep_names_and_next_ride(route, stops):
    result = export_route(route, stops, "gpx", NOW)
    parsed = gpxpy.parse(result.content)

    assert result.media_type == "application/gpx+xml"
    assert result.filename.endswith(".gpx")
    assert parsed.name == "Downtown Loop & Back"
    assert [wpt.name for wpt in parsed.waypoints] == ["Acme <Cycles>", "No Location Co", "Spoke Supply"]
    assert parsed.waypoints[0].symbol == "Flag"
    assert parsed.waypoints[2].symbol == "Waypoint"
    assert (parsed.waypoints[1].latitude, parsed.waypoints[1].longitude) == (0.0, 0.0)
    assert _extensions(parsed.waypoints[0]) == {"sequence": "1", "nextRide": "true"}
    assert _extensions(parsed.waypoints[2]) == {"sequence": "3", "nextRide": "false"}
    assert parsed.tracks == []


def test_gpx_export_includes_stored_track(route, stops):
    route.route_geometry = {"type": "LineString", "coordinates": [[-84.8667, 35.1667], [-84.87, 35.17]]}

    parsed = gpxpy.parse(export_route(route, stops, "gpx", NOW).content)

    points = parsed.tracks[0].segments[0].points
    assert [(p.latitude, p.longitude) for p in points] == [(35.1667, -84.8667), (35.17, -84.87)]


def test_csv_export_rows(route, stops):
    result = export_route(route, stops, "csv", NOW)
    rows = list(csv.DictReader(io.StringIO(result.content)))

    assert [row["sequence"] for row in rows] == ["1", "2", "3"]
    assert rows[0]["next_ride"] == "yes"
    assert rows[1]["latitude"] == ""
    assert rows[2]["source"] == "shared"


def test_json_export_summary(route, stops):
    result = export_route(route, stops, "json", NOW)
    payload = json.loads(result.content)

    assert payload["exported_at"] == NOW.isoformat()
    assert payload["route"]["id"] == "route-1"
    assert payload["summary"] == {"total_companies": 3, "next_ride_count": 1}


def test_geojson_export_has_line_and_located_points(route, stops):
    collection = json.loads(export_route(route, stops, "geojson", NOW).content)
    features = collection["features"]

    assert collection["type"] == "FeatureCollection"
    assert features[0]["geometry"]["type"] == "LineString"
    # start, two located stops, back to start
    assert len(features[0]["geometry"]["coordinates"]) == 4
    assert features[0]["geometry"]["coordinates"][0] == [-84.8667, 35.1667]
    points = [f for f in features if f["geometry"]["type"] == "Point"]
    assert [p["properties"]["stop_id"] for p in points] == ["rc-1", "rc-3"]


def test_feature_collection_one_way_ends_at_end_point(route, stops):
    route.is_round_trip = False
    route.end_latitude = 35.3
    route.end_longitude = -84.7

    line = route_to_feature_collection(route, stops)["features"][0]

    assert list(line["geometry"]["coordinates"][-1]) == [-84.7, 35.3]


def test_unknown_export_format(route, stops):
    with pytest.raises(ValueError, match="kml"):
        export_route(route, stops, "kml")
