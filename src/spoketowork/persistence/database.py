"""Database persistence for bicycle routes and their company stops."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from ..db.supabase import get_supabase_client
from ..models.domain import BicycleRoute, RouteCompany

logger = logging.getLogger(__name__)

ROUTES_TABLE = "bicycle_routes"
ROUTE_COMPANIES_TABLE = "route_companies"


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def route_from_row(row: Mapping[str, Any]) -> BicycleRoute:
    """Map a ``bicycle_routes`` row to a domain record."""
    estimated = row.get("estimated_time_minutes")
    return BicycleRoute(
        id=str(row["id"]),
        name=row.get("name") or "Untitled route",
        description=row.get("description"),
        color=row.get("color") or "#3B82F6",
        start_latitude=_to_float(row.get("start_latitude")),
        start_longitude=_to_float(row.get("start_longitude")),
        start_address=row.get("start_address"),
        start_type=row.get("start_type") or "home",
        end_latitude=_to_float(row.get("end_latitude")),
        end_longitude=_to_float(row.get("end_longitude")),
        end_address=row.get("end_address"),
        end_type=row.get("end_type") or "home",
        is_round_trip=bool(row.get("is_round_trip", True)),
        route_geometry=row.get("route_geometry"),
        distance_miles=_to_float(row.get("distance_miles")),
        estimated_time_minutes=int(estimated) if estimated is not None else None,
        last_optimized_at=_parse_timestamp(row.get("last_optimized_at")),
    )


def get_route(route_id: str) -> BicycleRoute | None:
    """Fetch a single route by id. Returns None when missing or unconfigured."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = supabase.table(ROUTES_TABLE).select("*").eq("id", route_id).limit(1).execute()
    except Exception as e:
        logger.error(f"Failed to load route '{route_id}': {e}")
        raise ValueError(f"Failed to load route '{route_id}': {e}") from e

    rows = response.data or []
    return route_from_row(rows[0]) if rows else None


def _load_company(supabase, association: Mapping[str, Any]) -> dict[str, Any] | None:
    """Resolve company name and location for a route association.

    Shared companies keep their location in ``company_locations``; private
    companies carry it inline.
    """
    if association.get("shared_company_id"):
        company_id = association["shared_company_id"]
        company = (
            supabase.table("shared_companies").select("id, name").eq("id", company_id).limit(1).execute()
        )
        if not company.data:
            return None
        location = (
            supabase.table("company_locations")
            .select("address, latitude, longitude")
            .eq("shared_company_id", company_id)
            .limit(1)
            .execute()
        )
        loc = location.data[0] if location.data else {}
        return {
            "id": company.data[0]["id"],
            "name": company.data[0]["name"],
            "address": loc.get("address"),
            "latitude": loc.get("latitude"),
            "longitude": loc.get("longitude"),
            "source": "shared",
        }

    if association.get("private_company_id"):
        company = (
            supabase.table("private_companies")
            .select("id, name, address, latitude, longitude")
            .eq("id", association["private_company_id"])
            .limit(1)
            .execute()
        )
        if not company.data:
            return None
        return {**company.data[0], "source": "private"}

    return None


def route_company_from_rows(association: Mapping[str, Any], company: Mapping[str, Any]) -> RouteCompany:
    return RouteCompany(
        id=str(association["id"]),
        route_id=str(association.get("route_id", "")),
        sequence_order=int(association.get("sequence_order") or 0),
        visit_on_next_ride=bool(association.get("visit_on_next_ride", False)),
        distance_from_start_miles=_to_float(association.get("distance_from_start_miles")),
        company_id=str(company.get("id", "")),
        name=company.get("name") or "Unknown company",
        address=company.get("address"),
        latitude=_to_float(company.get("latitude")),
        longitude=_to_float(company.get("longitude")),
        source=company.get("source", "private"),
        raw=dict(association),
    )


def get_route_companies(route_id: str) -> list[RouteCompany]:
    """Return the route's stops ordered by ``sequence_order``.

    Associations whose company can no longer be loaded are skipped.
    """
    supabase = get_supabase_client()
    if not supabase:
        return []

    try:
        response = (
            supabase.table(ROUTE_COMPANIES_TABLE)
            .select("*")
            .eq("route_id", route_id)
            .order("sequence_order")
            .execute()
        )
        stops: list[RouteCompany] = []
        for association in response.data or []:
            company = _load_company(supabase, association)
            if company is None:
                logger.warning(f"Skipping stop {association.get('id')} on route {route_id}: company not found")
                continue
            stops.append(route_company_from_rows(association, company))
        return stops
    except Exception as e:
        logger.error(f"Failed to load stops for route '{route_id}': {e}")
        raise ValueError(f"Failed to load stops for route '{route_id}': {e}") from e


def update_route_order(
    route_id: str,
    ordered_stop_ids: Sequence[str],
    distances_from_start: Mapping[str, float],
) -> int:
    """Persist a new stop order for a route and stamp ``last_optimized_at``.

    Returns the number of stops updated. Concurrent writers to the same route
    are last-write-wins.
    """
    supabase = get_supabase_client()
    if not supabase:
        raise RuntimeError("Supabase not configured - cannot persist route order.")

    updated = 0
    for index, stop_id in enumerate(ordered_stop_ids):
        distance = distances_from_start.get(stop_id)
        supabase.table(ROUTE_COMPANIES_TABLE).update(
            {
                "sequence_order": index,
                "distance_from_start_miles": round(distance, 2) if distance is not None else None,
            }
        ).eq("id", stop_id).eq("route_id", route_id).execute()
        updated += 1

    supabase.table(ROUTES_TABLE).update(
        {"last_optimized_at": datetime.now(timezone.utc).isoformat()}
    ).eq("id", route_id).execute()

    logger.info(f"Applied optimized order to route {route_id} ({updated} stops)")
    return updated


def check_connection() -> dict[str, Any]:
    """Probe the routes table; used by the database health endpoint."""
    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set STW_SUPABASE_URL and STW_SUPABASE_KEY environment variables.",
        }
    try:
        response = supabase.table(ROUTES_TABLE).select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "routes_count": response.count or 0,
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
