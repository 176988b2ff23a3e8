"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    """Check OSRM bicycle routing availability."""
    from ...services.routing.osrm_client import check_health

    try:
        return {"service": "osrm", "healthy": check_health()}
    except Exception as e:
        return {"service": "osrm", "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and route cache status."""
    from ...persistence.database import check_connection
    from ...services.routing.service import route_cache

    return {**check_connection(), "route_cache": route_cache.stats()}
