"""Routing endpoints."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Response, status

from ...schemas.routing import (
    ApplyOptimizationRequest,
    OptimizationComparisonResponse,
    OptimizationResponse,
    OptimizeRouteRequest,
    RouteGeometryResponse,
)
from ...services.routing.service import (
    RouteNotFoundError,
    apply_route_optimization,
    build_route_geometry,
    export_stored_route,
    optimize_request,
    optimize_stored_route,
)

router = APIRouter(prefix="/routes", tags=["routes"])


def _server_error(action: str, exc: Exception) -> HTTPException:
    logging.exception(f"Error while trying to {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(exc)}",
    )


@router.post("/optimize", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizeRouteRequest) -> OptimizationResponse:
    """Optimize the visiting order of an ad-hoc set of waypoints."""
    try:
        result, run_dir = optimize_request(payload.to_domain(), persist=payload.persist, run_label=payload.run_label)
        return OptimizationResponse.from_result(result, output_dir=str(run_dir) if run_dir else None)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("optimize route", exc) from exc


@router.post(
    "/{route_id}/optimize",
    response_model=OptimizationComparisonResponse,
    status_code=status.HTTP_200_OK,
)
def optimize_saved_route(route_id: str) -> OptimizationComparisonResponse:
    """Preview the optimized order for a stored route without saving it."""
    try:
        return OptimizationComparisonResponse.from_comparison(optimize_stored_route(route_id))
    except RouteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("optimize route", exc) from exc


@router.post("/{route_id}/apply", status_code=status.HTTP_200_OK)
def apply_optimization(route_id: str, payload: ApplyOptimizationRequest) -> dict:
    """Persist an optimized order for a stored route."""
    try:
        updated = apply_route_optimization(route_id, payload.optimized_order, payload.distances_from_start)
        return {"success": True, "route_id": route_id, "updated": updated}
    except RouteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("apply optimization", exc) from exc


@router.get("/{route_id}/geometry", response_model=RouteGeometryResponse, status_code=status.HTTP_200_OK)
def route_geometry(route_id: str) -> RouteGeometryResponse:
    try:
        return RouteGeometryResponse.from_geometry(route_id, build_route_geometry(route_id))
    except RouteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("build route geometry", exc) from exc


@router.get("/{route_id}/export", status_code=status.HTTP_200_OK)
def export(
    route_id: str,
    format: Literal["gpx", "csv", "json", "geojson"] = Query("gpx", description="Export format"),
) -> Response:
    try:
        result = export_stored_route(route_id, format)
    except RouteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("export route", exc) from exc

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
