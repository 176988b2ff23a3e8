"""Export services."""

from .formats import ExportResult, export_route
from .geojson import route_to_feature_collection

__all__ = [
    "ExportResult",
    "export_route",
    "route_to_feature_collection",
]
