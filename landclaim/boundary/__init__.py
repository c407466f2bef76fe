"""
Boundary file ingestion.

Readers for KML, KMZ and GPX boundary files, polygon validation, and the
GeoJSON codec used to store and redisplay a validated boundary.
"""

from landclaim.boundary.extract import (
    DEFAULT_POLICY,
    ExtractionPolicy,
    extract_coordinates,
    try_extract,
)
from landclaim.boundary.geojson import to_points, to_polygon
from landclaim.boundary.models import BoundaryFormat, ExtractionResult, GeographicCoordinate
from landclaim.boundary.validation import (
    PolygonCheck,
    check_polygon,
    validate_polygon,
    validate_simple_ring,
)

__all__ = [
    "BoundaryFormat",
    "DEFAULT_POLICY",
    "ExtractionPolicy",
    "ExtractionResult",
    "GeographicCoordinate",
    "PolygonCheck",
    "check_polygon",
    "extract_coordinates",
    "to_points",
    "to_polygon",
    "try_extract",
    "validate_polygon",
    "validate_simple_ring",
]
