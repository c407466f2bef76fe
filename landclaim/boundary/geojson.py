"""
GeoJSON codec for boundary polygons.

Encoding emits ``[longitude, latitude]`` pairs and closes the ring. The
codec does not validate; callers run ``validate_polygon`` first.
"""

import json
from typing import Any, Dict, List, Sequence, Union

from landclaim.boundary.models import GeographicCoordinate
from landclaim.errors import StructuralViolation


def to_polygon(points: Sequence[GeographicCoordinate]) -> Dict[str, Any]:
    """
    Encode vertices as a closed GeoJSON Polygon with a single ring.

    Args:
        points: Validated vertices, optionally already closed.

    Returns:
        ``{"type": "Polygon", "coordinates": [[[lon, lat], ...]]}``
    """
    ring: List[List[float]] = [[p.longitude, p.latitude] for p in points]
    if ring and ring[0] != ring[-1]:
        ring.append(list(ring[0]))
    return {"type": "Polygon", "coordinates": [ring]}


def to_points(geojson: Union[Dict[str, Any], str]) -> List[GeographicCoordinate]:
    """
    Decode a GeoJSON Polygon's outer ring back into vertices.

    The closing pair is dropped when it repeats the first pair. Interior
    rings are ignored.

    Raises:
        StructuralViolation: Not a Polygon, or malformed coordinates.
    """
    if isinstance(geojson, str):
        try:
            geojson = json.loads(geojson)
        except json.JSONDecodeError as e:
            raise StructuralViolation(f"GeoJSON tidak valid: {e}") from e

    if not isinstance(geojson, dict) or geojson.get("type") != "Polygon":
        raise StructuralViolation("GeoJSON harus bertipe Polygon")

    try:
        ring = geojson["coordinates"][0]
        pairs = [(float(pair[0]), float(pair[1])) for pair in ring]
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise StructuralViolation(f"Koordinat GeoJSON tidak valid: {e}") from e

    if len(pairs) > 1 and pairs[0] == pairs[-1]:
        pairs = pairs[:-1]

    try:
        return [
            GeographicCoordinate(id=f"geojson-{i}", latitude=lat, longitude=lon)
            for i, (lon, lat) in enumerate(pairs)
        ]
    except ValueError as e:
        raise StructuralViolation(f"Koordinat GeoJSON di luar jangkauan: {e}") from e
