"""
GPX reader.

Boundary vertices come from track points (``trkpt``), falling back to route
points (``rtept``) and then waypoints (``wpt``); the first non-empty set
wins. Each point carries ``lat``/``lon`` attributes.

Input is an untrusted upload; the size limit is enforced by
``extract_coordinates`` before this reader runs.
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Union

from landclaim.boundary._numbers import parse_lat_lon
from landclaim.boundary.models import GeographicCoordinate
from landclaim.errors import CoordinateParseError, FormatError, StructuralViolation

logger = logging.getLogger(__name__)

# Priority order for point elements
POINT_ELEMENTS = ("trkpt", "rtept", "wpt")


def extract_gpx(
    data: Union[bytes, str],
    *,
    skip_invalid: bool = True,
) -> List[GeographicCoordinate]:
    """
    Read boundary vertices from a GPX document.

    Args:
        data: GPX document as bytes or text.
        skip_invalid: If True, points with a missing or unreadable
            ``lat``/``lon`` are dropped. If False, such a point raises.

    Returns:
        Vertices in document order, ids ``"gpx-{element_index}"``. Dropped
        points leave gaps in the index sequence.

    Raises:
        FormatError: The document is not well-formed XML.
        StructuralViolation: No usable point in any element set.
        CoordinateParseError: A bad point when ``skip_invalid`` is False.
    """
    try:
        root = ET.fromstring(data.lstrip())
    except ET.ParseError as e:
        raise FormatError(f"Format GPX tidak valid: {e}") from e

    for element_name in POINT_ELEMENTS:
        elements = [
            elem for elem in root.iter()
            if isinstance(elem.tag, str) and elem.tag.rsplit("}", 1)[-1] == element_name
        ]
        points = _read_points(elements, skip_invalid=skip_invalid)
        if points:
            logger.debug("GPX boundary read from %d <%s> elements", len(points), element_name)
            return points

    raise StructuralViolation("File GPX tidak berisi titik koordinat (trkpt/rtept/wpt)")


def _read_points(
    elements: List[ET.Element],
    *,
    skip_invalid: bool,
) -> List[GeographicCoordinate]:
    points: List[GeographicCoordinate] = []
    for index, elem in enumerate(elements):
        parsed = parse_lat_lon(elem.get("lat"), elem.get("lon"))
        if parsed is None:
            if not skip_invalid:
                raise CoordinateParseError(
                    f"Koordinat tidak valid pada titik GPX ke-{index + 1}",
                    token=f"lat={elem.get('lat')!r} lon={elem.get('lon')!r}",
                )
            continue
        lat, lon = parsed
        points.append(GeographicCoordinate(id=f"gpx-{index}", latitude=lat, longitude=lon))
    return points
