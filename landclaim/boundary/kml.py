"""
KML reader: extracts the single boundary polygon from a KML document.

A submission carries exactly one boundary, so the whole document must hold
exactly one ``Polygon`` (inside one ``Placemark``). Its
``outerBoundaryIs/LinearRing/coordinates`` text is a whitespace-separated
list of ``longitude,latitude[,altitude]`` tuples; altitude is discarded.

Input is an untrusted upload. Callers go through ``extract_coordinates``,
which enforces the upload size limit before parsing.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Iterator, List, Optional, Union

from landclaim.boundary._numbers import parse_lat_lon
from landclaim.boundary.models import GeographicCoordinate
from landclaim.errors import CoordinateParseError, FormatError, StructuralViolation

logger = logging.getLogger(__name__)


def extract_kml(
    data: Union[bytes, str],
    *,
    fail_fast: bool = True,
    id_prefix: str = "kml",
) -> List[GeographicCoordinate]:
    """
    Read the outer ring of the only polygon in a KML document.

    Args:
        data: KML document as bytes or text.
        fail_fast: If True, one unreadable coordinate token fails the whole
            extraction. If False, such tokens are skipped.
        id_prefix: Prefix for the synthetic point identifiers.

    Returns:
        Vertices in file order, ids ``"{id_prefix}-{token_index}"``.

    Raises:
        FormatError: The document is not well-formed XML.
        StructuralViolation: Zero or several polygons, or no usable coordinates.
        CoordinateParseError: A bad token under ``fail_fast``.
    """
    root = _parse_document(data)
    polygon = _select_single_polygon(root)
    text = _outer_ring_text(polygon)
    return _parse_coordinates_text(text, fail_fast=fail_fast, id_prefix=id_prefix)


def _parse_document(data: Union[bytes, str]) -> ET.Element:
    # Leading whitespace before the XML declaration is common in exported files
    try:
        return ET.fromstring(data.lstrip())
    except ET.ParseError as e:
        raise FormatError(f"Format KML tidak valid: {e}") from e


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _iter_named(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in elem.iter():
        if _local_name(child.tag) == name:
            yield child


def _child(elem: ET.Element, name: str) -> Optional[ET.Element]:
    for child in elem:
        if _local_name(child.tag) == name:
            return child
    return None


def _select_single_polygon(root: ET.Element) -> ET.Element:
    for placemark in _iter_named(root, "Placemark"):
        count = sum(1 for _ in _iter_named(placemark, "Polygon"))
        if count > 1:
            raise StructuralViolation(
                f"Satu Placemark berisi {count} polygon; "
                "file harus berisi tepat 1 polygon"
            )

    polygons = list(_iter_named(root, "Polygon"))
    if len(polygons) != 1:
        raise StructuralViolation(
            f"File harus berisi tepat 1 polygon (ditemukan {len(polygons)})"
        )
    return polygons[0]


def _outer_ring_text(polygon: ET.Element) -> str:
    coords_elem = None
    outer = _child(polygon, "outerBoundaryIs")
    if outer is not None:
        ring = _child(outer, "LinearRing")
        if ring is not None:
            coords_elem = _child(ring, "coordinates")

    if coords_elem is None:
        raise StructuralViolation(
            "Polygon tidak memiliki elemen coordinates pada outerBoundaryIs/LinearRing"
        )
    text = (coords_elem.text or "").strip()
    if not text:
        raise StructuralViolation("Elemen coordinates pada polygon kosong")
    return text


def _parse_coordinates_text(
    text: str,
    *,
    fail_fast: bool,
    id_prefix: str,
) -> List[GeographicCoordinate]:
    """
    Parse a KML ``<coordinates>`` text block.

    Format: ``lon,lat[,alt] lon,lat[,alt] ...`` (whitespace-separated tuples).
    """
    points: List[GeographicCoordinate] = []
    for index, token in enumerate(text.split()):
        parts = token.split(",")
        parsed = parse_lat_lon(parts[1], parts[0]) if len(parts) >= 2 else None

        if parsed is None:
            if fail_fast:
                raise CoordinateParseError(
                    f"Koordinat tidak valid pada titik ke-{index + 1}: '{token}'",
                    token=token,
                )
            logger.debug("Skipping unreadable KML coordinate token %r", token)
            continue

        lat, lon = parsed
        points.append(
            GeographicCoordinate(id=f"{id_prefix}-{index}", latitude=lat, longitude=lon)
        )

    if not points:
        raise StructuralViolation("Tidak ada koordinat valid pada polygon")
    return points
