"""
Format dispatch for boundary files.

Routes an uploaded payload to the reader for its declared format and
applies the per-format error policy. Payloads are untrusted uploads and are
size-checked before any parsing.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from landclaim.boundary.gpx import extract_gpx
from landclaim.boundary.kml import extract_kml
from landclaim.boundary.kmz import extract_kmz
from landclaim.boundary.models import BoundaryFormat, ExtractionResult, GeographicCoordinate
from landclaim.errors import BoundaryError, FormatError

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class ExtractionPolicy:
    """
    How the readers treat unreadable coordinates and oversized uploads.

    Attributes:
        kml_fail_fast: KML/KMZ: one bad token fails the whole file.
        gpx_skip_invalid: GPX: points with bad lat/lon are silently dropped.
        max_file_bytes: Largest accepted upload, and for KMZ the largest
            uncompressed KML entry.
    """

    kml_fail_fast: bool = True
    gpx_skip_invalid: bool = True
    max_file_bytes: int = MAX_FILE_BYTES


DEFAULT_POLICY = ExtractionPolicy()


def extract_coordinates(
    data: bytes,
    declared_format: str,
    policy: Optional[ExtractionPolicy] = None,
) -> List[GeographicCoordinate]:
    """
    Extract the ordered boundary vertices from a boundary file.

    Args:
        data: Raw file bytes.
        declared_format: Extension or filename, e.g. ``"kml"``, ``".gpx"``,
            ``"lahan.kmz"``.
        policy: Per-format error policy. Defaults to ``DEFAULT_POLICY``.

    Returns:
        Vertices in file order.

    Raises:
        FormatError: Unsupported extension, oversized file or unreadable
            container.
        StructuralViolation: Wrong number of polygons or no coordinates.
        CoordinateParseError: Unreadable coordinate under a fail-fast policy.
    """
    policy = policy or DEFAULT_POLICY

    if len(data) > policy.max_file_bytes:
        raise FormatError(
            f"Ukuran file melebihi batas {policy.max_file_bytes} byte"
        )

    try:
        fmt = BoundaryFormat.from_declared(declared_format)
    except ValueError:
        raise FormatError(
            f"Format file '{declared_format}' tidak didukung; gunakan KML, KMZ, atau GPX"
        ) from None

    if fmt == BoundaryFormat.KML:
        return extract_kml(data, fail_fast=policy.kml_fail_fast)
    if fmt == BoundaryFormat.KMZ:
        return extract_kmz(
            data,
            fail_fast=policy.kml_fail_fast,
            max_kml_bytes=policy.max_file_bytes,
        )
    return extract_gpx(data, skip_invalid=policy.gpx_skip_invalid)


def try_extract(
    data: bytes,
    declared_format: str,
    policy: Optional[ExtractionPolicy] = None,
) -> ExtractionResult:
    """
    Non-raising form of ``extract_coordinates``.

    On failure the result has no coordinates and a descriptive error; a
    partially read file never yields partial coordinates.
    """
    try:
        coordinates = extract_coordinates(data, declared_format, policy)
    except BoundaryError as e:
        logger.warning("Rejected %s boundary file: %s", declared_format, e.message)
        return ExtractionResult(
            success=False,
            coordinates=[],
            error=e.message,
            error_code=e.code.value,
        )
    return ExtractionResult(success=True, coordinates=coordinates)
