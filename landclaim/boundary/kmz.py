"""
KMZ reader.

KMZ is a ZIP archive containing KML. The first entry whose name ends in
``.kml`` is decompressed and handed to the KML reader.
"""

import io
import zipfile
import zlib
from typing import List, Optional

from landclaim.boundary.kml import extract_kml
from landclaim.boundary.models import GeographicCoordinate
from landclaim.errors import FormatError, MissingKmlEntry


def extract_kmz(
    data: bytes,
    *,
    fail_fast: bool = True,
    max_kml_bytes: Optional[int] = None,
) -> List[GeographicCoordinate]:
    """
    Read the boundary polygon from a KMZ archive.

    Raises:
        FormatError: Not a ZIP archive, the KML entry is larger than
            ``max_kml_bytes`` once uncompressed, or it is not UTF-8.
        MissingKmlEntry: The archive holds no ``.kml`` entry.
        StructuralViolation, CoordinateParseError: From the KML reader.
    """
    kml_text = _extract_kml_from_kmz(data, max_kml_bytes)
    return extract_kml(kml_text, fail_fast=fail_fast, id_prefix="kmz")


def _extract_kml_from_kmz(data: bytes, max_kml_bytes: Optional[int] = None) -> str:
    """Extract the first .kml file from a KMZ (ZIP) archive."""
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise FormatError(f"File KMZ tidak valid: {e}") from e

    with zf:
        kml_name = None
        for name in zf.namelist():
            if name.lower().endswith(".kml"):
                kml_name = name
                break
        if kml_name is None:
            raise MissingKmlEntry("File KML tidak ditemukan dalam KMZ")

        # zipfile never reads past the declared size
        size = zf.getinfo(kml_name).file_size
        if max_kml_bytes is not None and size > max_kml_bytes:
            raise FormatError(
                f"{kml_name} dalam KMZ melebihi batas {max_kml_bytes} byte"
            )

        try:
            raw = zf.read(kml_name)
        except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError) as e:
            raise FormatError(f"Gagal membaca {kml_name} dari KMZ: {e}") from e

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FormatError(f"{kml_name} dalam KMZ bukan teks UTF-8") from e
