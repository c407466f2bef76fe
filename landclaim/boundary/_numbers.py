"""Shared numeric parsing for coordinate readers."""

import math
from typing import Optional, Tuple


def parse_finite(text: Optional[str]) -> Optional[float]:
    """Parse ``text`` as a finite float, or return None."""
    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_lat_lon(lat_text: Optional[str], lon_text: Optional[str]) -> Optional[Tuple[float, float]]:
    """
    Parse a latitude/longitude pair with WGS84 range checks.

    Returns:
        ``(lat, lon)`` or None if either value is missing, non-numeric,
        non-finite or out of range.
    """
    lat = parse_finite(lat_text)
    lon = parse_finite(lon_text)
    if lat is None or lon is None:
        return None
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        return None
    return lat, lon
