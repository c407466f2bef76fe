"""
Pydantic models for boundary coordinates.

Coordinates are WGS84 (EPSG:4326). Field names are snake_case in Python and
camelCase on the wire so they round-trip through the draft payload JSON.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BoundaryFormat(str, Enum):
    """Supported boundary interchange formats."""

    KML = "kml"
    KMZ = "kmz"
    GPX = "gpx"

    @classmethod
    def from_declared(cls, declared: str) -> "BoundaryFormat":
        """
        Resolve a declared extension or filename to a format.

        Accepts ``"kml"``, ``".KMZ"`` or a filename such as ``"lahan.gpx"``.

        Raises:
            ValueError: If the extension is not a supported format.
        """
        ext = declared.strip().lower().rsplit(".", 1)[-1]
        return cls(ext)


class GeographicCoordinate(BaseModel):
    """A single boundary vertex."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(
        default=None,
        description="Synthetic origin identifier, e.g. 'kml-3'",
    )
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)

    def same_position(self, other: "GeographicCoordinate") -> bool:
        """Whether both vertices sit on the exact same (lat, lon)."""
        return self.latitude == other.latitude and self.longitude == other.longitude


class ExtractionResult(BaseModel):
    """Outcome of reading a boundary file, for request handlers."""

    success: bool
    coordinates: List[GeographicCoordinate] = Field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[str] = None
