"""
Pydantic models for overlap results.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from landclaim.models import ProhibitedAreaType


class OverlapResult(BaseModel):
    """Intersection of a submission with one active prohibited zone.

    Corresponds to a row in the ``overlap_results`` table.
    """

    submission_id: int
    prohibited_area_id: int
    overlap_area_m2: float = Field(..., ge=0, description="Geodesic intersection area")
    overlap_percentage: Optional[float] = Field(
        default=None,
        description="Share of the submission's area, None when that area is zero",
    )
    zone_name: str
    zone_category: ProhibitedAreaType
    intersection_geometry: Optional[Dict[str, Any]] = Field(
        default=None, description="Intersection as GeoJSON"
    )


class OverlapPreview(BaseModel):
    """Intersection of an unsaved boundary with a zone or an existing claim."""

    source: Literal["ProhibitedArea", "Submission"]
    source_id: int
    name: str = Field(..., description="Zone name or claimant name")
    category: str = Field(..., description="Zone category or submission status")
    overlap_area_m2: float
    overlap_percentage: Optional[float] = None
    intersection_geometry: Optional[Dict[str, Any]] = None
