"""
Structural validation of a boundary vertex list.

Two independent stages:

- ``validate_polygon``: vertex count bounds (a closing copy of the first
  vertex is not counted) and consecutive duplicates,
  checked in that order and stopping at the first violation.
- ``validate_simple_ring``: edges must not cross (shapely ``is_simple``).
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from shapely.geometry import LinearRing

from landclaim.boundary.models import GeographicCoordinate
from landclaim.errors import PolygonInvariantViolation, PolygonViolation

MIN_VERTICES = 3
MAX_VERTICES = 100


@dataclass(frozen=True)
class PolygonCheck:
    """Outcome of a non-raising polygon check."""

    valid: bool
    reason: Optional[PolygonViolation] = None
    error: Optional[str] = None


def _corner_count(points: Sequence[GeographicCoordinate]) -> int:
    """Number of vertices, not counting a trailing copy of the first one."""
    if len(points) > 1 and points[-1].same_position(points[0]):
        return len(points) - 1
    return len(points)


def validate_polygon(
    points: Sequence[GeographicCoordinate],
    *,
    min_vertices: int = MIN_VERTICES,
    max_vertices: int = MAX_VERTICES,
) -> None:
    """
    Enforce vertex count and duplicate rules.

    A closing vertex equal to the first one is accepted and is not counted
    against either bound, so ``A B A`` has two corners.

    Raises:
        PolygonInvariantViolation: On the first violated rule.
    """
    corners = _corner_count(points)
    if corners < min_vertices:
        raise PolygonInvariantViolation(
            PolygonViolation.TOO_FEW_POINTS,
            f"Minimal {min_vertices} titik koordinat diperlukan untuk membentuk polygon",
        )
    if corners > max_vertices:
        raise PolygonInvariantViolation(
            PolygonViolation.TOO_MANY_POINTS,
            f"Maksimal {max_vertices} titik koordinat",
        )
    for i in range(len(points) - 1):
        if points[i].same_position(points[i + 1]):
            raise PolygonInvariantViolation(
                PolygonViolation.DUPLICATE_CONSECUTIVE,
                f"Ditemukan koordinat duplikat yang berurutan (titik ke-{i + 1} dan ke-{i + 2})",
            )


def validate_simple_ring(points: Sequence[GeographicCoordinate]) -> None:
    """
    Reject rings whose edges cross or touch away from shared vertices.

    Expects a list that already passed ``validate_polygon``; a trailing
    copy of the first vertex is allowed.

    Raises:
        PolygonInvariantViolation: With reason SELF_INTERSECTION.
    """
    ring = LinearRing([(p.longitude, p.latitude) for p in points])
    if not ring.is_simple:
        raise PolygonInvariantViolation(
            PolygonViolation.SELF_INTERSECTION,
            "Sisi polygon saling berpotongan",
        )


def check_polygon(
    points: Sequence[GeographicCoordinate],
    *,
    min_vertices: int = MIN_VERTICES,
    max_vertices: int = MAX_VERTICES,
    check_self_intersection: bool = False,
) -> PolygonCheck:
    """Non-raising form of the validation stages."""
    try:
        validate_polygon(points, min_vertices=min_vertices, max_vertices=max_vertices)
        if check_self_intersection:
            validate_simple_ring(points)
    except PolygonInvariantViolation as e:
        return PolygonCheck(valid=False, reason=e.reason, error=e.message)
    return PolygonCheck(valid=True)
