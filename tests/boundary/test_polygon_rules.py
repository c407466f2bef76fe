"""
Tests for polygon validation and the GeoJSON codec.
"""

import json

import pytest

from landclaim.boundary.extract import extract_coordinates
from landclaim.boundary.geojson import to_points, to_polygon
from landclaim.boundary.models import GeographicCoordinate
from landclaim.boundary.validation import (
    check_polygon,
    validate_polygon,
    validate_simple_ring,
)
from landclaim.errors import PolygonInvariantViolation, PolygonViolation, StructuralViolation


def _pts(*pairs):
    """Build coordinates from (lat, lon) pairs."""
    return [GeographicCoordinate(latitude=lat, longitude=lon) for lat, lon in pairs]


TRIANGLE = _pts((-7.0, 110.0), (-7.0, 110.01), (-7.01, 110.01))
SQUARE = _pts((-7.0, 110.0), (-7.0, 110.01), (-7.01, 110.01), (-7.01, 110.0))
BOWTIE = _pts((-7.0, 110.0), (-7.01, 110.01), (-7.0, 110.01), (-7.01, 110.0))


class TestValidatePolygon:

    def test_triangle_is_valid(self):
        validate_polygon(TRIANGLE)

    @pytest.mark.parametrize("count", [0, 1, 2])
    def test_too_few_points(self, count):
        with pytest.raises(PolygonInvariantViolation) as exc_info:
            validate_polygon(TRIANGLE[:count])
        assert exc_info.value.reason is PolygonViolation.TOO_FEW_POINTS
        assert "Minimal 3 titik koordinat" in exc_info.value.message

    def test_hundred_points_allowed(self):
        points = _pts(*[(-7.0 - i * 0.0001, 110.0 + (i % 2) * 0.001) for i in range(100)])
        validate_polygon(points)

    def test_too_many_points(self):
        points = _pts(*[(-7.0 - i * 0.0001, 110.0) for i in range(101)])
        with pytest.raises(PolygonInvariantViolation) as exc_info:
            validate_polygon(points)
        assert exc_info.value.reason is PolygonViolation.TOO_MANY_POINTS
        assert "Maksimal 100 titik koordinat" in exc_info.value.message

    def test_consecutive_duplicate(self):
        points = _pts((-7.0, 110.0), (-7.0, 110.01), (-7.0, 110.01), (-7.01, 110.01))
        with pytest.raises(PolygonInvariantViolation) as exc_info:
            validate_polygon(points)
        assert exc_info.value.reason is PolygonViolation.DUPLICATE_CONSECUTIVE
        assert "titik ke-2 dan ke-3" in exc_info.value.message

    def test_non_consecutive_repeat_is_allowed(self):
        validate_polygon(SQUARE + [SQUARE[0]])

    def test_count_checked_before_duplicates(self):
        points = _pts((-7.0, 110.0), (-7.0, 110.0))
        with pytest.raises(PolygonInvariantViolation) as exc_info:
            validate_polygon(points)
        assert exc_info.value.reason is PolygonViolation.TOO_FEW_POINTS

    def test_custom_bounds(self):
        with pytest.raises(PolygonInvariantViolation):
            validate_polygon(SQUARE, max_vertices=3)
        validate_polygon(SQUARE, min_vertices=4, max_vertices=4)

    def test_closed_ring_of_two_corners_has_too_few_points(self):
        points = _pts((-6.2, 106.8), (-6.21, 106.81), (-6.2, 106.8))
        with pytest.raises(PolygonInvariantViolation) as exc_info:
            validate_polygon(points)
        assert exc_info.value.reason is PolygonViolation.TOO_FEW_POINTS

    def test_closing_vertex_not_counted_against_maximum(self):
        corners = _pts(*[(-7.0 - i * 0.0001, 110.0 + (i % 2) * 0.001) for i in range(100)])
        validate_polygon(corners + [corners[0]])

    def test_closed_kml_ring_of_two_corners_is_rejected(self):
        kml = (
            b"<kml><Placemark><Polygon><outerBoundaryIs><LinearRing>"
            b"<coordinates>106.8,-6.2 106.81,-6.21 106.8,-6.2</coordinates>"
            b"</LinearRing></outerBoundaryIs></Polygon></Placemark></kml>"
        )
        points = extract_coordinates(kml, "kml")
        assert len(points) == 3

        result = check_polygon(points)
        assert result.valid is False
        assert result.reason is PolygonViolation.TOO_FEW_POINTS


class TestSimpleRing:

    def test_square_is_simple(self):
        validate_simple_ring(SQUARE)

    def test_closed_square_is_simple(self):
        validate_simple_ring(SQUARE + [SQUARE[0]])

    def test_bowtie_rejected(self):
        with pytest.raises(PolygonInvariantViolation) as exc_info:
            validate_simple_ring(BOWTIE)
        assert exc_info.value.reason is PolygonViolation.SELF_INTERSECTION

    def test_check_polygon_reports_without_raising(self):
        assert check_polygon(SQUARE).valid is True
        assert check_polygon(BOWTIE).valid is True

        result = check_polygon(BOWTIE, check_self_intersection=True)
        assert result.valid is False
        assert result.reason is PolygonViolation.SELF_INTERSECTION
        assert result.error


class TestGeoJsonCodec:

    def test_encodes_lon_lat_and_closes_ring(self):
        polygon = to_polygon(TRIANGLE)

        assert polygon["type"] == "Polygon"
        ring = polygon["coordinates"][0]
        assert ring[0] == [110.0, -7.0]
        assert ring[-1] == ring[0]
        assert len(ring) == 4

    def test_already_closed_ring_not_closed_twice(self):
        ring = to_polygon(SQUARE + [SQUARE[0]])["coordinates"][0]
        assert len(ring) == 5

    def test_round_trip_preserves_positions(self):
        decoded = to_points(to_polygon(SQUARE))

        assert len(decoded) == len(SQUARE)
        assert all(a.same_position(b) for a, b in zip(decoded, SQUARE))
        assert decoded[0].id == "geojson-0"

    def test_round_trip_through_json_text(self):
        decoded = to_points(json.dumps(to_polygon(TRIANGLE)))
        assert [(p.latitude, p.longitude) for p in decoded] == [
            (p.latitude, p.longitude) for p in TRIANGLE
        ]

    def test_rejects_non_polygon(self):
        with pytest.raises(StructuralViolation):
            to_points({"type": "Point", "coordinates": [110.0, -7.0]})

    def test_rejects_malformed_coordinates(self):
        with pytest.raises(StructuralViolation):
            to_points({"type": "Polygon", "coordinates": [[["a", "b"]]]})

    def test_rejects_invalid_json_text(self):
        with pytest.raises(StructuralViolation):
            to_points("{not json")

    def test_rejects_out_of_range(self):
        with pytest.raises(StructuralViolation):
            to_points({"type": "Polygon", "coordinates": [[[200.0, 0.0], [0.0, 0.0], [1.0, 1.0]]]})
