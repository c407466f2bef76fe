"""
Overlap engine.

Computes, stores and previews intersections between land-claim boundaries
and the active prohibited zones. Areas are geodesic (``::geography``) in
square metres; percentages are relative to the claim's own area and are
NULL when that area is zero.

A stored overlap set is always complete: each computation deletes the
previous set and inserts the new one inside the caller's transaction, with
the submission row locked so recomputations of one submission serialize.
"""

import asyncio
import json
import logging
from typing import List, Sequence

import asyncpg

from landclaim.boundary.geojson import to_polygon
from landclaim.boundary.models import GeographicCoordinate
from landclaim.boundary.validation import MAX_VERTICES, MIN_VERTICES, validate_polygon
from landclaim.config import Settings
from landclaim.errors import SpatialQueryFailure, SubmissionNotFound
from landclaim.models import ACTIVE_CLAIM_STATUSES, ProhibitedAreaType
from landclaim.overlap.models import OverlapPreview, OverlapResult
from landclaim.store.database import Database
from landclaim.store.rows import decode_json

logger = logging.getLogger(__name__)


# =============================================================================
# SQL
# =============================================================================

_LOCK_SUBMISSION = "SELECT id FROM submissions WHERE id = $1 FOR UPDATE"

_NEXT_OVERLAP_SET = """
    SELECT
        pa.id AS prohibited_area_id,
        pa.nama_kawasan AS zone_name,
        pa.jenis_kawasan::text AS zone_category,
        ST_AsGeoJSON(x.geom)::text AS intersection_geometry,
        ST_Area(x.geom::geography) AS overlap_area_m2,
        ST_Area(x.geom::geography)
            / NULLIF(ST_Area(s.geom::geography), 0) * 100 AS overlap_percentage
    FROM submissions s
    JOIN prohibited_areas pa
        ON pa.aktif_di_validasi AND ST_Intersects(s.geom, pa.geom)
    CROSS JOIN LATERAL (SELECT ST_Intersection(s.geom, pa.geom) AS geom) x
    WHERE s.id = $1
    ORDER BY pa.id
"""

_DELETE_OVERLAPS = "DELETE FROM overlap_results WHERE submission_id = $1"

_INSERT_OVERLAP = """
    INSERT INTO overlap_results
        (submission_id, prohibited_area_id, overlap_area_m2, overlap_percentage,
         zone_name, zone_category, intersection_geom)
    VALUES ($1, $2, $3, $4, $5, $6::prohibited_area_type,
            ST_SetSRID(ST_GeomFromGeoJSON($7::text), 4326))
"""

_SELECT_OVERLAPS = """
    SELECT
        submission_id, prohibited_area_id, overlap_area_m2, overlap_percentage,
        zone_name, zone_category::text AS zone_category,
        ST_AsGeoJSON(intersection_geom)::text AS intersection_geometry
    FROM overlap_results
    WHERE submission_id = $1
    ORDER BY prohibited_area_id
"""

_PREVIEW = """
    WITH shape AS (
        SELECT ST_SetSRID(ST_GeomFromGeoJSON($1::text), 4326) AS geom
    ),
    shape_area AS (
        SELECT NULLIF(ST_Area(geom::geography), 0) AS m2 FROM shape
    )
    SELECT
        'ProhibitedArea' AS source,
        pa.id AS source_id,
        pa.nama_kawasan AS name,
        pa.jenis_kawasan::text AS category,
        ST_Area(x.geom::geography) AS overlap_area_m2,
        ST_Area(x.geom::geography) / shape_area.m2 * 100 AS overlap_percentage,
        ST_AsGeoJSON(x.geom)::text AS intersection_geometry
    FROM shape
    CROSS JOIN shape_area
    JOIN prohibited_areas pa
        ON pa.aktif_di_validasi AND ST_Intersects(shape.geom, pa.geom)
    CROSS JOIN LATERAL (SELECT ST_Intersection(shape.geom, pa.geom) AS geom) x
    UNION ALL
    SELECT
        'Submission' AS source,
        s.id AS source_id,
        s.nama_pemilik AS name,
        s.status::text AS category,
        ST_Area(x.geom::geography) AS overlap_area_m2,
        ST_Area(x.geom::geography) / shape_area.m2 * 100 AS overlap_percentage,
        ST_AsGeoJSON(x.geom)::text AS intersection_geometry
    FROM shape
    CROSS JOIN shape_area
    JOIN submissions s
        ON s.status::text = ANY($2::text[]) AND ST_Intersects(shape.geom, s.geom)
    CROSS JOIN LATERAL (SELECT ST_Intersection(shape.geom, s.geom) AS geom) x
    ORDER BY source, source_id
"""


def _row_to_result(submission_id: int, row: asyncpg.Record) -> OverlapResult:
    return OverlapResult(
        submission_id=submission_id,
        prohibited_area_id=row["prohibited_area_id"],
        overlap_area_m2=row["overlap_area_m2"],
        overlap_percentage=row["overlap_percentage"],
        zone_name=row["zone_name"],
        zone_category=ProhibitedAreaType(row["zone_category"]),
        intersection_geometry=decode_json(row["intersection_geometry"]),
    )


class OverlapEngine:
    """
    Spatial intersection against the prohibited-zone registry.

    Args:
        query_timeout: Seconds allowed for each spatial query.
        min_vertices: Minimum vertices for a previewed boundary.
        max_vertices: Maximum vertices for a previewed boundary.
    """

    def __init__(
        self,
        query_timeout: float = 30.0,
        *,
        min_vertices: int = MIN_VERTICES,
        max_vertices: int = MAX_VERTICES,
    ):
        self._timeout = query_timeout
        self._min_vertices = min_vertices
        self._max_vertices = max_vertices

    @classmethod
    def from_settings(cls, settings: Settings) -> "OverlapEngine":
        return cls(
            settings.overlap.query_timeout_seconds,
            min_vertices=settings.boundary.min_vertices,
            max_vertices=settings.boundary.max_vertices,
        )

    async def compute_overlaps(
        self, conn: asyncpg.Connection, submission_id: int
    ) -> List[OverlapResult]:
        """
        Recompute and replace the stored overlap set of a submission.

        Must run inside a transaction on ``conn``.

        Returns:
            The new complete set, possibly empty.

        Raises:
            SubmissionNotFound: No such submission.
            SpatialQueryFailure: The spatial query failed or timed out.
        """
        try:
            locked = await conn.fetchrow(_LOCK_SUBMISSION, submission_id, timeout=self._timeout)
            if locked is None:
                raise SubmissionNotFound(submission_id)
            rows = await conn.fetch(_NEXT_OVERLAP_SET, submission_id, timeout=self._timeout)
        except (asyncio.TimeoutError, asyncpg.QueryCanceledError) as e:
            logger.error(
                "Overlap query for submission %s timed out after %ss",
                submission_id,
                self._timeout,
            )
            raise SpatialQueryFailure(
                "Perhitungan tumpang tindih melebihi batas waktu", timed_out=True
            ) from e
        except asyncpg.PostgresError as e:
            logger.error("Overlap query for submission %s failed: %s", submission_id, e)
            raise SpatialQueryFailure(f"Perhitungan tumpang tindih gagal: {e}") from e

        results = [_row_to_result(submission_id, r) for r in rows]

        await conn.execute(_DELETE_OVERLAPS, submission_id)
        if results:
            await conn.executemany(
                _INSERT_OVERLAP,
                [
                    (
                        o.submission_id,
                        o.prohibited_area_id,
                        o.overlap_area_m2,
                        o.overlap_percentage,
                        o.zone_name,
                        o.zone_category.value,
                        json.dumps(o.intersection_geometry),
                    )
                    for o in results
                ],
            )

        logger.info(
            "Submission %s overlaps %d prohibited area(s)", submission_id, len(results)
        )
        return results

    async def get_overlaps(
        self, conn: asyncpg.Connection, submission_id: int
    ) -> List[OverlapResult]:
        """Read the stored overlap set of a submission."""
        rows = await conn.fetch(_SELECT_OVERLAPS, submission_id)
        return [_row_to_result(submission_id, r) for r in rows]

    async def preview_overlaps(
        self, conn: asyncpg.Connection, points: Sequence[GeographicCoordinate]
    ) -> List[OverlapPreview]:
        """
        Intersect an unsaved boundary with active zones and existing claims.

        Read-only. Existing claims are submissions in a recorded or
        registered status.

        Raises:
            PolygonInvariantViolation: The points do not form a valid polygon.
            SpatialQueryFailure: The spatial query failed or timed out.
        """
        validate_polygon(
            points, min_vertices=self._min_vertices, max_vertices=self._max_vertices
        )
        polygon = to_polygon(points)
        statuses = [s.value for s in ACTIVE_CLAIM_STATUSES]

        try:
            rows = await conn.fetch(
                _PREVIEW, json.dumps(polygon), statuses, timeout=self._timeout
            )
        except (asyncio.TimeoutError, asyncpg.QueryCanceledError) as e:
            raise SpatialQueryFailure(
                "Pratinjau tumpang tindih melebihi batas waktu", timed_out=True
            ) from e
        except asyncpg.PostgresError as e:
            raise SpatialQueryFailure(f"Pratinjau tumpang tindih gagal: {e}") from e

        return [
            OverlapPreview(
                source=r["source"],
                source_id=r["source_id"],
                name=r["name"],
                category=r["category"],
                overlap_area_m2=r["overlap_area_m2"],
                overlap_percentage=r["overlap_percentage"],
                intersection_geometry=decode_json(r["intersection_geometry"]),
            )
            for r in rows
        ]

    async def recompute(self, db: Database, submission_id: int) -> List[OverlapResult]:
        """Recompute a submission's overlaps in a transaction of its own."""
        async with db.transaction() as uow:
            return await self.compute_overlaps(uow.conn, submission_id)
