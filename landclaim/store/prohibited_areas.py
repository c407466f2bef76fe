"""
Prohibited-zone registry.

The pipeline itself only reads active zones; registration and toggling
serve administrative tooling.
"""

import json
import logging
from typing import List, Optional

import asyncpg

from landclaim.models import ProhibitedArea, ProhibitedAreaType
from landclaim.store.rows import decode_json

logger = logging.getLogger(__name__)

_SELECT_COLS = """
    id, nama_kawasan, jenis_kawasan::text AS jenis_kawasan, sumber_data,
    dasar_hukum, ST_AsGeoJSON(geom)::text AS geometry, aktif_di_validasi
"""


def _row_to_area(row: asyncpg.Record) -> ProhibitedArea:
    """Convert a prohibited_areas row to a ProhibitedArea."""
    return ProhibitedArea(
        id=row["id"],
        nama_kawasan=row["nama_kawasan"],
        jenis_kawasan=ProhibitedAreaType(row["jenis_kawasan"]),
        sumber_data=row["sumber_data"],
        dasar_hukum=row["dasar_hukum"],
        geometry=decode_json(row["geometry"]),
        aktif_di_validasi=row["aktif_di_validasi"],
    )


class ProhibitedAreaRepository:
    """CRUD for ``prohibited_areas``."""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def create(self, area: ProhibitedArea) -> ProhibitedArea:
        """Register a zone. Returns it with its assigned id."""
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO prohibited_areas
                (nama_kawasan, jenis_kawasan, sumber_data, dasar_hukum, geom, aktif_di_validasi)
            VALUES ($1, $2::prohibited_area_type, $3, $4,
                    ST_SetSRID(ST_GeomFromGeoJSON($5::text), 4326), $6)
            RETURNING {_SELECT_COLS}
            """,
            area.nama_kawasan,
            area.jenis_kawasan.value,
            area.sumber_data,
            area.dasar_hukum,
            json.dumps(area.geometry),
            area.aktif_di_validasi,
        )
        logger.info("Registered prohibited area %s (%s)", row["id"], area.nama_kawasan)
        return _row_to_area(row)

    async def get(self, area_id: int) -> Optional[ProhibitedArea]:
        row = await self._conn.fetchrow(
            f"SELECT {_SELECT_COLS} FROM prohibited_areas WHERE id = $1",
            area_id,
        )
        if row is None:
            return None
        return _row_to_area(row)

    async def list_active(self) -> List[ProhibitedArea]:
        """Zones that participate in overlap checks."""
        rows = await self._conn.fetch(
            f"SELECT {_SELECT_COLS} FROM prohibited_areas WHERE aktif_di_validasi ORDER BY id"
        )
        return [_row_to_area(r) for r in rows]

    async def set_active(self, area_id: int, active: bool) -> bool:
        """Toggle participation in overlap checks. Returns whether the zone exists."""
        row = await self._conn.fetchrow(
            """
            UPDATE prohibited_areas
            SET aktif_di_validasi = $2, updated_at = now()
            WHERE id = $1
            RETURNING id
            """,
            area_id,
            active,
        )
        if row is not None:
            logger.info("Prohibited area %s active=%s", area_id, active)
        return row is not None
